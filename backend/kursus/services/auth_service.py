"""JWT verification for admin-only routes."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt

from kursus.core.config import settings
from kursus.core.exceptions import AuthenticationError


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: str
    role: str


class AuthService:
    """Issue and verify the HS256 tokens carried in the auth cookie or bearer header."""

    def __init__(self, secret: str | None = None, algorithm: str | None = None) -> None:
        self.secret = secret or settings.JWT_SECRET
        self.algorithm = algorithm or settings.JWT_ALGORITHM

    def create_access_token(self, user_id: str, email: str, role: str, expires_hours: int | None = None) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": user_id,
            "email": email,
            "role": role,
            "iat": now,
            "exp": now + timedelta(hours=expires_hours or settings.JWT_EXPIRES_HOURS),
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def verify_token(self, token: str) -> AuthenticatedUser:
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as exc:
            raise AuthenticationError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthenticationError("Invalid token") from exc

        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Token has no subject")
        return AuthenticatedUser(id=str(user_id), email=payload.get("email", ""), role=payload.get("role", ""))
