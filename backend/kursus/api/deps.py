"""Shared FastAPI dependencies."""
from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from kursus.core.config import settings
from kursus.core.exceptions import AuthenticationError
from kursus.core.logging import logger
from kursus.services.auth_service import AuthenticatedUser, AuthService
from kursus.services.backup_service import BackupService


def get_auth_service() -> AuthService:
    return AuthService()


def _extract_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    if header.startswith("Bearer "):
        return header.split(" ", 1)[1].strip() or None
    return request.cookies.get(settings.AUTH_COOKIE_NAME)


def require_admin(request: Request, auth_service: AuthService = Depends(get_auth_service)) -> AuthenticatedUser:
    """Reject the request unless it carries a valid token with an admin role."""
    token = _extract_token(request)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    try:
        user = auth_service.verify_token(token)
    except AuthenticationError as exc:
        logger.info(f"Rejected admin request: {exc.reason}", extra={"path": request.url.path})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized") from exc
    if user.role not in settings.admin_roles:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")
    return user


def get_backup_service() -> BackupService:
    return BackupService()
