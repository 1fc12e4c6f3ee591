"""In-memory sliding-window rate limiting per client IP."""
from __future__ import annotations

import time
from typing import Callable

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, requests_per_minute: int = 100, window_seconds: float = 60.0):
        super().__init__(app)
        self.requests_per_minute = requests_per_minute
        self.window_seconds = window_seconds
        self.buckets: dict[str, list[float]] = {}

    @staticmethod
    def client_ip(request: Request) -> str:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        ip = self.client_ip(request)
        now = time.time()
        window_start = now - self.window_seconds
        times = [t for t in self.buckets.get(ip, []) if t >= window_start]
        if len(times) >= self.requests_per_minute:
            self.buckets[ip] = times
            return JSONResponse({"error": "Too many requests"}, status_code=429)
        times.append(now)
        self.buckets[ip] = times
        return await call_next(request)
