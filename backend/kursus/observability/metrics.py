"""Prometheus metrics integration and request latency middleware."""
from __future__ import annotations

import time
from collections.abc import Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_COUNT = Counter(
    "kursus_http_requests_total", "Total HTTP requests", ["method", "path", "status"]
)
REQUEST_LATENCY = Histogram(
    "kursus_http_request_latency_seconds", "Request latency in seconds", ["method", "path"]
)

BACKUP_RUNS = Counter(
    "kursus_backup_runs_total", "Backup builds and restores", ["kind", "status"]
)
BACKUP_DURATION = Histogram(
    "kursus_backup_duration_seconds", "Wall-clock time of a backup operation", ["kind"]
)
BACKUP_RECORDS = Gauge(
    "kursus_backup_records", "Total records in the most recent snapshot"
)
BACKUP_SIZE_BYTES = Gauge(
    "kursus_backup_size_bytes", "Size of the most recent backup payload", ["kind"]
)


def record_backup(kind: str, duration: float, success: bool, *, records: int | None = None, size_bytes: int | None = None) -> None:
    BACKUP_RUNS.labels(kind=kind, status="success" if success else "failed").inc()
    BACKUP_DURATION.labels(kind=kind).observe(duration)
    if records is not None:
        BACKUP_RECORDS.set(records)
    if size_bytes is not None:
        BACKUP_SIZE_BYTES.labels(kind=kind).set(size_bytes)


class RequestMetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        path = request.url.path
        start = time.time()
        try:
            response = await call_next(request)
            REQUEST_COUNT.labels(method=method, path=path, status=str(response.status_code)).inc()
            return response
        finally:
            REQUEST_LATENCY.labels(method=method, path=path).observe(time.time() - start)


metrics_router = APIRouter()


@metrics_router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
