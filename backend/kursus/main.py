"""FastAPI application entry point."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from kursus.api.v1 import backup
from kursus.core.config import settings
from kursus.core.database import Base, engine
from kursus.core.logging import setup_logging
from kursus.db import models  # noqa: F401  registers tables on Base.metadata
from kursus.middleware.exception_handler import ExceptionHandlerMiddleware, register_exception_handlers
from kursus.middleware.rate_limit import RateLimitMiddleware
from kursus.observability.metrics import RequestMetricsMiddleware, metrics_router

# Initialize logging
setup_logging()

app = FastAPI(
    title="Kursus Admin API",
    description="Course-management backend: administration and data backups",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(ExceptionHandlerMiddleware)
app.add_middleware(RateLimitMiddleware, requests_per_minute=settings.RATE_LIMIT_PER_MINUTE)
app.add_middleware(RequestMetricsMiddleware)
register_exception_handlers(app)
app.include_router(metrics_router)

app.include_router(backup.router, prefix="/api/admin/backup", tags=["backup"])


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "service": "Kursus Admin API", "version": "0.1.0"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {"status": "healthy"}


# Initialize DB
Base.metadata.create_all(bind=engine)
