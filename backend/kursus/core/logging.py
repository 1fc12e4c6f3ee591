"""Structured logging configuration."""
import logging
import sys
from typing import Any

from pythonjsonlogger import jsonlogger

from kursus.core.config import settings

LOGGER_NAME = "kursus"

RESERVED_LOG_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys() | {"message", "asctime"}
)


def setup_logging() -> logging.Logger:
    """Attach a JSON stdout handler to the root logger once and return the app logger."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    if not any(getattr(h, "_kursus_json", False) for h in root_logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(
            jsonlogger.JsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s %(module)s %(lineno)d")
        )
        handler._kursus_json = True  # type: ignore[attr-defined]
        root_logger.addHandler(handler)

    return logging.getLogger(LOGGER_NAME)


logger = setup_logging()


def sanitize_log_extra(extra: dict[str, Any] | None, *, prefix: str = "extra_") -> dict[str, Any]:
    """
    Rename keys that collide with LogRecord attributes.

    Table names such as "name" or "module" would otherwise make logger.* raise
    KeyError when passed through ``extra``.
    """
    if not extra:
        return {}
    return {(f"{prefix}{key}" if key in RESERVED_LOG_RECORD_ATTRS else key): value for key, value in extra.items()}
