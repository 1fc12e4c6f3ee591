from __future__ import annotations

import logging

from kursus.core.logging import logger, sanitize_log_extra


def test_sanitize_log_extra_renames_reserved_keys():
    extra = sanitize_log_extra({"filename": "backup-full-2024-01-01.zip", "name": "students", "rows": 3})

    assert extra == {"extra_filename": "backup-full-2024-01-01.zip", "extra_name": "students", "rows": 3}


def test_sanitized_extra_can_be_logged(caplog):
    with caplog.at_level(logging.INFO, logger="kursus"):
        logger.info("Full backup ready", extra=sanitize_log_extra({"filename": "backup-full.zip"}))

    assert caplog.records[-1].extra_filename == "backup-full.zip"
