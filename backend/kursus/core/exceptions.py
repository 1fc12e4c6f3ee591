"""Custom exceptions for the application."""
from __future__ import annotations


class BackupError(Exception):
    """Exception raised when building or restoring a backup fails.

    The original failure is chained as ``__cause__``; ``reason`` is the
    message returned to API callers.
    """

    def __init__(self, reason: str, backup_type: str = "data") -> None:
        super().__init__(reason)
        self.reason = reason
        self.backup_type = backup_type


class BackupValidationError(Exception):
    """Exception raised when an uploaded backup document is malformed."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__("; ".join(errors) or "Invalid backup file")
        self.errors = errors


class AuthenticationError(Exception):
    """Exception raised when a request credential is missing or invalid."""

    def __init__(self, reason: str = "Unauthorized") -> None:
        super().__init__(reason)
        self.reason = reason
