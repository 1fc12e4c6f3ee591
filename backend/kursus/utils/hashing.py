"""Hash helpers for backup payload integrity headers."""
import hashlib
import json
from typing import Any


def calculate_file_md5(content: bytes) -> str:
    """Calculate MD5 hash of file content."""
    return hashlib.md5(content).hexdigest()


def calculate_data_hash(data: dict[str, Any]) -> str:
    """SHA-256 of a table mapping, independent of key order."""
    normalized = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(normalized.encode()).hexdigest()
