"""Human-readable payload sizes."""

BYTES_PER_MB = 1024 * 1024


def format_size_mb(size_in_bytes: int) -> str:
    """Format a byte count as megabytes with two decimals, e.g. ``"0.42 MB"``."""
    return f"{size_in_bytes / BYTES_PER_MB:.2f} MB"
