"""Display helpers for the output history."""

from datetime import datetime


def format_size(num_bytes: int) -> str:
    """Human-readable size: "512 B", "1.5 KB", "2.0 MB"."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.1f} MB"


def format_date(timestamp_ms: int) -> str:
    """Local date and time of an epoch-milliseconds timestamp, to the minute."""
    return datetime.fromtimestamp(timestamp_ms / 1000).strftime("%Y-%m-%d %H:%M")
