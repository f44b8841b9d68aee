"""Formatting helpers for cache diagnostics."""


def format_size(size_bytes: float) -> str:
    """Format bytes to human readable string.

    Args:
        size_bytes: Size in bytes

    Returns:
        Human readable string (e.g., "1.5MB", "256B")
    """
    if size_bytes < 1024:
        return f"{int(size_bytes)}B"
    for unit in ['KB', 'MB', 'GB']:
        size_bytes /= 1024
        if size_bytes < 1024:
            return f"{size_bytes:.1f}{unit}"
    return f"{size_bytes / 1024:.1f}TB"
