"""
Helper functions for formatting task data into human-readable strings.
"""

from datetime import datetime
from typing import Any

# Rich colors for the task status values reported by Download Station
STATUS_COLORS = {
    "waiting": "dim",
    "downloading": "cyan",
    "paused": "yellow",
    "finishing": "cyan",
    "finished": "green",
    "hash_checking": "blue",
    "seeding": "green",
    "filehosting_waiting": "dim",
    "extracting": "blue",
    "error": "red",
}


def format_size(bytes_size: int | float | str | None) -> str:
    """Formats bytes into a human-readable size string (e.g., '145.3 MB')."""
    try:
        bytes_size = float(bytes_size or 0)
    except (TypeError, ValueError):
        return "?"
    if bytes_size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while bytes_size >= 1024 and i < len(units) - 1:
        bytes_size /= 1024
        i += 1
    return f"{bytes_size:.1f} {units[i]}"


def format_timestamp(epoch: int | None) -> str:
    """Formats a unix timestamp from the NAS, or '-' when it is unset."""
    if not epoch:
        return "-"
    return datetime.fromtimestamp(int(epoch)).strftime("%Y-%m-%d %H:%M")


def format_status(status: str | None) -> str:
    """Wraps a task status in its rich color markup."""
    status = status or "unknown"
    color = STATUS_COLORS.get(status, "white")
    return f"[{color}]{status}[/{color}]"


def get_task_progress(task: dict[str, Any]) -> float | None:
    """
    Computes download progress in percent from a task's transfer details.

    Returns None when the task was listed without 'transfer' details or its
    size is not known yet.
    """
    transfer = task.get("additional", {}).get("transfer")
    size = task.get("size") or 0
    if not transfer or not size:
        return None
    downloaded = transfer.get("size_downloaded", 0) or 0
    return min(100.0, downloaded * 100.0 / float(size))
