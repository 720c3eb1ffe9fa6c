"""Utility functions for peer shell output."""

import sys
from typing import Optional

from peer.constants import GREEN, RESET


class DownloadProgress:
    """Progress callback that renders download progress on one stdout line."""

    def __init__(self, label: str):
        self.label = label
        self._started = False

    def __call__(self, received: int, total: Optional[int]) -> None:
        self._started = True
        if total:
            progress = (received / total) * 100
            sys.stdout.write(
                f"\rDownloading {self.label}: {format_file_size(received)} / "
                f"{format_file_size(total)} ({GREEN}{progress:.1f}%{RESET})"
            )
        else:
            sys.stdout.write(f"\rDownloading {self.label}: {format_file_size(received)}")
        sys.stdout.flush()

    def finish(self) -> None:
        """Terminate the progress line if anything was drawn."""
        if self._started:
            sys.stdout.write('\n')
            sys.stdout.flush()


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Returns:
        Formatted string with size and unit (e.g., "1.50 MiB", "512 B")
    """
    if size_bytes < 1024:
        return f"{size_bytes} B"

    units = ['KiB', 'MiB', 'GiB', 'TiB']
    size = size_bytes / 1024.0

    for unit in units:
        if size < 1024.0:
            return f"{size:.2f} {unit}"
        size /= 1024.0

    return f"{size:.2f} PiB"
