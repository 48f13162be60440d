"""Utility functions for CLI operations."""

import sys
from typing import TextIO

from prompt_toolkit import prompt

from cli.constants import GREEN, PASSWORD_PROMPT, RESET, STYLE


class ProgressBar:
    """Tick-driven progress bar rendered on one stdout line."""

    def __init__(self, label: str, total: int, width: int = 30, stream: TextIO | None = None):
        """
        Initialize the progress bar.

        Args:
            label: Text shown before the bar
            total: Number of ticks that make 100%
            width: Bar width in characters
            stream: Output stream (defaults to stdout)
        """
        self.label = label
        self.total = total
        self.width = width
        self.stream = stream or sys.stdout
        self.current = 0
        self._finished = False
        self._display()

    def tick(self) -> None:
        """Advance by one and redraw."""
        self.current = min(self.current + 1, self.total)
        self._display()

    def _display(self) -> None:
        if self.total > 0:
            ratio = self.current / self.total
        else:
            ratio = 1.0
        filled = int(self.width * ratio)
        bar = '=' * filled + '-' * (self.width - filled)
        self.stream.write(
            f"\r{self.label} [{bar}] {self.current}/{self.total} ({GREEN}{ratio * 100:.1f}%{RESET})"
        )
        self.stream.flush()

    def close(self) -> None:
        """Finish the line."""
        if not self._finished:
            self._finished = True
            self.stream.write('\n')
            self.stream.flush()


def format_file_size(size_bytes: int) -> str:
    """
    Format file size in bytes to human-readable format with appropriate unit.

    Uses binary units (1024-based) and automatically selects the most
    appropriate unit (B, KiB, MiB, GiB, TiB).

    Args:
        size_bytes: File size in bytes

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


def prompt_password() -> str:
    """Ask for the password without echoing it."""
    return prompt([("class:prompt", PASSWORD_PROMPT)], is_password=True, style=STYLE)
