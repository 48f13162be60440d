"""Command request data types for CLI."""

from dataclasses import dataclass
from typing import Literal


@dataclass(frozen=True)
class UploadCommand:
    """Upload a file, or every file under a directory."""

    username: str
    password: str | None
    path: str
    registry: str
    concurrency: int | None = None
    directory: bool = False
    chunk_size: int | None = None
    debug: bool = False
    command: Literal["upload"] = "upload"


@dataclass(frozen=True)
class DownloadCommand:
    """Download every artifact listed under a registry URL."""

    username: str
    password: str | None
    path: str
    registry: str
    concurrency: int | None = None
    debug: bool = False
    command: Literal["download"] = "download"


CommandRequest = UploadCommand | DownloadCommand


@dataclass(frozen=True)
class CommandResult:
    """Final status of a command, printed by the entry point."""

    success: bool
    message: str
