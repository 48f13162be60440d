"""Project-wide constants."""

from pathlib import Path

DEFAULT_CHUNK_SIZE_BYTES: int = 5 * 1024 * 1024  # 5 MiB default chunk size
MAX_CHUNK_COUNT: int = 10000  # upper bound on remote parts per file

DEFAULT_CONCURRENCY: int = 5
DEFAULT_TIMEOUT_SECONDS: int = 60

FINALIZE_ATTEMPTS: int = 3
FINALIZE_DELAY_SECONDS: float = 0.5

DEFAULT_VERSION: str = "latest"
VERSION_PLACEHOLDER: str = "<VERSION>"

BATCH_SEGMENT: str = "chunks"

APP_NAME: str = "chunkup"
APP_DIR: Path = Path.home() / ".chunkup"
LOG_DIR: Path = APP_DIR / "log"
LOG_BACKUP_COUNT: int = 14
