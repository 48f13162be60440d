"""Whole-file content fingerprint and chunk plan derivation."""

import hashlib
import math
from pathlib import Path
from typing import Callable, Iterator, Optional

from common.constants import DEFAULT_CHUNK_SIZE_BYTES, MAX_CHUNK_COUNT
from common.logging_config import get_logger
from common.types import TransferPlan
from transfer.exceptions import SourceUnreadableError

logger = get_logger(__name__)


def derive_chunking(
    file_size: int,
    chunk_size: int = DEFAULT_CHUNK_SIZE_BYTES,
    max_chunk_count: int = MAX_CHUNK_COUNT
) -> tuple[int, int]:
    """
    Derive (chunk_size, total_chunks) for a file.

    The default chunk size is kept unless it would produce more than
    ``max_chunk_count`` parts, in which case the chunk size grows to
    ``ceil(file_size / max_chunk_count)``.

    Raises:
        ValueError: If any argument is out of range
    """
    if file_size < 0:
        raise ValueError(f"file_size must be >= 0, got {file_size}")
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be >= 1, got {chunk_size}")
    if max_chunk_count < 1:
        raise ValueError(f"max_chunk_count must be >= 1, got {max_chunk_count}")

    total_chunks = math.ceil(file_size / chunk_size)
    if total_chunks > max_chunk_count:
        chunk_size = math.ceil(file_size / max_chunk_count)
        total_chunks = math.ceil(file_size / chunk_size)
    return chunk_size, total_chunks


def plan_transfer(
    file_path: Path,
    endpoint: str,
    chunk_size: int = DEFAULT_CHUNK_SIZE_BYTES,
    max_chunk_count: int = MAX_CHUNK_COUNT
) -> TransferPlan:
    """
    Stat the source file and build its TransferPlan.

    Raises:
        SourceUnreadableError: If the path is missing or not a regular file
    """
    file_path = Path(file_path)
    try:
        stat = file_path.stat()
    except FileNotFoundError:
        raise SourceUnreadableError(f"File not found: {file_path}")
    except OSError as e:
        raise SourceUnreadableError(f"Cannot stat {file_path}: {e}") from e

    if not file_path.is_file():
        raise SourceUnreadableError(f"Not a file: {file_path}. Pass --dir to upload a directory")

    chunk_size, total_chunks = derive_chunking(stat.st_size, chunk_size, max_chunk_count)
    return TransferPlan(
        file_path=file_path,
        endpoint=endpoint,
        file_size=stat.st_size,
        chunk_size=chunk_size,
        total_chunks=total_chunks,
    )


def iter_windows(file_path: Path, window: int) -> Iterator[bytes]:
    """
    Lazily read a file in fixed-size windows. Single pass, not restartable.
    """
    with open(file_path, 'rb') as f:
        while True:
            data = f.read(window)
            if not data:
                break
            yield data


class FingerprintCalculator:
    """
    Calculate the MD5 fingerprint incrementally for streaming data.

    Usage:
        calculator = FingerprintCalculator()
        calculator.update(window1)
        calculator.update(window2)
        fingerprint = calculator.finalize()
    """

    def __init__(self):
        self._hasher = hashlib.md5()
        self._finalized = False

    def update(self, data: bytes) -> None:
        if self._finalized:
            raise ValueError("Cannot update after finalization")
        self._hasher.update(data)

    def finalize(self) -> str:
        self._finalized = True
        return self._hasher.hexdigest()


def compute_fingerprint(
    file_path: Path,
    window: int,
    on_tick: Optional[Callable[[], None]] = None
) -> str:
    """
    Hash the whole file, one tick per window read.

    Args:
        file_path: Source file
        window: Read window size in bytes
        on_tick: Called once after every window

    Returns:
        Hex digest of the file content

    Raises:
        SourceUnreadableError: On any read error (never retried)
    """
    calculator = FingerprintCalculator()
    try:
        for data in iter_windows(file_path, window):
            calculator.update(data)
            if on_tick is not None:
                on_tick()
    except OSError as e:
        raise SourceUnreadableError(f"Cannot read {file_path}: {e}") from e

    fingerprint = calculator.finalize()
    logger.info(f"Fingerprint of {file_path}: {fingerprint}")
    return fingerprint
