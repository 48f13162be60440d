"""Shared data type definitions (TransferPlan, Session, ChunkTask, etc.)."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, List, Optional

from common.constants import (
    DEFAULT_CHUNK_SIZE_BYTES,
    DEFAULT_CONCURRENCY,
    FINALIZE_ATTEMPTS,
    FINALIZE_DELAY_SECONDS,
    MAX_CHUNK_COUNT,
)


@dataclass(frozen=True)
class TransferPlan:
    """
    Sizing of one file transfer. Immutable once derived.
    """
    file_path: Path
    endpoint: str
    file_size: int
    chunk_size: int
    total_chunks: int


@dataclass(frozen=True)
class StoredPart:
    """
    A part the registry reports as durably stored.
    """
    part_number: int
    size: int


@dataclass(frozen=True)
class Session:
    """
    Remote upload session keyed by (fingerprint, file size).
    """
    session_id: str
    fingerprint: str
    stored_parts: FrozenSet[StoredPart] = frozenset()

    def has_part(self, part_number: int, size: int) -> bool:
        return StoredPart(part_number, size) in self.stored_parts


@dataclass(frozen=True)
class ChunkTask:
    """
    One part of a file; ``end`` is inclusive.
    """
    part_number: int
    start: int
    end: int

    @property
    def length(self) -> int:
        return self.end - self.start + 1


@dataclass(frozen=True)
class TransferContext:
    """Everything a transfer needs once the session is negotiated."""
    plan: TransferPlan
    fingerprint: str
    session: Session


@dataclass
class ScheduleReport:
    uploaded: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class TransferOutcome:
    """
    Terminal state of one file transfer.
    """
    file_path: Path
    success: bool
    reason: Optional[str] = None
    part_number: Optional[int] = None

    @classmethod
    def succeeded(cls, file_path: Path) -> "TransferOutcome":
        return cls(file_path=file_path, success=True)

    @classmethod
    def failed(
        cls,
        file_path: Path,
        reason: str,
        part_number: Optional[int] = None
    ) -> "TransferOutcome":
        return cls(file_path=file_path, success=False, reason=reason, part_number=part_number)


@dataclass(frozen=True)
class TransferOptions:
    """
    Tunables of the transfer engine.
    """
    chunk_size: int = DEFAULT_CHUNK_SIZE_BYTES
    max_chunk_count: int = MAX_CHUNK_COUNT
    concurrency: int = DEFAULT_CONCURRENCY
    finalize_attempts: int = FINALIZE_ATTEMPTS
    finalize_delay: float = FINALIZE_DELAY_SECONDS


@dataclass(frozen=True)
class RegistryInfo:
    """
    Parsed registry URL.
    """
    request_url: str
    version: str
    scheme: str
    host: str
    path: str
