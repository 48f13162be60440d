"""Directory mode: upload every file under a root, one at a time."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional
from urllib.parse import quote

from common.constants import BATCH_SEGMENT
from common.logging_config import get_logger
from common.types import TransferOutcome
from transfer.exceptions import SourceUnreadableError
from transfer.pipeline import TransferEngine

logger = get_logger(__name__)


@dataclass
class BatchResult:
    """Outcomes in upload order; stops at the first failure."""
    total: int
    outcomes: List[TransferOutcome] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return len(self.outcomes) == self.total and all(o.success for o in self.outcomes)

    @property
    def failure(self) -> Optional[TransferOutcome]:
        for outcome in self.outcomes:
            if not outcome.success:
                return outcome
        return None


def collect_files(root: Path) -> list[Path]:
    """
    Return all regular files under root, sorted for deterministic order.

    Raises:
        SourceUnreadableError: If root is missing or not a directory
    """
    root = Path(root)
    if not root.exists():
        raise SourceUnreadableError(f"Directory not found: {root}")
    if not root.is_dir():
        raise SourceUnreadableError(f"Not a directory: {root}. Omit --dir to upload a single file")
    try:
        return sorted(f for f in root.rglob('*') if f.is_file())
    except OSError as e:
        raise SourceUnreadableError(f"Cannot list {root}: {e}") from e


def target_url(endpoint: str, root: Path, file: Path) -> str:
    """
    Compute the per-file endpoint as ``<endpoint>/chunks/<root name>/<relative path>``.

    Example:
        endpoint = https://host/project/generic-repo
        root     = /data/exports
        file     = /data/exports/sub/report.csv
        result   = https://host/project/generic-repo/chunks/exports/sub/report.csv
    """
    relative = Path(file).relative_to(root).as_posix()
    segments = [BATCH_SEGMENT, Path(root).resolve().name, *relative.split('/')]
    return endpoint.rstrip('/') + '/' + '/'.join(quote(s) for s in segments)


async def upload_directory(
    engine: TransferEngine,
    root: Path,
    endpoint: str,
    on_file: Optional[Callable[[int, int, Path, str], None]] = None
) -> BatchResult:
    """
    Upload every file under root sequentially; the first failure ends the batch.

    Args:
        engine: Single-file transfer engine
        root: Directory to walk
        endpoint: Registry endpoint the ``chunks/...`` path is joined onto
        on_file: Optional ``callback(index, total, path, url)`` before each file

    Returns:
        BatchResult with one outcome per attempted file

    Raises:
        SourceUnreadableError: If root is not a readable directory or holds no files
    """
    root = Path(root)
    files = collect_files(root)
    if not files:
        raise SourceUnreadableError(f"Directory is empty (no files found): {root}")

    result = BatchResult(total=len(files))
    logger.info(f"Uploading {len(files)} file(s) from {root}")

    for index, file in enumerate(files, 1):
        url = target_url(endpoint, root, file)
        logger.info(f"[{index}/{len(files)}] {file} -> {url}")
        if on_file is not None:
            on_file(index, len(files), file, url)

        outcome = await engine.transfer_file(file, url)
        result.outcomes.append(outcome)
        if not outcome.success:
            logger.error(f"Stopping batch at {file}: {outcome.reason}")
            break

    return result
