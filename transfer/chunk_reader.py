"""Exact byte-range reads of one part of the source file."""

import asyncio
from pathlib import Path

from common.types import ChunkTask, TransferPlan
from transfer.exceptions import SourceUnreadableError


def chunk_task(plan: TransferPlan, part_number: int) -> ChunkTask:
    """
    Compute the inclusive byte range of a 1-based part.

    Raises:
        ValueError: If the part number is outside 1..total_chunks
    """
    if not 1 <= part_number <= plan.total_chunks:
        raise ValueError(
            f"part_number must be in 1..{plan.total_chunks}, got {part_number}"
        )
    start = (part_number - 1) * plan.chunk_size
    end = min(start + plan.chunk_size, plan.file_size) - 1
    return ChunkTask(part_number=part_number, start=start, end=end)


def read_chunk(file_path: Path, task: ChunkTask) -> bytes:
    """
    Read exactly ``task.length`` bytes with a private file handle.

    Raises:
        SourceUnreadableError: On I/O errors or a short read
    """
    try:
        with open(file_path, 'rb') as f:
            f.seek(task.start)
            data = f.read(task.length)
    except OSError as e:
        raise SourceUnreadableError(
            f"Cannot read part {task.part_number} of {file_path}: {e}. "
            "Re-run the command to resume the upload"
        ) from e

    if len(data) != task.length:
        raise SourceUnreadableError(
            f"Short read on part {task.part_number} of {file_path}: "
            f"expected {task.length} bytes, got {len(data)}. The file changed during upload"
        )
    return data


async def read_chunk_async(file_path: Path, task: ChunkTask) -> bytes:
    """Run ``read_chunk`` in the default executor."""
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, read_chunk, file_path, task)
