"""Tests for part byte ranges and range reads."""

import pytest

from common.types import ChunkTask
from conftest import ENDPOINT, MIB, pattern_bytes
from transfer.chunk_reader import chunk_task, read_chunk, read_chunk_async
from transfer.exceptions import SourceUnreadableError
from transfer.fingerprint import plan_transfer


def test_twelve_mib_part_ranges(sample_file):
    """Parts of 12 MiB at 5 MiB are 5, 5 and 2 MiB."""
    plan = plan_transfer(sample_file, ENDPOINT)

    tasks = [chunk_task(plan, p) for p in range(1, plan.total_chunks + 1)]

    assert tasks == [
        ChunkTask(1, 0, 5 * MIB - 1),
        ChunkTask(2, 5 * MIB, 10 * MIB - 1),
        ChunkTask(3, 10 * MIB, 12 * MIB - 1),
    ]
    assert [t.length for t in tasks] == [5 * MIB, 5 * MIB, 2 * MIB]


@pytest.mark.parametrize('size,chunk', [(1, 1), (10, 3), (12, 4), (1000, 7), (4097, 1024)])
def test_every_range_is_exact(make_file, size, chunk):
    """All parts are chunk_size long except possibly the last one."""
    plan = plan_transfer(make_file(size), ENDPOINT, chunk_size=chunk)
    content = plan.file_path.read_bytes()

    pieces = []
    for part in range(1, plan.total_chunks + 1):
        task = chunk_task(plan, part)
        expected = min(plan.chunk_size, plan.file_size - task.start)
        data = read_chunk(plan.file_path, task)
        assert task.length == expected
        assert len(data) == expected
        assert data == content[task.start:task.end + 1]
        pieces.append(data)

    last = chunk_task(plan, plan.total_chunks)
    assert last.length == plan.file_size - plan.chunk_size * (plan.total_chunks - 1)
    assert b''.join(pieces) == content


@pytest.mark.parametrize('part', [0, 4, -1])
def test_part_number_out_of_range(sample_file, part):
    plan = plan_transfer(sample_file, ENDPOINT)

    with pytest.raises(ValueError):
        chunk_task(plan, part)


def test_missing_file_is_fatal(tmp_path):
    with pytest.raises(SourceUnreadableError):
        read_chunk(tmp_path / 'gone.bin', ChunkTask(1, 0, 9))


def test_short_read_is_fatal(make_file):
    """A file truncated after planning yields a short read."""
    path = make_file(100)
    plan = plan_transfer(path, ENDPOINT, chunk_size=40)
    path.write_bytes(pattern_bytes(90))

    with pytest.raises(SourceUnreadableError, match='Short read'):
        read_chunk(path, chunk_task(plan, 3))


@pytest.mark.asyncio
async def test_read_chunk_async(make_file):
    path = make_file(100)
    plan = plan_transfer(path, ENDPOINT, chunk_size=30)

    data = await read_chunk_async(path, chunk_task(plan, 4))

    assert data == path.read_bytes()[90:]
