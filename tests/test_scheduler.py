"""Tests for the bounded-concurrency upload scheduler."""

import httpx
import pytest

from common.types import Session, StoredPart, TransferContext
from conftest import ENDPOINT
from transfer.exceptions import ChunkUploadError
from transfer.fingerprint import plan_transfer
from transfer.scheduler import UploadScheduler
from transfer.uploader import ChunkUploader


def make_context(path, chunk_size, stored=()):
    plan = plan_transfer(path, ENDPOINT, chunk_size=chunk_size)
    session = Session('upload-1', 'fp', frozenset(StoredPart(n, s) for n, s in stored))
    return TransferContext(plan=plan, fingerprint='fp', session=session)


def uploaded_parts(fake_registry):
    return sorted(int(c.params['partNumber']) for c in fake_registry.actions('part-upload'))


@pytest.mark.asyncio
async def test_fresh_session_uploads_every_part(registry_client, fake_registry, make_file):
    context = make_context(make_file(100), 30)
    ticks = []

    report = await UploadScheduler(
        ChunkUploader(registry_client), on_tick=lambda: ticks.append(1)
    ).run(context)

    assert uploaded_parts(fake_registry) == [1, 2, 3, 4]
    assert sorted(report.uploaded) == [1, 2, 3, 4]
    assert report.skipped == []
    assert len(ticks) == 4


@pytest.mark.asyncio
async def test_fully_stored_session_makes_no_upload_calls(registry_client, fake_registry, make_file):
    context = make_context(make_file(100), 30, stored=[(1, 30), (2, 30), (3, 30), (4, 10)])
    ticks = []

    report = await UploadScheduler(
        ChunkUploader(registry_client), on_tick=lambda: ticks.append(1)
    ).run(context)

    assert fake_registry.calls == []
    assert sorted(report.skipped) == [1, 2, 3, 4]
    assert len(ticks) == 4


@pytest.mark.asyncio
async def test_partial_resume_uploads_only_missing_parts(registry_client, fake_registry, make_file):
    context = make_context(make_file(100), 10, stored=[(n, 10) for n in range(1, 7)])

    report = await UploadScheduler(ChunkUploader(registry_client)).run(context)

    assert uploaded_parts(fake_registry) == [7, 8, 9, 10]
    assert sorted(report.skipped) == [1, 2, 3, 4, 5, 6]


@pytest.mark.asyncio
async def test_stored_part_with_other_size_is_uploaded_again(registry_client, fake_registry, make_file):
    context = make_context(make_file(100), 30, stored=[(1, 30), (2, 17), (3, 30)])

    await UploadScheduler(ChunkUploader(registry_client)).run(context)

    assert uploaded_parts(fake_registry) == [2, 4]


@pytest.mark.asyncio
async def test_last_part_size_must_match(registry_client, fake_registry, make_file):
    """A full-size entry for the short last part does not count as stored."""
    context = make_context(make_file(100), 30, stored=[(1, 30), (2, 30), (3, 30), (4, 30)])

    await UploadScheduler(ChunkUploader(registry_client)).run(context)

    assert uploaded_parts(fake_registry) == [4]


@pytest.mark.asyncio
async def test_concurrency_is_bounded(registry_client, fake_registry, make_file):
    fake_registry.delay = 0.01
    context = make_context(make_file(200), 10)

    await UploadScheduler(ChunkUploader(registry_client), concurrency=3).run(context)

    assert len(fake_registry.actions('part-upload')) == 20
    assert 1 < fake_registry.max_in_flight <= 3


@pytest.mark.asyncio
async def test_concurrency_of_one_is_sequential(registry_client, fake_registry, make_file):
    fake_registry.delay = 0.005
    context = make_context(make_file(50), 10)

    await UploadScheduler(ChunkUploader(registry_client), concurrency=1).run(context)

    assert fake_registry.max_in_flight == 1
    assert [int(c.params['partNumber']) for c in fake_registry.calls] == [1, 2, 3, 4, 5]


@pytest.mark.asyncio
async def test_failure_stops_the_transfer(registry_client, fake_registry, make_file):
    context = make_context(make_file(100), 10)
    fake_registry.upload_failures[1] = [httpx.Response(400)]

    with pytest.raises(ChunkUploadError) as exc_info:
        await UploadScheduler(ChunkUploader(registry_client), concurrency=1).run(context)

    assert exc_info.value.part_number == 1
    assert uploaded_parts(fake_registry) == [1]


@pytest.mark.asyncio
async def test_failure_cancels_other_workers(registry_client, fake_registry, make_file):
    fake_registry.delay = 0.01
    context = make_context(make_file(300), 10)
    fake_registry.upload_failures[2] = [httpx.Response(400)]

    with pytest.raises(ChunkUploadError):
        await UploadScheduler(ChunkUploader(registry_client), concurrency=2).run(context)

    assert len(fake_registry.actions('part-upload')) < 30


@pytest.mark.asyncio
async def test_empty_file_has_nothing_to_schedule(registry_client, fake_registry, make_file):
    context = make_context(make_file(0), 10)

    report = await UploadScheduler(ChunkUploader(registry_client)).run(context)

    assert report.uploaded == [] and report.skipped == []
    assert fake_registry.calls == []


def test_rejects_zero_concurrency(registry_client):
    with pytest.raises(ValueError):
        UploadScheduler(ChunkUploader(registry_client), concurrency=0)
