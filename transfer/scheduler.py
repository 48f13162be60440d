"""Bounded-concurrency scheduling of part uploads."""

import asyncio
from typing import Callable, Optional

from common.constants import DEFAULT_CONCURRENCY
from common.logging_config import get_logger
from common.types import ScheduleReport, TransferContext
from transfer.chunk_reader import chunk_task, read_chunk_async
from transfer.uploader import ChunkUploader

logger = get_logger(__name__)


class UploadScheduler:
    """
    Drives parts 1..total_chunks through a pool of asyncio workers.

    Parts are queued in order but may finish in any order. A part whose
    number and freshly read length match a stored part is skipped without
    a network call. The first failure cancels the remaining workers.
    """

    def __init__(
        self,
        uploader: ChunkUploader,
        concurrency: int = DEFAULT_CONCURRENCY,
        on_tick: Optional[Callable[[], None]] = None
    ):
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.uploader = uploader
        self.concurrency = concurrency
        self.on_tick = on_tick

    def _tick(self) -> None:
        if self.on_tick is not None:
            self.on_tick()

    async def _process(self, context: TransferContext, part_number: int, report: ScheduleReport) -> None:
        task = chunk_task(context.plan, part_number)
        data = await read_chunk_async(context.plan.file_path, task)

        if context.session.has_part(part_number, len(data)):
            logger.debug(f"Part {part_number}: already stored, skipping")
            report.skipped.append(part_number)
            self._tick()
            return

        await self.uploader.upload(context, task, data)
        report.uploaded.append(part_number)
        self._tick()

    async def _worker(self, context: TransferContext, queue: asyncio.Queue, report: ScheduleReport) -> None:
        while True:
            try:
                part_number = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            await self._process(context, part_number, report)

    async def run(self, context: TransferContext) -> ScheduleReport:
        """
        Upload every part that is not already stored.

        Returns:
            Report of uploaded and skipped part numbers

        Raises:
            TransferError: The first part failure; no further parts are started
        """
        total = context.plan.total_chunks
        report = ScheduleReport()
        if total == 0:
            return report

        queue: asyncio.Queue = asyncio.Queue()
        for part_number in range(1, total + 1):
            queue.put_nowait(part_number)

        width = min(self.concurrency, total)
        logger.info(f"Uploading {total} part(s) with {width} worker(s)")

        workers = [
            asyncio.create_task(self._worker(context, queue, report))
            for _ in range(width)
        ]
        try:
            await asyncio.gather(*workers)
        except BaseException:
            for worker in workers:
                worker.cancel()
            await asyncio.gather(*workers, return_exceptions=True)
            logger.error(
                f"Stopped after {len(report.uploaded)} uploaded and "
                f"{len(report.skipped)} skipped of {total} part(s)"
            )
            raise

        logger.info(
            f"All {total} part(s) resolved: {len(report.uploaded)} uploaded, "
            f"{len(report.skipped)} skipped"
        )
        return report
