"""Single-file transfer pipeline: plan, fingerprint, negotiate, upload, finalize."""

import asyncio
from pathlib import Path
from typing import Callable, Optional

from common.logging_config import get_logger
from common.types import TransferContext, TransferOptions, TransferOutcome
from transfer.exceptions import ChunkUploadError, TransferError
from transfer.finalizer import Finalizer
from transfer.fingerprint import compute_fingerprint, plan_transfer
from transfer.registry_client import RegistryClient
from transfer.scheduler import UploadScheduler
from transfer.session import negotiate_session
from transfer.uploader import ChunkUploader

logger = get_logger(__name__)


class NullProgress:
    """Progress sink that ignores ticks."""

    def tick(self) -> None:
        pass

    def close(self) -> None:
        pass


def null_progress(label: str, total: int) -> NullProgress:
    return NullProgress()


class TransferEngine:
    """Runs the upload of one file to completion and reports a TransferOutcome."""

    def __init__(
        self,
        client: RegistryClient,
        options: Optional[TransferOptions] = None,
        progress_factory: Optional[Callable] = None
    ):
        """
        Args:
            client: Registry client shared by every stage
            options: Chunk sizing, concurrency and finalize retry budget
            progress_factory: ``factory(label, total)`` returning an object with
                ``tick()`` and ``close()``; called once per stage
        """
        self.client = client
        self.options = options or TransferOptions()
        self.progress_factory = progress_factory or null_progress

    async def _fingerprint(self, file_path: Path, window: int, total: int) -> str:
        progress = self.progress_factory('Fingerprinting', total)
        try:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(
                None, compute_fingerprint, file_path, window, progress.tick
            )
        finally:
            progress.close()

    async def _upload(self, file_path: Path, endpoint: str) -> None:
        options = self.options
        plan = plan_transfer(file_path, endpoint, options.chunk_size, options.max_chunk_count)
        logger.info(
            f"Uploading {plan.file_path} ({plan.file_size} bytes) to {plan.endpoint}: "
            f"{plan.total_chunks} part(s) of {plan.chunk_size} bytes"
        )

        fingerprint = await self._fingerprint(plan.file_path, plan.chunk_size, plan.total_chunks)
        session = await negotiate_session(self.client, plan, fingerprint)
        context = TransferContext(plan=plan, fingerprint=fingerprint, session=session)

        progress = self.progress_factory('Uploading', plan.total_chunks)
        scheduler = UploadScheduler(
            ChunkUploader(self.client),
            concurrency=options.concurrency,
            on_tick=progress.tick
        )
        try:
            await scheduler.run(context)
        finally:
            progress.close()

        finalizer = Finalizer(
            self.client,
            attempts=options.finalize_attempts,
            delay=options.finalize_delay
        )
        await finalizer.finalize(context)

    async def transfer_file(self, file_path: Path, endpoint: str) -> TransferOutcome:
        """
        Upload one file.

        Returns:
            Success, or Failure with the reason (and part number for part errors)
        """
        file_path = Path(file_path)
        try:
            await self._upload(file_path, endpoint)
        except ChunkUploadError as e:
            logger.error(f"Upload of {file_path} failed on part {e.part_number}: {e}", exc_info=True)
            return TransferOutcome.failed(file_path, str(e), part_number=e.part_number)
        except TransferError as e:
            logger.error(f"Upload of {file_path} failed: {e}", exc_info=True)
            return TransferOutcome.failed(file_path, str(e))

        logger.info(f"Upload of {file_path} complete")
        return TransferOutcome.succeeded(file_path)
