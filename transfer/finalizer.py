"""Completion signal with a fixed-budget retry."""

import asyncio
from typing import Awaitable, Callable, TypeVar

from common.constants import FINALIZE_ATTEMPTS, FINALIZE_DELAY_SECONDS
from common.logging_config import get_logger
from common.types import TransferContext
from transfer.exceptions import FinalizeError
from transfer.registry_client import RegistryClient

logger = get_logger(__name__)

T = TypeVar('T')


async def retry_fixed(
    operation: Callable[[], Awaitable[T]],
    attempts: int,
    delay: float,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
) -> T:
    """
    Run ``operation`` up to ``attempts`` times, sleeping ``delay`` seconds between tries.

    Every exception counts as a failed attempt; the last one is re-raised.
    """
    if attempts < 1:
        raise ValueError(f"attempts must be >= 1, got {attempts}")

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt == attempts:
                raise
            logger.warning(
                f"Attempt {attempt}/{attempts} failed: {type(e).__name__}: {e}, "
                f"retrying in {delay}s"
            )
            await sleep(delay)


class Finalizer:
    """Signals the registry to merge all parts of a session."""

    def __init__(
        self,
        client: RegistryClient,
        attempts: int = FINALIZE_ATTEMPTS,
        delay: float = FINALIZE_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        self.client = client
        self.attempts = attempts
        self.delay = delay
        self.sleep = sleep

    async def finalize(self, context: TransferContext) -> None:
        """
        Send part-complete for the session.

        Raises:
            FinalizeError: When every attempt failed
        """
        plan = context.plan

        async def complete() -> None:
            await self.client.part_complete(
                plan.endpoint,
                context.session.session_id,
                context.fingerprint,
                plan.file_size
            )

        try:
            await retry_fixed(complete, self.attempts, self.delay, self.sleep)
        except Exception as e:
            logger.error(f"Merging parts failed after {self.attempts} attempt(s): {e}")
            raise FinalizeError(
                f"Merging parts failed after {self.attempts} attempt(s): {e}. "
                "Re-run the command to retry without re-uploading parts",
                attempts=self.attempts
            ) from e

        logger.info(f"Session {context.session.session_id} completed for {plan.file_path}")
