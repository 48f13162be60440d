"""Single-part upload with one retry on transient network errors."""

import httpx

from common.logging_config import get_logger
from common.types import ChunkTask, TransferContext
from transfer.exceptions import ChunkUploadError, RemoteApplicationError
from transfer.registry_client import RegistryClient

logger = get_logger(__name__)

# Connection refused, missing socket and TLS handshake faults surface as
# ConnectError; resets surface as Read/Write/RemoteProtocol errors.
TRANSIENT_ERRORS = (
    httpx.ConnectError,
    httpx.ReadError,
    httpx.WriteError,
    httpx.RemoteProtocolError,
)

RERUN_HINT = "Network connection failed. Re-run the command to resume the upload"


class ChunkUploader:
    """
    Sends one part to the registry.

    Retry policy: a transient failure is retried exactly once, immediately.
    Anything else, and a second transient failure, is fatal for the file.
    """

    ATTEMPTS = 2

    def __init__(self, client: RegistryClient):
        self.client = client

    async def upload(self, context: TransferContext, task: ChunkTask, data: bytes) -> None:
        """
        Upload one part.

        Args:
            context: Transfer the part belongs to
            task: Part number and byte range
            data: Exactly ``task.length`` bytes

        Raises:
            ChunkUploadError: When the part was not accepted
        """
        part = task.part_number

        for attempt in range(1, self.ATTEMPTS + 1):
            try:
                await self.client.part_upload(
                    context.plan.endpoint,
                    context.session.session_id,
                    part,
                    data
                )
            except TRANSIENT_ERRORS as e:
                if attempt < self.ATTEMPTS:
                    logger.warning(
                        f"Part {part}: transient error {type(e).__name__}: {e}, retrying"
                    )
                    continue
                logger.error(f"Part {part}: transient error on retry {type(e).__name__}: {e}")
                raise ChunkUploadError(part, RERUN_HINT, transient=True) from e
            except RemoteApplicationError as e:
                logger.error(f"Part {part}: rejected by registry: {e}")
                raise ChunkUploadError(part, str(e)) from e
            except httpx.HTTPError as e:
                logger.error(f"Part {part}: {type(e).__name__}: {e}")
                raise ChunkUploadError(part, f"{type(e).__name__}: {e}") from e

            if attempt > 1:
                logger.info(f"Part {part}: accepted on retry")
            else:
                logger.debug(f"Part {part}: accepted ({len(data)} bytes)")
            return
