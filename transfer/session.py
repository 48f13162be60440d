"""Upload session negotiation with the registry."""

import httpx

from common.logging_config import get_logger
from common.types import Session, StoredPart, TransferPlan
from transfer.exceptions import RemoteApplicationError, SessionError
from transfer.registry_client import RegistryClient

logger = get_logger(__name__)


def _parse_parts(raw) -> frozenset[StoredPart]:
    if not isinstance(raw, list):
        return frozenset()

    parts = set()
    for entry in raw:
        try:
            parts.add(StoredPart(int(entry['partNumber']), int(entry['size'])))
        except (KeyError, TypeError, ValueError):
            logger.warning(f"Ignoring malformed stored part entry: {entry!r}")
    return frozenset(parts)


async def negotiate_session(
    client: RegistryClient,
    plan: TransferPlan,
    fingerprint: str
) -> Session:
    """
    Create a new upload session or resume the one matching (fingerprint, size).

    Args:
        client: Registry client
        plan: Plan of the file being uploaded
        fingerprint: Whole-file content digest

    Returns:
        Session with the parts the registry already stores

    Raises:
        SessionError: On any transport error or rejected request (not retried)
    """
    try:
        data = await client.part_init(plan.endpoint, fingerprint, plan.file_size)
    except RemoteApplicationError as e:
        raise SessionError(f"Cannot start upload session: {e}") from e
    except httpx.HTTPError as e:
        raise SessionError(f"Cannot reach registry at {plan.endpoint}: {e}") from e

    upload_id = data.get('uploadId')
    if not upload_id:
        raise SessionError("Registry did not return an upload id")

    session = Session(
        session_id=str(upload_id),
        fingerprint=fingerprint,
        stored_parts=_parse_parts(data.get('parts')),
    )

    if session.stored_parts:
        logger.info(
            f"Resuming session {session.session_id}: "
            f"{len(session.stored_parts)}/{plan.total_chunks} parts already stored"
        )
    else:
        logger.info(f"Started new session {session.session_id}")
    return session
