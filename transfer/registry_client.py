"""HTTP client for the artifact registry's chunked upload protocol."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx

from common.constants import DEFAULT_TIMEOUT_SECONDS
from common.logging_config import get_logger
from transfer.exceptions import RemoteApplicationError

logger = get_logger(__name__)


class RegistryClient:
    """Async HTTP client for the registry's part-init/part-upload/part-complete actions."""

    def __init__(
        self,
        authorization: str,
        version: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS
    ):
        """
        Initialize registry client.

        Args:
            authorization: Value of the Authorization header sent on every call
            version: Artifact version sent as the ``version`` query parameter
            timeout: Per-request timeout in seconds
        """
        self.authorization = authorization
        self.version = version
        self.session = httpx.AsyncClient(timeout=timeout, follow_redirects=True)
        logger.debug(f"Initialized RegistryClient [version={version} timeout={timeout}]")

    def _headers(self, extra: Optional[dict] = None) -> dict:
        headers = {'Authorization': self.authorization}
        if extra:
            headers.update(extra)
        return headers

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP errors to user-friendly messages.

        Args:
            response: HTTP response object

        Returns:
            User-friendly error message
        """
        try:
            error_data = response.json()
            detail = error_data.get('message') or error_data.get('detail') or 'Unknown error'
        except ValueError:
            detail = response.text if response.text else 'Unknown error'

        status_messages = {
            400: 'Bad request',
            401: 'Authentication rejected. Check the username and password',
            403: 'Access forbidden',
            404: 'Registry path not found',
            413: 'Chunk too large for the registry',
            500: 'Registry server error',
            502: 'Bad gateway',
            503: 'Registry unavailable',
        }

        message = status_messages.get(response.status_code)
        if message is None:
            return f"HTTP {response.status_code}: {detail}"
        return f"{message} (HTTP {response.status_code}): {detail}"

    def _check_response(self, response: httpx.Response, expect_json: bool = True) -> dict:
        """
        Raise on error status or non-zero application code.

        Returns:
            Decoded JSON body, or an empty dict when no body is expected
        """
        if not response.is_success:
            logger.warning(
                f"Registry error: {response.request.method} {response.request.url} "
                f"status={response.status_code}"
            )
            raise RemoteApplicationError(
                self._format_error(response),
                status_code=response.status_code
            )

        if not expect_json:
            return {}

        try:
            payload = response.json()
        except ValueError:
            raise RemoteApplicationError(
                f"Malformed registry response: {response.text[:200]!r}",
                status_code=response.status_code
            )

        if not isinstance(payload, dict):
            raise RemoteApplicationError(
                f"Unexpected registry response: {payload!r}",
                status_code=response.status_code
            )

        code = payload.get('code')
        if code not in (None, 0, '0'):
            raise RemoteApplicationError(
                payload.get('message') or f"Registry returned code {code}",
                code=code,
                status_code=response.status_code
            )
        return payload

    async def part_init(self, endpoint: str, fingerprint: str, file_size: int) -> dict:
        """
        Create or resume an upload session.

        Returns:
            The ``data`` object of the response (``uploadId`` and optional ``parts``)
        """
        params = {
            'version': self.version,
            'fileTag': fingerprint,
            'fileSize': file_size,
            'action': 'part-init',
        }
        logger.debug(f"part-init {endpoint} fileTag={fingerprint} fileSize={file_size}")
        response = await self.session.post(endpoint, params=params, headers=self._headers())
        payload = self._check_response(response)
        data = payload.get('data')
        if not isinstance(data, dict):
            raise RemoteApplicationError(
                "Registry response is missing the session data",
                status_code=response.status_code
            )
        return data

    async def part_upload(
        self,
        endpoint: str,
        upload_id: str,
        part_number: int,
        data: bytes
    ) -> None:
        """Send one part's bytes. Transport errors propagate unchanged."""
        params = {
            'version': self.version,
            'uploadId': upload_id,
            'partNumber': part_number,
            'size': len(data),
            'action': 'part-upload',
        }
        response = await self.session.post(
            endpoint,
            params=params,
            content=data,
            headers=self._headers({'Content-Type': 'application/octet-stream'})
        )
        self._check_response(response, expect_json=False)

    async def part_complete(
        self,
        endpoint: str,
        upload_id: str,
        fingerprint: str,
        file_size: int
    ) -> None:
        """Ask the registry to merge all parts into the final artifact."""
        params = {
            'version': self.version,
            'uploadId': upload_id,
            'fileTag': fingerprint,
            'size': file_size,
            'action': 'part-complete',
        }
        response = await self.session.post(endpoint, params=params, headers=self._headers())
        self._check_response(response)

    async def fetch_download_list(self, registry_url: str) -> dict:
        """
        List the artifacts under a registry URL.

        Returns:
            The ``data`` object (``status`` and ``fileInfos``)
        """
        response = await self.session.post(registry_url, headers=self._headers())
        payload = self._check_response(response)
        data = payload.get('data')
        if not isinstance(data, dict):
            raise RemoteApplicationError(
                "Registry response is missing the file list",
                status_code=response.status_code
            )
        return data

    @asynccontextmanager
    async def stream_file(self, url: str) -> AsyncIterator[httpx.Response]:
        """Stream one artifact; the response is checked before it is yielded."""
        async with self.session.stream(
            'GET',
            url,
            params={'version': self.version},
            headers=self._headers()
        ) as response:
            if not response.is_success:
                await response.aread()
                self._check_response(response, expect_json=False)
            yield response

    async def close(self) -> None:
        """Close the HTTP session."""
        await self.session.aclose()
