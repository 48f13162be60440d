"""Pull mode: fetch the artifact list of a registry URL and stream each file to disk."""

import asyncio
import posixpath
from pathlib import Path
from typing import Callable, Optional
from urllib.parse import quote

import httpx

from common.constants import DEFAULT_CONCURRENCY
from common.logging_config import get_logger
from common.types import RegistryInfo
from transfer.exceptions import DownloadError, RemoteApplicationError
from transfer.registry import parse_registry
from transfer.registry_client import RegistryClient

logger = get_logger(__name__)

STREAM_CHUNK_SIZE = 64 * 1024


def artifact_url(info: RegistryInfo, file_name: str) -> str:
    """
    Build the download URL of one artifact.

    The registry path loses its last two segments before ``file_name`` is appended:
    ``https://host/team/project/repo/list?version=1`` + ``a/b.txt`` gives
    ``https://host/team/project/a/b.txt``.
    """
    segments = [s for s in info.path.split('/') if s][:-2]
    base = '/'.join(segments)
    name = posixpath.normpath(file_name.lstrip('/'))
    path = '/'.join(s for s in (base, quote(name)) if s)
    return f"{info.scheme}://{info.host}/{path}"


class Downloader:
    """Downloads every artifact listed under a registry URL."""

    def __init__(
        self,
        client: RegistryClient,
        dest_dir: Path,
        concurrency: int = DEFAULT_CONCURRENCY,
        on_file: Optional[Callable[[str], None]] = None
    ):
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        self.client = client
        self.dest_dir = Path(dest_dir)
        self.concurrency = concurrency
        self.on_file = on_file

    def _local_path(self, file_name: str) -> Path:
        base = self.dest_dir.resolve()
        target = (base / file_name.lstrip('/')).resolve()
        try:
            target.relative_to(base)
        except ValueError:
            raise DownloadError(f"Refusing to write outside {base}: {file_name}")
        return target

    async def _download_one(self, info: RegistryInfo, file_name: str, semaphore: asyncio.Semaphore) -> Path:
        target = self._local_path(file_name)
        url = artifact_url(info, file_name)

        async with semaphore:
            logger.info(f"Downloading {file_name} from {url}")
            if self.on_file is not None:
                self.on_file(file_name)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                async with self.client.stream_file(url) as response:
                    with open(target, 'wb') as f:
                        try:
                            async for chunk in response.aiter_bytes(chunk_size=STREAM_CHUNK_SIZE):
                                f.write(chunk)
                        except BaseException:
                            # no truncated artifact is left behind, cancellation included
                            f.close()
                            target.unlink(missing_ok=True)
                            raise
            except RemoteApplicationError as e:
                raise DownloadError(f"Cannot download {file_name}: {e}") from e
            except httpx.HTTPError as e:
                raise DownloadError(f"Cannot download {file_name}: {type(e).__name__}: {e}") from e
            except OSError as e:
                raise DownloadError(f"Cannot write {target}: {e}") from e

        logger.info(f"Downloaded {file_name} to {target}")
        return target

    async def download_all(self, registry_url: str) -> list[Path]:
        """
        Download every listed artifact.

        Returns:
            Local paths written, in listing order; empty when the listing status is not 200

        Raises:
            DownloadError: On the first failed listing or download
        """
        info = parse_registry(registry_url)
        try:
            data = await self.client.fetch_download_list(registry_url)
        except RemoteApplicationError as e:
            raise DownloadError(f"Cannot list artifacts: {e}") from e
        except httpx.HTTPError as e:
            raise DownloadError(f"Cannot reach registry at {info.request_url}: {e}") from e

        status = data.get('status')
        if status != 200:
            logger.warning(f"Artifact listing returned status {status}; nothing to download")
            return []

        file_names = []
        for entry in data.get('fileInfos') or []:
            name = entry.get('fileName') if isinstance(entry, dict) else None
            if not name:
                logger.warning(f"Ignoring malformed file entry: {entry!r}")
                continue
            file_names.append(name)

        logger.info(f"Downloading {len(file_names)} file(s) to {self.dest_dir}")
        semaphore = asyncio.Semaphore(self.concurrency)
        tasks = [
            asyncio.create_task(self._download_one(info, name, semaphore))
            for name in file_names
        ]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
