"""Command handler functions for CLI operations."""

from pathlib import Path
from typing import Optional

from cli.config import Config
from cli.models import CommandResult, DownloadCommand, UploadCommand
from cli.utils import ProgressBar, format_file_size
from common.logging_config import get_logger
from transfer.batch import upload_directory
from transfer.download import Downloader
from transfer.exceptions import DownloadError, SourceUnreadableError
from transfer.pipeline import TransferEngine
from transfer.registry import parse_registry
from transfer.registry_client import RegistryClient

logger = get_logger(__name__)


def _resolve(path: str) -> Path:
    return Path(path).expanduser().absolute()


def _announce_file(index: int, total: int, path: Path, url: str) -> None:
    print(f"\n[{index}/{total}] {path}")


async def handle_upload(
    cmd: UploadCommand,
    config: Config,
    authorization: str,
    client: Optional[RegistryClient] = None
) -> CommandResult:
    """
    Handle an upload, single file or directory.

    Args:
        cmd: UploadCommand from the parser
        config: Loaded configuration
        authorization: Authorization header value
        client: Optional RegistryClient for dependency injection (testing)

    Returns:
        CommandResult with the summary line
    """
    info = parse_registry(cmd.registry)
    concurrency = config.resolve_concurrency(cmd.concurrency)
    if concurrency < 1:
        return CommandResult(False, f"concurrency must be at least 1, got {concurrency}")
    owns_client = client is None
    if client is None:
        client = RegistryClient(authorization, info.version, timeout=config.get_timeout())

    options = config.transfer_options(concurrency, cmd.chunk_size)
    engine = TransferEngine(client, options, progress_factory=ProgressBar)
    path = _resolve(cmd.path)
    logger.info(
        f"Executing upload command: path={path} registry={info.request_url} "
        f"version={info.version} directory={cmd.directory} concurrency={options.concurrency}"
    )

    try:
        if cmd.directory:
            try:
                result = await upload_directory(
                    engine, path, info.request_url, on_file=_announce_file
                )
            except SourceUnreadableError as e:
                return CommandResult(False, str(e))

            if result.success:
                return CommandResult(True, f"Uploaded {result.total} file(s) from {path}")
            failure = result.failure
            return CommandResult(
                False,
                f"Upload of {failure.file_path} failed: {failure.reason} "
                f"({len(result.outcomes) - 1}/{result.total} file(s) uploaded before it)"
            )

        outcome = await engine.transfer_file(path, info.request_url)
        if outcome.success:
            size = format_file_size(path.stat().st_size)
            return CommandResult(True, f"Uploaded {path.name} ({size})")
        return CommandResult(False, outcome.reason or "Upload failed")
    finally:
        if owns_client:
            await client.close()


async def handle_download(
    cmd: DownloadCommand,
    config: Config,
    authorization: str,
    client: Optional[RegistryClient] = None
) -> CommandResult:
    """
    Handle a pull of every artifact under the registry URL.

    Args:
        cmd: DownloadCommand from the parser
        config: Loaded configuration
        authorization: Authorization header value
        client: Optional RegistryClient for dependency injection (testing)

    Returns:
        CommandResult with the summary line
    """
    info = parse_registry(cmd.registry)
    concurrency = config.resolve_concurrency(cmd.concurrency)
    if concurrency < 1:
        return CommandResult(False, f"concurrency must be at least 1, got {concurrency}")
    owns_client = client is None
    if client is None:
        client = RegistryClient(authorization, info.version, timeout=config.get_timeout())

    dest_dir = _resolve(cmd.path)
    logger.info(f"Executing download command: registry={info.request_url} dest={dest_dir}")
    downloader = Downloader(
        client,
        dest_dir,
        concurrency=concurrency,
        on_file=lambda name: print(f"Downloading {name} ...")
    )

    try:
        paths = await downloader.download_all(cmd.registry)
    except DownloadError as e:
        logger.error(f"Download failed: {e}", exc_info=True)
        return CommandResult(False, str(e))
    finally:
        if owns_client:
            await client.close()

    return CommandResult(True, f"Downloaded {len(paths)} file(s) to {dest_dir}")
