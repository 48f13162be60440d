"""
Resumable chunked transfer engine.

A file is fingerprinted, split into parts and uploaded under a registry
session; parts the registry already stores are skipped, so re-running an
interrupted upload resumes it.
"""

from transfer.batch import BatchResult, upload_directory
from transfer.download import Downloader
from transfer.pipeline import TransferEngine
from transfer.registry_client import RegistryClient

__all__ = [
    "BatchResult",
    "Downloader",
    "RegistryClient",
    "TransferEngine",
    "upload_directory",
]
