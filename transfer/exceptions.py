"""Custom exception classes for the transfer engine."""

from typing import Optional


class TransferError(Exception):
    """
    Base exception class for all transfer errors.
    """
    pass


class SourceUnreadableError(TransferError):
    """
    Raised when the local source is missing, unreadable or of the wrong kind.
    """
    pass


class RemoteApplicationError(TransferError):
    """
    Raised when the registry answers with an error status or a non-zero code.
    """

    def __init__(
        self,
        message: str,
        code: Optional[object] = None,
        status_code: Optional[int] = None
    ):
        super().__init__(message)
        self.code = code
        self.status_code = status_code


class SessionError(TransferError):
    """
    Raised when an upload session cannot be negotiated.
    """
    pass


class ChunkUploadError(TransferError):
    """
    Raised when a part could not be uploaded.
    """

    def __init__(self, part_number: int, message: str, transient: bool = False):
        super().__init__(message)
        self.part_number = part_number
        self.transient = transient


class FinalizeError(TransferError):
    """
    Raised when the completion signal failed on every attempt.
    """

    def __init__(self, message: str, attempts: int):
        super().__init__(message)
        self.attempts = attempts


class DownloadError(TransferError):
    """
    Raised when the artifact list or an artifact cannot be fetched.
    """
    pass
