"""Custom exception classes for the gateway."""


class GridVaultException(Exception):
    """
    Base exception class for all gateway errors.
    """
    pass


class FileNotFoundError(GridVaultException):
    """
    Raised when a requested file does not exist or is not yet published.
    """
    pass


class DuplicateFilenameError(GridVaultException):
    """
    Raised when reserving a filename that is already taken or tombstoned.
    """
    pass


class UploadFailedError(GridVaultException):
    """
    Raised when an upload could not be completed; nothing was published.
    """
    pass


class StreamInterruptedError(GridVaultException):
    """
    Raised when a chunk cannot be fetched or verified mid-download.
    """
    pass


class InvalidRangeError(GridVaultException):
    """
    Raised when a requested byte range cannot be satisfied.
    """

    def __init__(self, message: str, length: int):
        super().__init__(message)
        self.length = length


class NoFileUploadedError(GridVaultException):
    """
    Raised when an upload request carries no file part.
    """
    pass
