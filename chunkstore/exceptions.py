"""Exceptions raised by chunk store backends."""


class ChunkStoreError(Exception):
    """
    Base exception class for chunk store failures.
    """
    pass


class WriteFailedError(ChunkStoreError):
    """
    Raised when a chunk could not be durably written, or the key already exists.
    """
    pass


class ChunkNotFoundError(ChunkStoreError):
    """
    Raised when reading a chunk that was never written or has been deleted.
    """
    pass


class PartialDeleteError(ChunkStoreError):
    """
    Raised when only some of a file's chunks could be removed.
    """

    def __init__(self, file_id: str, deleted: int, remaining: int):
        super().__init__(
            f"Deleted {deleted} chunks of file {file_id}, {remaining} could not be removed"
        )
        self.file_id = file_id
        self.deleted = deleted
        self.remaining = remaining


class ChecksumMismatchError(ChunkStoreError):
    """
    Raised when chunk data does not match its recorded checksum.
    """
    pass
