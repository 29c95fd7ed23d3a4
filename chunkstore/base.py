"""Abstract chunk store contract shared by all backends."""

import re
from abc import ABC, abstractmethod
from typing import List

FILE_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


def is_valid_chunk_key(file_id: str, sequence_number: int) -> bool:
    """
    Check that a (file_id, sequence_number) pair is usable as a storage key.

    Args:
        file_id: Identifier of the owning file
        sequence_number: 0-based chunk position

    Returns:
        True if both parts are well-formed
    """
    return (
        isinstance(file_id, str)
        and FILE_ID_PATTERN.match(file_id) is not None
        and isinstance(sequence_number, int)
        and sequence_number >= 0
    )


class ChunkStore(ABC):
    """Append-only store of immutable chunks keyed by (file_id, sequence_number).

    Implementations must be safe for concurrent use and must serialize
    operations touching the same file id.
    """

    @abstractmethod
    def put(self, file_id: str, sequence_number: int, data: bytes) -> None:
        """Durably write one chunk.

        Args:
            file_id: Owning file identifier.
            sequence_number: 0-based chunk position.
            data: Chunk payload.

        Raises:
            WriteFailedError: If the key already exists or the write failed.
        """

    @abstractmethod
    def get(self, file_id: str, sequence_number: int) -> bytes:
        """Read one chunk.

        Raises:
            ChunkNotFoundError: If the chunk was never written or was deleted.
        """

    @abstractmethod
    def delete_all(self, file_id: str) -> int:
        """Remove every chunk of a file.

        Returns:
            Number of chunks removed (0 if none existed).

        Raises:
            PartialDeleteError: If some chunks could not be removed.
        """

    @abstractmethod
    def list_file_ids(self) -> List[str]:
        """All file ids that currently own at least one stored object."""

    @abstractmethod
    def ping(self) -> bool:
        """Return True if the store can accept writes."""
