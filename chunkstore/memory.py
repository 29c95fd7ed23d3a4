"""In-process chunk store for development and tests."""

import threading
from typing import Dict, List

from chunkstore.base import ChunkStore, is_valid_chunk_key
from chunkstore.exceptions import ChunkNotFoundError, WriteFailedError


class MemoryChunkStore(ChunkStore):
    """
    Dict-backed chunk store. Contents are lost when the process exits.
    """

    def __init__(self):
        self._chunks: Dict[str, Dict[int, bytes]] = {}
        self._lock = threading.Lock()

    def put(self, file_id: str, sequence_number: int, data: bytes) -> None:
        if not is_valid_chunk_key(file_id, sequence_number):
            raise WriteFailedError(f"Invalid chunk key ({file_id!r}, {sequence_number!r})")

        with self._lock:
            chunks = self._chunks.setdefault(file_id, {})
            if sequence_number in chunks:
                raise WriteFailedError(
                    f"Chunk {sequence_number} of file {file_id} already exists"
                )
            chunks[sequence_number] = bytes(data)

    def get(self, file_id: str, sequence_number: int) -> bytes:
        with self._lock:
            try:
                return self._chunks[file_id][sequence_number]
            except KeyError:
                raise ChunkNotFoundError(
                    f"Chunk {sequence_number} of file {file_id} not found"
                ) from None

    def delete_all(self, file_id: str) -> int:
        with self._lock:
            chunks = self._chunks.pop(file_id, {})
        return len(chunks)

    def list_file_ids(self) -> List[str]:
        with self._lock:
            return [file_id for file_id, chunks in self._chunks.items() if chunks]

    def ping(self) -> bool:
        return True
