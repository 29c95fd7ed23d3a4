"""Filesystem chunk store: one directory per file, one .chk file per chunk."""

import os
import threading
import zlib
from pathlib import Path
from typing import List

from common.logging_config import get_logger
from chunkstore.base import ChunkStore, is_valid_chunk_key
from chunkstore.exceptions import (
    ChunkNotFoundError,
    ChunkStoreError,
    PartialDeleteError,
    WriteFailedError,
)

logger = get_logger(__name__)

LOCK_STRIPES = 64
CHUNK_SUFFIX = ".chk"
TEMP_SUFFIX = ".tmp"


class LocalChunkStore(ChunkStore):
    """
    Chunk store backed by the local filesystem.

    Layout: <root>/<file_id>/<sequence_number:08d>.chk. Writes go to a
    temporary file that is fsynced and atomically renamed into place, so a
    chunk is either fully present or absent.
    """

    def __init__(self, root: Path):
        """
        Initialize store rooted at the given directory.

        Args:
            root: Directory holding per-file chunk directories
        """
        self.root = Path(root)
        self._locks = [threading.Lock() for _ in range(LOCK_STRIPES)]

    def ensure_root(self) -> None:
        """Ensure the chunk root directory exists."""
        self.root.mkdir(parents=True, exist_ok=True)

    def _lock_for(self, file_id: str) -> threading.Lock:
        return self._locks[zlib.crc32(file_id.encode("utf-8")) % LOCK_STRIPES]

    def _file_dir(self, file_id: str) -> Path:
        return self.root / file_id

    def get_chunk_path(self, file_id: str, sequence_number: int) -> Path:
        """
        Get file path for a chunk.

        Args:
            file_id: Owning file identifier
            sequence_number: 0-based chunk position

        Returns:
            Path object for chunk file
        """
        return self._file_dir(file_id) / f"{sequence_number:08d}{CHUNK_SUFFIX}"

    def put(self, file_id: str, sequence_number: int, data: bytes) -> None:
        if not is_valid_chunk_key(file_id, sequence_number):
            raise WriteFailedError(f"Invalid chunk key ({file_id!r}, {sequence_number!r})")

        with self._lock_for(file_id):
            path = self.get_chunk_path(file_id, sequence_number)
            if path.exists():
                raise WriteFailedError(
                    f"Chunk {sequence_number} of file {file_id} already exists"
                )

            temp_path = path.with_name(f".{path.name}{TEMP_SUFFIX}")
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                with open(temp_path, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(temp_path, path)
            except OSError as e:
                try:
                    temp_path.unlink()
                except OSError:
                    pass
                raise WriteFailedError(
                    f"Failed to write chunk {sequence_number} of file {file_id}: {e}"
                ) from e

        logger.debug(f"Wrote chunk {sequence_number} of file {file_id} ({len(data)} bytes)")

    def get(self, file_id: str, sequence_number: int) -> bytes:
        if not is_valid_chunk_key(file_id, sequence_number):
            raise ChunkNotFoundError(f"Invalid chunk key ({file_id!r}, {sequence_number!r})")

        path = self.get_chunk_path(file_id, sequence_number)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise ChunkNotFoundError(
                f"Chunk {sequence_number} of file {file_id} not found"
            ) from e
        except OSError as e:
            raise ChunkStoreError(
                f"Failed to read chunk {sequence_number} of file {file_id}: {e}"
            ) from e

    def delete_all(self, file_id: str) -> int:
        if not is_valid_chunk_key(file_id, 0):
            return 0

        with self._lock_for(file_id):
            file_dir = self._file_dir(file_id)
            if not file_dir.is_dir():
                return 0

            deleted = 0
            remaining = 0
            for entry in sorted(file_dir.iterdir()):
                try:
                    entry.unlink()
                    if entry.suffix == CHUNK_SUFFIX:
                        deleted += 1
                except FileNotFoundError:
                    continue
                except OSError as e:
                    logger.warning(f"Failed to delete {entry}: {e}")
                    remaining += 1

            if remaining:
                raise PartialDeleteError(file_id, deleted, remaining)

            try:
                file_dir.rmdir()
            except OSError as e:
                logger.warning(f"Failed to remove chunk directory {file_dir}: {e}")

        logger.debug(f"Deleted {deleted} chunks of file {file_id}")
        return deleted

    def list_file_ids(self) -> List[str]:
        if not self.root.exists():
            return []
        return [
            entry.name
            for entry in self.root.iterdir()
            if entry.is_dir() and not entry.name.startswith(".")
        ]

    def ping(self) -> bool:
        try:
            self.ensure_root()
        except OSError as e:
            logger.error(f"Chunk root {self.root} unavailable: {e}")
            return False
        return os.access(self.root, os.W_OK)
