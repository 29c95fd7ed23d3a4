"""Blob writer: splits an inbound byte stream into chunks and publishes the file."""

import asyncio
import sqlite3
from typing import AsyncIterable, AsyncIterator, List, Optional

from common.logging_config import get_logger
from common.types import ChunkDescriptor, FileRecord
from chunkstore.base import ChunkStore
from chunkstore.checksum_validator import IncrementalChecksumCalculator, compute_checksum
from gateway.config import CHUNK_SIZE
from gateway.exceptions import UploadFailedError
from gateway.repositories.file_repository import FileRepository
from gateway.utils import generate_storage_filename, resolve_content_type, run_blocking

logger = get_logger(__name__)


async def iter_fixed_chunks(source: AsyncIterable[bytes], chunk_size: int) -> AsyncIterator[bytes]:
    """
    Re-slice a stream of arbitrarily sized pieces into chunk_size slices.

    Every yielded slice is exactly chunk_size bytes except possibly the last.
    """
    buffer = bytearray()
    async for piece in source:
        if not piece:
            continue
        buffer.extend(piece)
        while len(buffer) >= chunk_size:
            yield bytes(buffer[:chunk_size])
            del buffer[:chunk_size]

    if buffer:
        yield bytes(buffer)


class BlobWriter:
    def __init__(
        self,
        chunk_store: ChunkStore,
        file_repo: Optional[FileRepository] = None,
        chunk_size: int = CHUNK_SIZE,
    ):
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self.chunk_store = chunk_store
        self.file_repo = file_repo or FileRepository()
        self.chunk_size = chunk_size

    async def write(
        self,
        source: AsyncIterable[bytes],
        original_name: Optional[str],
        content_type: Optional[str] = None,
    ) -> FileRecord:
        """
        Store a byte stream as a new file.

        Chunks are written one after another in sequence order; the index
        entry is published only after the last chunk is durably stored.

        Args:
            source: Async iterable of byte pieces (any size)
            original_name: Client filename, used for the extension and content type
            content_type: Declared content type, if any

        Returns:
            The published FileRecord

        Raises:
            DuplicateFilenameError: If the generated filename is already taken
            UploadFailedError: If any chunk write or the publish step failed
        """
        filename = generate_storage_filename(original_name)
        resolved_type = resolve_content_type(content_type, original_name)

        try:
            file_id = await run_blocking(
                self.file_repo.reserve,
                filename,
                original_name or filename,
                resolved_type,
                self.chunk_size,
            )
        except sqlite3.Error as e:
            logger.error(f"Failed to reserve filename {filename}: {e}")
            raise UploadFailedError(f"Could not reserve filename {filename}") from e

        descriptors: List[ChunkDescriptor] = []
        calculator = IncrementalChecksumCalculator()

        try:
            async for chunk_data in iter_fixed_chunks(source, self.chunk_size):
                descriptor = ChunkDescriptor(
                    file_id=file_id,
                    chunk_index=len(descriptors),
                    size=len(chunk_data),
                    checksum=compute_checksum(chunk_data),
                )
                await run_blocking(self.chunk_store.put, file_id, descriptor.chunk_index, chunk_data)
                calculator.update(chunk_data)
                descriptors.append(descriptor)

            record = await run_blocking(
                self.file_repo.publish,
                file_id,
                calculator.length,
                calculator.finalize(),
                descriptors,
            )
        except asyncio.CancelledError:
            logger.warning(
                f"Upload of {filename} cancelled after {len(descriptors)} chunks [file_id={file_id}]"
            )
            await self._abort(file_id)
            raise
        except Exception as e:
            logger.error(
                f"Upload of {filename} failed after {len(descriptors)} chunks [file_id={file_id}]: {e}"
            )
            await self._abort(file_id)
            raise UploadFailedError(f"Upload of {filename} failed: {e}") from e

        return record

    async def _abort(self, file_id: str) -> None:
        """
        Best-effort removal of a failed upload's chunks and reservation.

        If the chunks cannot be removed the reservation is kept so the
        sweeper retries later.

        On cancellation a put already handed to the executor keeps running
        and may land after this cleanup. Its chunk directory then has no
        index row and is removed by the sweeper's orphan pass.
        """
        try:
            removed = await run_blocking(self.chunk_store.delete_all, file_id)
        except Exception as e:
            logger.error(f"Cleanup of chunks for file {file_id} failed, leaving it to the sweeper: {e}")
            return

        try:
            await run_blocking(self.file_repo.release, file_id)
        except Exception as e:
            logger.error(f"Failed to release reservation for file {file_id}: {e}")
            return

        logger.info(f"Cleaned up failed upload [file_id={file_id}] ({removed} chunks removed)")
