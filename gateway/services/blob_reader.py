"""Blob reader: resolves a file and streams its chunks back in order."""

from typing import AsyncIterator, List, Optional, Tuple

from common.logging_config import get_logger
from common.types import ChunkDescriptor, FileRecord
from chunkstore.base import ChunkStore
from chunkstore.checksum_validator import verify_checksum
from chunkstore.exceptions import ChunkStoreError
from gateway.exceptions import InvalidRangeError, StreamInterruptedError
from gateway.repositories.file_repository import FileRepository
from gateway.utils import run_blocking

logger = get_logger(__name__)


class BlobReader:
    def __init__(self, chunk_store: ChunkStore, file_repo: Optional[FileRepository] = None):
        self.chunk_store = chunk_store
        self.file_repo = file_repo or FileRepository()

    async def resolve(self, filename: Optional[str] = None, file_id: Optional[str] = None) -> FileRecord:
        """
        Look up a published file by filename or id.

        Raises:
            FileNotFoundError: If nothing matches
        """
        if (filename is None) == (file_id is None):
            raise ValueError("Exactly one of filename or file_id is required")

        if filename is not None:
            return await run_blocking(self.file_repo.lookup_by_filename, filename)
        return await run_blocking(self.file_repo.lookup_by_id, file_id)

    async def open(
        self,
        filename: Optional[str] = None,
        file_id: Optional[str] = None,
        start: int = 0,
        end: Optional[int] = None,
    ) -> Tuple[FileRecord, AsyncIterator[bytes]]:
        """
        Open a file for streaming.

        Args:
            filename: Storage filename to resolve
            file_id: File id to resolve (alternative to filename)
            start: First byte offset to return (inclusive)
            end: Offset to stop at (exclusive); defaults to the file length

        Returns:
            The FileRecord and a lazy, single-use iterator over the bytes

        Raises:
            FileNotFoundError: If the file does not exist
            InvalidRangeError: If the byte range lies outside the file
        """
        record = await self.resolve(filename=filename, file_id=file_id)
        return record, await self.open_record(record, start, end)

    async def open_record(
        self,
        record: FileRecord,
        start: int = 0,
        end: Optional[int] = None,
    ) -> AsyncIterator[bytes]:
        """Open an already resolved record for streaming (see open)."""
        if end is None:
            end = record.length
        if start < 0 or end < start or end > record.length:
            raise InvalidRangeError(
                f"Range {start}-{end} outside file {record.filename} of {record.length} bytes",
                length=record.length,
            )

        chunks = await run_blocking(self.file_repo.get_chunks, record.file_id)
        return self._stream(record, chunks, start, end)

    async def _stream(
        self,
        record: FileRecord,
        chunks: List[ChunkDescriptor],
        start: int,
        end: int,
    ) -> AsyncIterator[bytes]:
        if start == end:
            return

        if len(chunks) != record.chunk_count:
            raise StreamInterruptedError(
                f"File {record.file_id} has {len(chunks)} of {record.chunk_count} chunks indexed"
            )

        first_index = start // record.chunk_size
        last_index = (end - 1) // record.chunk_size
        bytes_streamed = 0

        logger.info(
            f"Starting download of file {record.file_id} "
            f"(chunks {first_index}-{last_index} of {record.chunk_count}, bytes {start}-{end})"
        )

        for descriptor in chunks[first_index:last_index + 1]:
            try:
                data = await run_blocking(self.chunk_store.get, record.file_id, descriptor.chunk_index)
                verify_checksum(data, descriptor.checksum, label=f"chunk {descriptor.chunk_index} of {record.file_id}")
            except ChunkStoreError as e:
                logger.error(
                    f"Chunk {descriptor.chunk_index} of file {record.file_id} unavailable: {e}. "
                    f"Streamed {bytes_streamed}/{end - start} bytes before failure."
                )
                raise StreamInterruptedError(
                    f"Download of {record.filename} interrupted at chunk {descriptor.chunk_index}"
                ) from e

            chunk_offset = descriptor.chunk_index * record.chunk_size
            lo = max(start - chunk_offset, 0)
            hi = min(end - chunk_offset, len(data))
            piece = data[lo:hi]

            bytes_streamed += len(piece)
            yield piece

        logger.info(f"Successfully streamed file {record.file_id}: {bytes_streamed} bytes total")
