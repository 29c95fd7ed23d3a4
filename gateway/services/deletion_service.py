"""Deletion service: removes a file's chunks, then its index entry."""

from typing import Optional

from common.logging_config import get_logger
from common.types import FileRecord
from chunkstore.base import ChunkStore
from chunkstore.exceptions import PartialDeleteError
from gateway.repositories.file_repository import FileRepository
from gateway.utils import run_blocking

logger = get_logger(__name__)


class DeletionService:
    """
    Deletes published files.

    Chunks go first, then the index entry. A reader that resolved the file
    just before deletion may therefore hit a missing chunk and fail with
    StreamInterruptedError instead of serving stale bytes.
    """

    def __init__(self, chunk_store: ChunkStore, file_repo: Optional[FileRepository] = None):
        self.chunk_store = chunk_store
        self.file_repo = file_repo or FileRepository()

    async def delete(self, file_id: str) -> FileRecord:
        """
        Delete a file by id.

        Args:
            file_id: Id of a published file

        Returns:
            The record that was removed

        Raises:
            FileNotFoundError: If no published file has this id
            PartialDeleteError: If some chunks survived; the index entry is
                removed anyway and the leftovers are swept later
        """
        record = await run_blocking(self.file_repo.lookup_by_id, file_id)

        try:
            removed = await run_blocking(self.chunk_store.delete_all, file_id)
        except PartialDeleteError as e:
            logger.error(f"Partial delete of file {file_id}: {e}; removing index entry, leftovers go to the sweeper")
            await run_blocking(self.file_repo.remove, file_id)
            raise

        record = await run_blocking(self.file_repo.remove, file_id)
        logger.info(f"Deleted file {record.filename} [file_id={file_id}] ({removed} chunks)")
        return record
