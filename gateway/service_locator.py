"""Service locator for the storage components built at startup."""

from typing import Optional

from chunkstore.base import ChunkStore
from gateway.services.blob_reader import BlobReader
from gateway.services.blob_writer import BlobWriter
from gateway.services.deletion_service import DeletionService

_chunk_store: Optional[ChunkStore] = None
_blob_writer: Optional[BlobWriter] = None
_blob_reader: Optional[BlobReader] = None
_deletion_service: Optional[DeletionService] = None


class ServicesNotReadyError(RuntimeError):
    """Raised when a request arrives before startup has wired the services."""


def configure(chunk_store: ChunkStore, chunk_size: int) -> None:
    """Build the blob services around a chunk store and register them"""
    global _chunk_store, _blob_writer, _blob_reader, _deletion_service
    _chunk_store = chunk_store
    _blob_writer = BlobWriter(chunk_store, chunk_size=chunk_size)
    _blob_reader = BlobReader(chunk_store)
    _deletion_service = DeletionService(chunk_store)


def reset() -> None:
    """Forget all registered services"""
    global _chunk_store, _blob_writer, _blob_reader, _deletion_service
    _chunk_store = None
    _blob_writer = None
    _blob_reader = None
    _deletion_service = None


def _require(service):
    if service is None:
        raise ServicesNotReadyError("Storage services are not initialized")
    return service


def get_chunk_store() -> ChunkStore:
    """Get global chunk store instance"""
    return _require(_chunk_store)


def get_blob_writer() -> BlobWriter:
    """Get global blob writer instance"""
    return _require(_blob_writer)


def get_blob_reader() -> BlobReader:
    """Get global blob reader instance"""
    return _require(_blob_reader)


def get_deletion_service() -> DeletionService:
    """Get global deletion service instance"""
    return _require(_deletion_service)
