"""Service layer: blob writer, blob reader and deletion service."""

from gateway.services.blob_writer import BlobWriter
from gateway.services.blob_reader import BlobReader
from gateway.services.deletion_service import DeletionService

__all__ = [
    "BlobWriter",
    "BlobReader",
    "DeletionService",
]
