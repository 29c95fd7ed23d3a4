"""Shared data type definitions (FileRecord, ChunkDescriptor)."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class ChunkDescriptor:
    """
    Metadata for a single stored chunk of a file.
    """
    file_id: str
    chunk_index: int
    size: int
    checksum: str


@dataclass(frozen=True)
class FileRecord:
    """
    Complete metadata for a published file.
    """
    file_id: str
    filename: str
    original_name: str
    content_type: str
    length: int
    chunk_size: int
    chunk_count: int
    upload_date: datetime
    checksum: str

    @property
    def url(self) -> str:
        return f"/files/{self.filename}"
