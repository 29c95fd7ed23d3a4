"""Pydantic schemas for file endpoints."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from common.types import FileRecord


class FileRecordResponse(BaseModel):
    """Metadata of a stored file, serialized with camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    filename: str
    original_name: str
    content_type: str
    length: int
    chunk_size: int
    chunk_count: int
    upload_date: datetime
    checksum: str

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileRecordResponse":
        return cls(
            id=record.file_id,
            filename=record.filename,
            original_name=record.original_name,
            content_type=record.content_type,
            length=record.length,
            chunk_size=record.chunk_size,
            chunk_count=record.chunk_count,
            upload_date=record.upload_date,
            checksum=record.checksum,
        )


class UploadResponse(BaseModel):
    """Response model for file upload."""
    success: bool = True
    file: FileRecordResponse
    url: str


class DeleteFileResponse(BaseModel):
    """Response model for file deletion."""
    success: bool = True
    message: str = "File deleted successfully"


class MessageResponse(BaseModel):
    """Not-found body used by the listing and download endpoints."""
    message: str


class DeleteErrorResponse(BaseModel):
    """Not-found body used by the delete endpoint."""
    error: str


FileListResponse = List[FileRecordResponse]
