"""Pydantic schemas for API requests and responses."""

from gateway.schemas.files import (
    FileRecordResponse,
    FileListResponse,
    UploadResponse,
    DeleteFileResponse,
    MessageResponse,
    DeleteErrorResponse
)
from gateway.schemas.common import ErrorResponse

__all__ = [
    "FileRecordResponse",
    "FileListResponse",
    "UploadResponse",
    "DeleteFileResponse",
    "MessageResponse",
    "DeleteErrorResponse",
    "ErrorResponse"
]
