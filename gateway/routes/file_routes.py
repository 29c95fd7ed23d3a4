"""File upload, listing, download and deletion routes."""

import sqlite3
from typing import AsyncIterator, Optional

from fastapi import APIRouter, Depends, File, Header, UploadFile, status
from fastapi.responses import JSONResponse, StreamingResponse

from common.constants import STREAM_PIECE_SIZE_BYTES
from common.logging_config import get_logger
from chunkstore.exceptions import ChunkStoreError
from gateway.exceptions import FileNotFoundError, GridVaultException, NoFileUploadedError
from gateway.repositories.file_repository import FileRepository
from gateway.schemas.files import (
    DeleteErrorResponse,
    DeleteFileResponse,
    FileListResponse,
    FileRecordResponse,
    MessageResponse,
    UploadResponse,
)
from gateway.service_locator import get_blob_reader, get_blob_writer, get_deletion_service
from gateway.services.blob_reader import BlobReader
from gateway.services.blob_writer import BlobWriter
from gateway.services.deletion_service import DeletionService
from gateway.utils import is_valid_uuid, parse_range_header, run_blocking

logger = get_logger(__name__)

router = APIRouter(tags=["Files"])

NO_FILES_FOUND = {"message": "No files found"}
FILE_NOT_FOUND = {"message": "File not found"}
DELETE_NOT_FOUND = {"error": "File not found or already deleted"}


async def iter_upload(upload: UploadFile, piece_size: int = STREAM_PIECE_SIZE_BYTES) -> AsyncIterator[bytes]:
    """Yield an uploaded file's bytes in pieces without loading it whole."""
    while True:
        piece = await upload.read(piece_size)
        if not piece:
            break
        yield piece


@router.post("/upload", response_model=UploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    blob_writer: BlobWriter = Depends(get_blob_writer),
):
    """
    Upload a file.

    Parameters:
        - file: File to upload (multipart/form-data field "file")

    Returns:
        - success: true
        - file: Stored file metadata
        - url: Download path, /files/<filename>

    Raises:
        - 400: No file attached
        - 409: Generated filename collided
        - 500: Storage failure
    """
    if file is None:
        raise NoFileUploadedError("No file uploaded")

    record = await blob_writer.write(
        iter_upload(file),
        original_name=file.filename,
        content_type=file.content_type,
    )

    return UploadResponse(
        success=True,
        file=FileRecordResponse.from_record(record),
        url=record.url,
    )


@router.get(
    "/files",
    response_model=FileListResponse,
    responses={status.HTTP_404_NOT_FOUND: {"model": MessageResponse}},
)
async def list_files():
    """
    List metadata of every stored file.

    Raises:
        - 404: Store is empty
    """
    records = await run_blocking(FileRepository.list_files)

    if not records:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=NO_FILES_FOUND)

    return [FileRecordResponse.from_record(record) for record in records]


@router.get(
    "/files/{filename}",
    response_class=StreamingResponse,
    responses={
        status.HTTP_404_NOT_FOUND: {"model": MessageResponse},
        416: {"description": "Range not satisfiable"},
    },
)
async def download_file(
    filename: str,
    range_header: Optional[str] = Header(None, alias="Range"),
    blob_reader: BlobReader = Depends(get_blob_reader),
):
    """
    Stream a file's raw bytes by its storage filename.

    A single "Range: bytes=a-b" header yields a 206 partial response.

    Raises:
        - 404: Unknown filename
        - 416: Range outside the file
    """
    try:
        record = await blob_reader.resolve(filename=filename)
    except FileNotFoundError:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=FILE_NOT_FOUND)

    byte_range = parse_range_header(range_header, record.length)

    if byte_range is None:
        stream = await blob_reader.open_record(record)
        return StreamingResponse(
            stream,
            media_type=record.content_type,
            headers={
                "Content-Length": str(record.length),
                "Accept-Ranges": "bytes",
            }
        )

    start, end = byte_range
    stream = await blob_reader.open_record(record, start, end)
    return StreamingResponse(
        stream,
        status_code=status.HTTP_206_PARTIAL_CONTENT,
        media_type=record.content_type,
        headers={
            "Content-Length": str(end - start),
            "Content-Range": f"bytes {start}-{end - 1}/{record.length}",
            "Accept-Ranges": "bytes",
        }
    )


@router.delete(
    "/files/{file_id}",
    response_model=DeleteFileResponse,
    responses={status.HTTP_404_NOT_FOUND: {"model": DeleteErrorResponse}},
)
async def delete_file(
    file_id: str,
    deletion_service: DeletionService = Depends(get_deletion_service),
):
    """
    Delete a file and all its chunks by file id.

    Raises:
        - 404: Unknown or malformed id, or any failure during deletion
    """
    if not is_valid_uuid(file_id):
        logger.warning(f"Rejected delete of malformed file id {file_id!r}")
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=DELETE_NOT_FOUND)

    try:
        await deletion_service.delete(file_id)
    except (GridVaultException, ChunkStoreError, sqlite3.Error) as e:
        logger.warning(f"Delete of file {file_id} failed: {e}")
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=DELETE_NOT_FOUND)

    return DeleteFileResponse()
