"""Entry point for the GridVault gateway."""

import time
import uuid
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from common.logging_config import setup_logging
from chunkstore.base import ChunkStore
from chunkstore.local import LocalChunkStore
from chunkstore.memory import MemoryChunkStore
from gateway import service_locator
from gateway.cleanup_task import ReservationSweeper
from gateway.config import (
    CHUNK_BACKEND,
    CHUNK_SIZE,
    CHUNK_STORAGE_PATH,
    GATEWAY_HOST,
    GATEWAY_PORT,
    RESERVATION_TTL_SECONDS,
    SWEEP_INTERVAL_SECONDS,
)
from gateway.database import init_database
from gateway.exceptions import (
    GridVaultException,
    DuplicateFilenameError,
    FileNotFoundError,
    InvalidRangeError,
    NoFileUploadedError,
    StreamInterruptedError,
    UploadFailedError,
)
from gateway.repositories.file_repository import FileRepository
from gateway.routes.file_routes import router as file_router
from gateway.schemas.common import ErrorResponse
from gateway.service_locator import ServicesNotReadyError

logger = setup_logging('gateway')
setup_logging('chunkstore')


def build_chunk_store() -> ChunkStore:
    """
    Construct the configured chunk store backend.
    """
    if CHUNK_BACKEND == "memory":
        logger.warning("Using in-memory chunk store; stored files will not survive a restart")
        return MemoryChunkStore()

    if CHUNK_BACKEND == "local":
        store = LocalChunkStore(Path(CHUNK_STORAGE_PATH))
        store.ensure_root()
        return store

    raise ValueError(f"Unknown chunk backend {CHUNK_BACKEND!r}")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Initialize storage before accepting traffic and tear it down on shutdown.
    """
    logger.info("GridVault gateway starting up...")

    init_database()
    logger.info("File index initialized")

    chunk_store = build_chunk_store()
    service_locator.configure(chunk_store, CHUNK_SIZE)
    logger.info(f"Chunk store ready (backend={CHUNK_BACKEND}, chunk_size={CHUNK_SIZE})")

    sweeper = ReservationSweeper(
        chunk_store,
        interval_seconds=SWEEP_INTERVAL_SECONDS,
        reservation_ttl_seconds=RESERVATION_TTL_SECONDS,
    )
    await sweeper.start()
    app.state.sweeper = sweeper

    try:
        yield
    finally:
        logger.info("GridVault gateway shutting down...")
        await sweeper.stop()
        service_locator.reset()
        logger.info("Storage services released")


app = FastAPI(
    title="GridVault",
    description="HTTP file-storage gateway over a chunked blob store",
    version="1.0.0",
    lifespan=lifespan,
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """
    Middleware to log all HTTP requests and responses.
    """
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    logger.info(f"Request started: {request.method} {request.url.path} [request_id={request_id}]")

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"Request completed: {request.method} {request.url.path} "
        f"status={response.status_code} duration={duration:.3f}s [request_id={request_id}]"
    )

    response.headers["X-Request-ID"] = request_id

    return response


def _error_response(status_code: int, exc: Exception, code: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(detail=str(exc), code=code).model_dump(),
        headers=headers,
    )


@app.exception_handler(NoFileUploadedError)
async def no_file_uploaded_handler(request: Request, exc: NoFileUploadedError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Upload without file [request_id={request_id}] path={request.url.path}")
    return _error_response(status.HTTP_400_BAD_REQUEST, exc, "NO_FILE")


@app.exception_handler(DuplicateFilenameError)
async def duplicate_filename_handler(request: Request, exc: DuplicateFilenameError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Duplicate filename error: {exc} [request_id={request_id}] path={request.url.path}")
    return _error_response(status.HTTP_409_CONFLICT, exc, "DUPLICATE_FILENAME")


@app.exception_handler(UploadFailedError)
async def upload_failed_handler(request: Request, exc: UploadFailedError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Upload failed: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "UPLOAD_FAILED")


@app.exception_handler(FileNotFoundError)
async def file_not_found_handler(request: Request, exc: FileNotFoundError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"File not found error: {exc} [request_id={request_id}] path={request.url.path}")
    return _error_response(status.HTTP_404_NOT_FOUND, exc, "FILE_NOT_FOUND")


@app.exception_handler(InvalidRangeError)
async def invalid_range_handler(request: Request, exc: InvalidRangeError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.warning(f"Invalid range error: {exc} [request_id={request_id}] path={request.url.path}")
    return _error_response(
        416,
        exc,
        "RANGE_NOT_SATISFIABLE",
        headers={"Content-Range": f"bytes */{exc.length}"},
    )


@app.exception_handler(StreamInterruptedError)
async def stream_interrupted_handler(request: Request, exc: StreamInterruptedError):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"Stream interrupted: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "STREAM_INTERRUPTED")


@app.exception_handler(ServicesNotReadyError)
async def services_not_ready_handler(request: Request, exc: ServicesNotReadyError):
    logger.error(f"Request before startup completed: path={request.url.path}")
    return _error_response(status.HTTP_503_SERVICE_UNAVAILABLE, exc, "NOT_READY")


@app.exception_handler(GridVaultException)
async def gridvault_exception_handler(request: Request, exc: GridVaultException):
    request_id = getattr(request.state, 'request_id', 'unknown')
    logger.error(
        f"GridVault exception: {exc} [request_id={request_id}] path={request.url.path}",
        exc_info=True
    )
    return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, exc, "INTERNAL_ERROR")


app.include_router(file_router)


@app.get("/")
async def root():
    """
    Root endpoint for health check.
    """
    return {"message": "GridVault API", "status": "running"}


@app.get("/health")
async def health_check():
    """
    Liveness probe. Returns 200 if the process is serving requests.
    """
    return {"status": "healthy", "service": "gateway"}


@app.get("/ready")
async def ready_check():
    """
    Readiness check endpoint.
    Verifies the file index and the chunk store.
    """
    index_status = "ok" if FileRepository.ping() else "error"

    try:
        chunk_store = service_locator.get_chunk_store()
        chunk_store_status = "ok" if chunk_store.ping() else "error"
    except ServicesNotReadyError as e:
        chunk_store_status = f"error: {e}"

    ready = index_status == "ok" and chunk_store_status == "ok"
    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "ready": ready,
            "index": index_status,
            "chunk_store": chunk_store_status
        }
    )


def main() -> None:
    """
    Start the FastAPI server with uvicorn.
    """
    uvicorn.run(
        "gateway.main:app",
        host=GATEWAY_HOST,
        port=GATEWAY_PORT,
    )


if __name__ == "__main__":
    main()
