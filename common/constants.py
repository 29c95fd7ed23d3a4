"""Project-wide constants (chunk sizes, stream piece size, default paths)."""

import os

DEFAULT_CHUNK_SIZE_BYTES: int = 255 * 1024  # same default as a GridFS bucket

CHUNK_SIZE_BYTES: int = int(os.environ.get("GRIDVAULT_CHUNK_SIZE", str(DEFAULT_CHUNK_SIZE_BYTES)))

STREAM_PIECE_SIZE_BYTES: int = 64 * 1024

DEFAULT_CHUNK_STORAGE_PATH: str = "./data/chunks"

DEFAULT_DATABASE_PATH: str = "./data/gridvault.db"

STORAGE_FILENAME_RANDOM_BYTES: int = 16

DEFAULT_CONTENT_TYPE: str = "application/octet-stream"
