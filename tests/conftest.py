"""Shared pytest fixtures for all tests."""

from pathlib import Path
from typing import AsyncIterator, Generator

import pytest

from chunkstore.local import LocalChunkStore
from chunkstore.memory import MemoryChunkStore
from gateway.database import get_db_connection, init_database


@pytest.fixture
def test_db(tmp_path, monkeypatch) -> Generator[Path, None, None]:
    """
    Create a temporary file index database for each test.

    Args:
        tmp_path: pytest tmp_path fixture
        monkeypatch: pytest monkeypatch fixture

    Returns:
        Path to the SQLite database file
    """
    db_path = tmp_path / "index" / "test.db"
    monkeypatch.setattr("gateway.database.DATABASE_PATH", str(db_path))
    monkeypatch.setattr("gateway.config.DATABASE_PATH", str(db_path))
    init_database()
    yield db_path


@pytest.fixture
def local_store(tmp_path) -> LocalChunkStore:
    """
    Create a filesystem chunk store in a temporary directory.
    """
    store = LocalChunkStore(tmp_path / "chunks")
    store.ensure_root()
    return store


@pytest.fixture
def memory_store() -> MemoryChunkStore:
    return MemoryChunkStore()


async def pieces(data: bytes, piece_size: int = 1000) -> AsyncIterator[bytes]:
    """
    Feed bytes to a writer in fixed-size pieces, like a network stream.
    """
    for offset in range(0, len(data), piece_size):
        yield data[offset:offset + piece_size]


async def drain(stream: AsyncIterator[bytes]) -> bytes:
    """
    Collect a reader stream into a single bytes object.
    """
    buffer = bytearray()
    async for piece in stream:
        buffer.extend(piece)
    return bytes(buffer)


def stored_chunks(store, file_id: str) -> int:
    """
    Count the chunks a store currently holds for a file, bypassing its API.
    """
    if isinstance(store, MemoryChunkStore):
        return len(store._chunks.get(file_id, {}))
    return sum(1 for _ in (store.root / file_id).glob("*.chk"))


def is_tombstoned(filename: str) -> bool:
    """
    Check whether the file index has tombstoned a filename.
    """
    with get_db_connection() as conn:
        row = conn.execute(
            "SELECT 1 FROM file_tombstones WHERE filename = ?",
            (filename,)
        ).fetchone()
    return row is not None
