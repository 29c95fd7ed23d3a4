"""Tests for the chunk store backends."""

from pathlib import Path

import pytest

from chunkstore.exceptions import ChunkNotFoundError, PartialDeleteError, WriteFailedError
from chunkstore.local import LocalChunkStore
from chunkstore.memory import MemoryChunkStore
from conftest import stored_chunks


@pytest.fixture(params=["local", "memory"])
def store(request, tmp_path):
    if request.param == "local":
        store = LocalChunkStore(tmp_path / "chunks")
        store.ensure_root()
        return store
    return MemoryChunkStore()


class TestChunkStoreContract:
    """Behaviour shared by every backend."""

    def test_put_then_get(self, store):
        store.put("file-1", 0, b"hello")
        store.put("file-1", 1, b"world")

        assert store.get("file-1", 0) == b"hello"
        assert store.get("file-1", 1) == b"world"
        assert stored_chunks(store, "file-1") == 2

    def test_empty_chunk_round_trips(self, store):
        store.put("file-1", 0, b"")
        assert store.get("file-1", 0) == b""

    def test_put_is_append_only(self, store):
        store.put("file-1", 0, b"original")

        with pytest.raises(WriteFailedError):
            store.put("file-1", 0, b"replacement")

        assert store.get("file-1", 0) == b"original"

    def test_get_missing_chunk(self, store):
        with pytest.raises(ChunkNotFoundError):
            store.get("file-1", 0)

        store.put("file-1", 0, b"data")
        with pytest.raises(ChunkNotFoundError):
            store.get("file-1", 1)

    def test_invalid_keys_rejected(self, store):
        with pytest.raises(WriteFailedError):
            store.put("../escape", 0, b"data")
        with pytest.raises(WriteFailedError):
            store.put("file-1", -1, b"data")
        with pytest.raises(ChunkNotFoundError):
            store.get("../escape", 0)

    def test_delete_all(self, store):
        for index in range(3):
            store.put("file-1", index, b"x" * index)
        store.put("file-2", 0, b"keep")

        assert store.delete_all("file-1") == 3
        assert stored_chunks(store, "file-1") == 0
        assert store.get("file-2", 0) == b"keep"

    def test_delete_all_unknown_file(self, store):
        assert store.delete_all("never-written") == 0

    def test_list_file_ids(self, store):
        store.put("file-a", 0, b"a")
        store.put("file-b", 0, b"b")
        store.delete_all("file-a")

        assert store.list_file_ids() == ["file-b"]

    def test_ping(self, store):
        assert store.ping() is True


class TestLocalChunkStore:
    def test_layout_on_disk(self, local_store):
        local_store.put("file-1", 7, b"payload")

        path = local_store.get_chunk_path("file-1", 7)
        assert path == local_store.root / "file-1" / "00000007.chk"
        assert path.read_bytes() == b"payload"

    def test_no_temp_files_left_behind(self, local_store):
        local_store.put("file-1", 0, b"payload")

        names = [entry.name for entry in (local_store.root / "file-1").iterdir()]
        assert names == ["00000000.chk"]

    def test_failed_write_raises_write_failed(self, local_store, monkeypatch):
        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("chunkstore.local.os.replace", broken_replace)

        with pytest.raises(WriteFailedError):
            local_store.put("file-1", 0, b"payload")

        assert list((local_store.root / "file-1").iterdir()) == []

    def test_delete_all_removes_directory(self, local_store):
        local_store.put("file-1", 0, b"a")
        local_store.delete_all("file-1")

        assert not (local_store.root / "file-1").exists()
        assert local_store.list_file_ids() == []

    def test_partial_delete(self, local_store, monkeypatch):
        for index in range(3):
            local_store.put("file-1", index, b"data")

        original_unlink = Path.unlink

        def flaky_unlink(self, *args, **kwargs):
            if self.name == "00000001.chk":
                raise PermissionError("read-only")
            return original_unlink(self, *args, **kwargs)

        monkeypatch.setattr(Path, "unlink", flaky_unlink)

        with pytest.raises(PartialDeleteError) as exc_info:
            local_store.delete_all("file-1")

        assert exc_info.value.deleted == 2
        assert exc_info.value.remaining == 1
        assert local_store.get_chunk_path("file-1", 1).exists()

    def test_ping_creates_root(self, tmp_path):
        store = LocalChunkStore(tmp_path / "fresh" / "chunks")
        assert store.ping() is True
        assert store.root.is_dir()
