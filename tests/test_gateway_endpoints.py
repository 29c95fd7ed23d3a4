"""Tests for the gateway HTTP endpoints."""

import os
import warnings

import pytest
from fastapi.testclient import TestClient

from chunkstore.exceptions import WriteFailedError
from gateway import service_locator
from gateway.main import app

CHUNK_SIZE = 1024


@pytest.fixture
def client(test_db, tmp_path, monkeypatch):
    """Create FastAPI test client with storage rooted in a temp directory."""
    monkeypatch.setattr("gateway.main.CHUNK_BACKEND", "local")
    monkeypatch.setattr("gateway.main.CHUNK_STORAGE_PATH", str(tmp_path / "chunks"))
    monkeypatch.setattr("gateway.main.CHUNK_SIZE", CHUNK_SIZE)

    with TestClient(app) as client:
        yield client


def upload(client, data, name="sample.txt", content_type="text/plain"):
    response = client.post("/upload", files={"file": (name, data, content_type)})
    assert response.status_code == 200, response.text
    return response.json()


def test_root_endpoint(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_health_and_ready(client):
    assert client.get("/health").json()["status"] == "healthy"

    response = client.get("/ready")
    assert response.status_code == 200
    assert response.json() == {"ready": True, "index": "ok", "chunk_store": "ok"}


def test_request_id_header(client):
    response = client.get("/health")
    assert response.headers["X-Request-ID"]


def test_list_files_empty_store(client):
    response = client.get("/files")
    assert response.status_code == 404
    assert response.json() == {"message": "No files found"}


def test_upload_response_shape(client):
    data = b"hello gridvault" * 200

    body = upload(client, data, name="greeting.txt")

    assert body["success"] is True
    record = body["file"]
    assert body["url"] == f"/files/{record['filename']}"
    assert record["filename"].endswith(".txt")
    assert record["originalName"] == "greeting.txt"
    assert record["contentType"] == "text/plain"
    assert record["length"] == len(data)
    assert record["chunkSize"] == CHUNK_SIZE
    assert record["chunkCount"] == -(-len(data) // CHUNK_SIZE)
    assert record["id"]
    assert record["uploadDate"]
    assert len(record["checksum"]) == 64


def test_upload_without_file(client):
    response = client.post("/upload", files={"attachment": ("a.txt", b"data")})
    assert response.status_code == 400
    assert response.json()["code"] == "NO_FILE"


def test_upload_storage_failure(client, monkeypatch):
    def broken_put(file_id, sequence_number, data):
        raise WriteFailedError("disk on fire")

    monkeypatch.setattr(service_locator.get_chunk_store(), "put", broken_put)

    response = client.post("/upload", files={"file": ("a.bin", b"x" * 5000, "application/octet-stream")})

    assert response.status_code == 500
    assert response.json()["code"] == "UPLOAD_FAILED"
    assert client.get("/files").status_code == 404


@pytest.mark.parametrize("length", [0, 1, CHUNK_SIZE, CHUNK_SIZE * 5 + 3])
def test_download_round_trip(client, length):
    data = os.urandom(length)
    body = upload(client, data, name="random.bin", content_type="application/octet-stream")

    response = client.get(body["url"])

    assert response.status_code == 200
    assert response.content == data
    assert response.headers["content-type"] == "application/octet-stream"
    assert response.headers["content-length"] == str(length)
    assert response.headers["accept-ranges"] == "bytes"


def test_download_unknown_file(client):
    response = client.get("/files/0123456789abcdef0123456789abcdef.txt")
    assert response.status_code == 404
    assert response.json() == {"message": "File not found"}


def test_download_range(client):
    data = bytes(range(256)) * 10
    body = upload(client, data, name="range.bin", content_type="application/octet-stream")

    response = client.get(body["url"], headers={"Range": "bytes=1000-1099"})

    assert response.status_code == 206
    assert response.content == data[1000:1100]
    assert response.headers["content-range"] == f"bytes 1000-1099/{len(data)}"
    assert response.headers["content-length"] == "100"


def test_download_unsatisfiable_range(client):
    body = upload(client, b"short")

    response = client.get(body["url"], headers={"Range": "bytes=100-"})

    assert response.status_code == 416
    assert response.headers["content-range"] == "bytes */5"


def test_list_files_after_uploads(client):
    lengths = [3, CHUNK_SIZE + 1, 0]
    for length in lengths:
        upload(client, b"a" * length)

    response = client.get("/files")

    assert response.status_code == 200
    records = response.json()
    assert len(records) == 3
    assert sorted(record["length"] for record in records) == sorted(lengths)


def test_delete_file(client):
    body = upload(client, b"delete me" * 300)

    response = client.delete(f"/files/{body['file']['id']}")

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "File deleted successfully"}
    assert client.get(body["url"]).status_code == 404
    assert client.get("/files").status_code == 404


def test_delete_twice(client):
    body = upload(client, b"once")
    client.delete(f"/files/{body['file']['id']}")

    response = client.delete(f"/files/{body['file']['id']}")

    assert response.status_code == 404
    assert response.json() == {"error": "File not found or already deleted"}


@pytest.mark.parametrize("file_id", ["bad-id", "0b8e6d9e-6f3c-4e8e-9d0c-2a1f4b5c6d7e"])
def test_delete_unknown_or_malformed_id(client, file_id):
    response = client.delete(f"/files/{file_id}")
    assert response.status_code == 404
    assert response.json() == {"error": "File not found or already deleted"}


def test_delete_by_filename_is_not_supported(client):
    body = upload(client, b"keep")

    response = client.delete(body["url"])

    assert response.status_code == 404
    assert client.get(body["url"]).content == b"keep"


def test_unsatisfiable_range_emits_no_deprecation_warning(client):
    body = upload(client, b"short")

    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        response = client.get(body["url"], headers={"Range": "bytes=100-"})

    assert response.status_code == 416
    assert not [
        w for w in caught
        if issubclass(w.category, DeprecationWarning) and "416" in str(w.message)
    ]
