"""Tests for gateway helper functions."""

import re

import pytest

from gateway.exceptions import InvalidRangeError
from gateway.utils import (
    generate_storage_filename,
    is_valid_uuid,
    parse_range_header,
    resolve_content_type,
)


class TestStorageFilename:
    def test_random_hex_plus_extension(self):
        filename = generate_storage_filename("holiday photo.JPG")
        assert re.fullmatch(r"[0-9a-f]{32}\.JPG", filename)

    def test_only_last_extension_kept(self):
        assert generate_storage_filename("backup.tar.gz").endswith(".gz")

    @pytest.mark.parametrize("name", [None, "", "README", ".bashrc"])
    def test_no_extension(self, name):
        assert re.fullmatch(r"[0-9a-f]{32}", generate_storage_filename(name))

    def test_names_do_not_repeat(self):
        names = {generate_storage_filename("a.txt") for _ in range(1000)}
        assert len(names) == 1000


class TestContentType:
    def test_declared_type_is_kept(self):
        assert resolve_content_type("image/png", "x.txt") == "image/png"

    def test_generic_type_is_sniffed(self):
        assert resolve_content_type("application/octet-stream", "page.html") == "text/html"

    def test_missing_type_is_sniffed(self):
        assert resolve_content_type(None, "notes.txt") == "text/plain"

    def test_unknown_falls_back_to_octet_stream(self):
        assert resolve_content_type(None, "blob.unknownext") == "application/octet-stream"


class TestRangeHeader:
    @pytest.mark.parametrize("header, expected", [
        ("bytes=0-99", (0, 100)),
        ("bytes=100-", (100, 1000)),
        ("bytes=-10", (990, 1000)),
        ("bytes=-5000", (0, 1000)),
        ("bytes=900-5000", (900, 1000)),
        ("bytes=999-999", (999, 1000)),
    ])
    def test_satisfiable(self, header, expected):
        assert parse_range_header(header, 1000) == expected

    @pytest.mark.parametrize("header", [None, "", "items=0-1", "bytes=0-1,5-6", "bytes=-", "bytes=10-5"])
    def test_ignored(self, header):
        assert parse_range_header(header, 1000) is None

    @pytest.mark.parametrize("header, length", [("bytes=1000-", 1000), ("bytes=-0", 1000), ("bytes=0-", 0)])
    def test_unsatisfiable(self, header, length):
        with pytest.raises(InvalidRangeError) as exc_info:
            parse_range_header(header, length)
        assert exc_info.value.length == length


def test_is_valid_uuid():
    assert is_valid_uuid("0b8e6d9e-6f3c-4e8e-9d0c-2a1f4b5c6d7e")
    assert not is_valid_uuid("not-a-valid-id")
    assert not is_valid_uuid("")
