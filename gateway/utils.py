"""Utility helper functions for the gateway."""

import asyncio
import functools
import mimetypes
import os
import re
import secrets
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Tuple

from common.constants import DEFAULT_CONTENT_TYPE, STORAGE_FILENAME_RANDOM_BYTES
from gateway.exceptions import InvalidRangeError


def generate_uuid() -> str:
    """
    Generate a new UUID4 string.

    Returns:
        UUID4 string
    """
    return str(uuid.uuid4())


def is_valid_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except (ValueError, AttributeError, TypeError):
        return False
    return True


def get_current_timestamp() -> datetime:
    """
    Get current UTC time as an aware datetime.
    """
    return datetime.now(timezone.utc)


def generate_storage_filename(original_name: Optional[str]) -> str:
    """
    Build a collision-resistant storage filename.

    16 random bytes, hex-encoded, followed by the original file's extension
    (e.g. "report.pdf" -> "9f1c...e2.pdf").

    Args:
        original_name: Client-supplied filename, used only for its extension

    Returns:
        Storage filename
    """
    extension = os.path.splitext(original_name or "")[1]
    return secrets.token_hex(STORAGE_FILENAME_RANDOM_BYTES) + extension


def resolve_content_type(declared: Optional[str], original_name: Optional[str]) -> str:
    """
    Pick the content type for an upload.

    The declared type wins unless it is missing or the generic octet-stream,
    in which case the type is guessed from the original filename.
    """
    if declared and declared.lower() != DEFAULT_CONTENT_TYPE:
        return declared

    guessed, _ = mimetypes.guess_type(original_name or "")
    if guessed:
        return guessed

    return declared or DEFAULT_CONTENT_TYPE


async def run_blocking(func: Callable[..., Any], *args: Any) -> Any:
    """
    Run a blocking storage call in the default executor.

    Args:
        func: Blocking callable (disk or SQLite access)
        *args: Positional arguments for func

    Returns:
        Whatever func returns
    """
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, functools.partial(func, *args))


_RANGE_PATTERN = re.compile(r"^bytes=(\d*)-(\d*)$")


def parse_range_header(header: Optional[str], length: int) -> Optional[Tuple[int, int]]:
    """
    Parse a single-range HTTP Range header.

    Multi-range and malformed headers are ignored (None), so the caller
    serves the whole file.

    Args:
        header: Raw Range header value, e.g. "bytes=0-1023"
        length: Total file length in bytes

    Returns:
        (start, end) with end exclusive, or None to serve the whole file

    Raises:
        InvalidRangeError: If the range is well-formed but unsatisfiable
    """
    if not header:
        return None

    match = _RANGE_PATTERN.match(header.strip())
    if match is None:
        return None

    first, last = match.groups()
    if not first and not last:
        return None

    if not first:
        suffix = int(last)
        if suffix == 0 or length == 0:
            raise InvalidRangeError(f"Unsatisfiable range {header}", length=length)
        return max(length - suffix, 0), length

    start = int(first)
    if last and int(last) < start:
        return None
    if start >= length:
        raise InvalidRangeError(f"Unsatisfiable range {header}", length=length)

    end = length if not last else min(int(last) + 1, length)
    return start, end
