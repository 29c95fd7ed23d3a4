"""SHA-256 helpers for chunk verification and whole-blob digests."""

import hashlib

from chunkstore.exceptions import ChecksumMismatchError


def compute_checksum(data: bytes) -> str:
    """
    Compute SHA-256 checksum for given data.

    Args:
        data: Bytes to compute checksum for

    Returns:
        Hexadecimal string representation of SHA-256 hash
    """
    return hashlib.sha256(data).hexdigest()


def verify_checksum(data: bytes, expected: str, label: str = "chunk") -> None:
    """
    Verify that data matches expected checksum.

    Args:
        data: Bytes to verify
        expected: Expected SHA-256 checksum (hex string)
        label: Description of the data used in the error message

    Raises:
        ChecksumMismatchError: If the computed checksum differs
    """
    actual = compute_checksum(data)
    if actual != expected:
        raise ChecksumMismatchError(
            f"Checksum mismatch for {label}: expected {expected}, got {actual}"
        )


class IncrementalChecksumCalculator:
    """
    Calculate SHA-256 checksum and byte count incrementally for streaming data.

    Usage:
        calculator = IncrementalChecksumCalculator()
        calculator.update(chunk1)
        calculator.update(chunk2)
        total = calculator.length
        final_checksum = calculator.finalize()
    """

    def __init__(self):
        self._hasher = hashlib.sha256()
        self._length = 0
        self._finalized = False

    @property
    def length(self) -> int:
        return self._length

    def update(self, data: bytes) -> None:
        if self._finalized:
            raise ValueError("Cannot update after finalization")
        self._hasher.update(data)
        self._length += len(data)

    def finalize(self) -> str:
        self._finalized = True
        return self._hasher.hexdigest()
