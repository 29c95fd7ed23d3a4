"""Repository layer for data access."""

from gateway.repositories.file_repository import FileRepository

__all__ = [
    "FileRepository",
]
