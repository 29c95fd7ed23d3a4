"""Database schema and connection management for the SQLite file index."""

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Generator

from gateway.config import DATABASE_PATH, DATABASE_BUSY_TIMEOUT_SECONDS


def init_database() -> None:
    """
    Initialize database and create tables if they don't exist.
    """
    db_path = Path(DATABASE_PATH)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    with get_db_connection() as conn:
        cursor = conn.cursor()

        cursor.execute("PRAGMA journal_mode=WAL")

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS files (
                file_id TEXT PRIMARY KEY,
                filename TEXT UNIQUE NOT NULL,
                original_name TEXT NOT NULL,
                content_type TEXT NOT NULL,
                chunk_size INTEGER NOT NULL,
                status TEXT NOT NULL DEFAULT 'reserved',
                length INTEGER,
                chunk_count INTEGER,
                checksum TEXT,
                reserved_at TEXT NOT NULL,
                upload_date TEXT
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS chunks (
                file_id TEXT NOT NULL,
                chunk_index INTEGER NOT NULL,
                size INTEGER NOT NULL,
                checksum TEXT NOT NULL,
                PRIMARY KEY(file_id, chunk_index),
                FOREIGN KEY(file_id) REFERENCES files(file_id) ON DELETE CASCADE
            )
        """)

        cursor.execute("""
            CREATE TABLE IF NOT EXISTS file_tombstones (
                filename TEXT PRIMARY KEY,
                file_id TEXT NOT NULL,
                deleted_at TEXT NOT NULL
            )
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_files_status_upload ON files(status, upload_date)
        """)

        cursor.execute("""
            CREATE INDEX IF NOT EXISTS idx_files_status_reserved ON files(status, reserved_at)
        """)

        conn.commit()


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Context manager for database connections.
    """
    conn = sqlite3.connect(DATABASE_PATH, timeout=DATABASE_BUSY_TIMEOUT_SECONDS)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    try:
        yield conn
    finally:
        conn.close()
