"""File index repository: reservations, published records and tombstones."""

import sqlite3
from datetime import datetime
from typing import List, Set

from common.logging_config import get_logger
from common.types import ChunkDescriptor, FileRecord
from gateway.database import get_db_connection
from gateway.exceptions import DuplicateFilenameError, FileNotFoundError
from gateway.utils import generate_uuid, get_current_timestamp

logger = get_logger(__name__)

STATUS_RESERVED = "reserved"
STATUS_PUBLISHED = "published"

_RECORD_COLUMNS = (
    "file_id, filename, original_name, content_type, length, "
    "chunk_size, chunk_count, upload_date, checksum"
)


def _row_to_record(row: sqlite3.Row) -> FileRecord:
    return FileRecord(
        file_id=row["file_id"],
        filename=row["filename"],
        original_name=row["original_name"],
        content_type=row["content_type"],
        length=row["length"],
        chunk_size=row["chunk_size"],
        chunk_count=row["chunk_count"],
        upload_date=datetime.fromisoformat(row["upload_date"]),
        checksum=row["checksum"],
    )


class FileRepository:
    @staticmethod
    def reserve(
        filename: str,
        original_name: str,
        content_type: str,
        chunk_size: int,
    ) -> str:
        """
        Claim a filename for an upload in progress.

        The reservation is invisible to lookups and listings until published.

        Returns:
            The new file id

        Raises:
            DuplicateFilenameError: If the filename is live, reserved or tombstoned
        """
        file_id = generate_uuid()
        reserved_at = get_current_timestamp()

        with get_db_connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute("BEGIN IMMEDIATE")
                cursor.execute(
                    "SELECT 1 FROM file_tombstones WHERE filename = ?",
                    (filename,)
                )
                if cursor.fetchone() is not None:
                    raise DuplicateFilenameError(f"Filename {filename} was used by a deleted file")

                cursor.execute(
                    """
                    INSERT INTO files (file_id, filename, original_name, content_type, chunk_size, status, reserved_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (file_id, filename, original_name, content_type, chunk_size,
                     STATUS_RESERVED, reserved_at.isoformat())
                )
                conn.commit()
            except sqlite3.IntegrityError as e:
                conn.rollback()
                raise DuplicateFilenameError(f"Filename {filename} already exists") from e
            except Exception:
                conn.rollback()
                raise

        logger.debug(f"Reserved filename {filename} [file_id={file_id}]")
        return file_id

    @staticmethod
    def publish(
        file_id: str,
        length: int,
        checksum: str,
        chunks: List[ChunkDescriptor],
    ) -> FileRecord:
        """
        Make a reserved file visible, recording its chunk layout atomically.

        Must only be called once every chunk is durably stored.
        """
        for expected_index, chunk in enumerate(chunks):
            if chunk.chunk_index != expected_index or chunk.file_id != file_id:
                raise ValueError(f"Chunk layout for file {file_id} is not contiguous")

        if sum(chunk.size for chunk in chunks) != length:
            raise ValueError(f"Chunk sizes for file {file_id} do not add up to {length} bytes")

        upload_date = get_current_timestamp()

        with get_db_connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute("BEGIN IMMEDIATE")
                cursor.execute(
                    "SELECT status FROM files WHERE file_id = ?",
                    (file_id,)
                )
                row = cursor.fetchone()
                if row is None or row["status"] != STATUS_RESERVED:
                    raise FileNotFoundError(f"No reservation for file {file_id}")

                cursor.executemany(
                    """
                    INSERT INTO chunks (file_id, chunk_index, size, checksum)
                    VALUES (?, ?, ?, ?)
                    """,
                    [(chunk.file_id, chunk.chunk_index, chunk.size, chunk.checksum) for chunk in chunks]
                )

                cursor.execute(
                    """
                    UPDATE files
                    SET status = ?, length = ?, chunk_count = ?, checksum = ?, upload_date = ?
                    WHERE file_id = ?
                    """,
                    (STATUS_PUBLISHED, length, len(chunks), checksum, upload_date.isoformat(), file_id)
                )

                cursor.execute(
                    f"SELECT {_RECORD_COLUMNS} FROM files WHERE file_id = ?",
                    (file_id,)
                )
                record = _row_to_record(cursor.fetchone())
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        logger.info(f"Published file {record.filename} [file_id={file_id}] ({length} bytes, {len(chunks)} chunks)")
        return record

    @staticmethod
    def lookup_by_filename(filename: str) -> FileRecord:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_RECORD_COLUMNS} FROM files WHERE filename = ? AND status = ?",
                (filename, STATUS_PUBLISHED)
            )
            row = cursor.fetchone()

        if row is None:
            raise FileNotFoundError(f"File {filename} not found")
        return _row_to_record(row)

    @staticmethod
    def lookup_by_id(file_id: str) -> FileRecord:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_RECORD_COLUMNS} FROM files WHERE file_id = ? AND status = ?",
                (file_id, STATUS_PUBLISHED)
            )
            row = cursor.fetchone()

        if row is None:
            raise FileNotFoundError(f"File {file_id} not found")
        return _row_to_record(row)

    @staticmethod
    def list_files() -> List[FileRecord]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                f"SELECT {_RECORD_COLUMNS} FROM files WHERE status = ? ORDER BY upload_date, file_id",
                (STATUS_PUBLISHED,)
            )
            rows = cursor.fetchall()

        return [_row_to_record(row) for row in rows]

    @staticmethod
    def get_chunks(file_id: str) -> List[ChunkDescriptor]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT file_id, chunk_index, size, checksum
                FROM chunks
                WHERE file_id = ?
                ORDER BY chunk_index
                """,
                (file_id,)
            )
            rows = cursor.fetchall()

        return [
            ChunkDescriptor(
                file_id=row["file_id"],
                chunk_index=row["chunk_index"],
                size=row["size"],
                checksum=row["checksum"],
            )
            for row in rows
        ]

    @staticmethod
    def remove(file_id: str) -> FileRecord:
        """
        Remove a published file and tombstone its filename.

        Raises:
            FileNotFoundError: If no published file has this id
        """
        logger.debug(f"Removing file [file_id={file_id}]")

        with get_db_connection() as conn:
            cursor = conn.cursor()
            try:
                cursor.execute("BEGIN IMMEDIATE")
                cursor.execute(
                    f"SELECT {_RECORD_COLUMNS} FROM files WHERE file_id = ? AND status = ?",
                    (file_id, STATUS_PUBLISHED)
                )
                row = cursor.fetchone()
                if row is None:
                    raise FileNotFoundError(f"File {file_id} not found")

                record = _row_to_record(row)

                cursor.execute(
                    """
                    INSERT OR REPLACE INTO file_tombstones (filename, file_id, deleted_at)
                    VALUES (?, ?, ?)
                    """,
                    (record.filename, file_id, get_current_timestamp().isoformat())
                )
                cursor.execute("DELETE FROM files WHERE file_id = ?", (file_id,))
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        logger.info(f"Removed file {record.filename} from index [file_id={file_id}]")
        return record

    @staticmethod
    def release(file_id: str) -> bool:
        """
        Drop a reservation that was never published.

        Returns:
            True if a reservation was removed
        """
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "DELETE FROM files WHERE file_id = ? AND status = ?",
                (file_id, STATUS_RESERVED)
            )
            conn.commit()
            released = cursor.rowcount > 0

        if released:
            logger.debug(f"Released reservation [file_id={file_id}]")
        return released

    @staticmethod
    def list_stale_reservations(older_than: datetime) -> List[str]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT file_id FROM files WHERE status = ? AND reserved_at < ? ORDER BY reserved_at",
                (STATUS_RESERVED, older_than.isoformat())
            )
            return [row["file_id"] for row in cursor.fetchall()]

    @staticmethod
    def known_file_ids() -> Set[str]:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT file_id FROM files")
            return {row["file_id"] for row in cursor.fetchall()}

    @staticmethod
    def ping() -> bool:
        try:
            with get_db_connection() as conn:
                conn.execute("SELECT 1 FROM files LIMIT 1")
            return True
        except sqlite3.Error as e:
            logger.error(f"File index unavailable: {e}")
            return False
