"""
SQLite storage for timecapsule.

This module provides persistent storage for capsule records in a single
SQLite database file (or ``:memory:``).

Design Principles:
    - One statement per logical transition, committed immediately
    - The unlock flag is one-way: the store never writes it back to false
    - Timestamps are stored as fixed-width ISO-8601 UTC text so they sort

Tables:
    - schema_version: Applied schema versions
    - capsules: One row per capsule
"""

import logging
import sqlite3
import uuid
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from timecapsule.errors import StorageConnectionError, StorageReadError, StorageWriteError
from timecapsule.schema import CapsuleRecord, MediaRef, MediaType
from timecapsule.store.base import UPDATABLE_FIELDS, CapsuleStore
from timecapsule.unlock import ensure_utc

logger = logging.getLogger("timecapsule.store.db")

# Schema version for migrations
SCHEMA_VERSION = 1

CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS capsules (
    id TEXT PRIMARY KEY,
    owner_id TEXT NOT NULL,
    title TEXT NOT NULL,
    content TEXT,
    media_url TEXT,
    media_type TEXT,
    unlock_at TEXT NOT NULL,
    unlocked INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_capsules_owner_id ON capsules(owner_id);
CREATE INDEX IF NOT EXISTS idx_capsules_unlock_at ON capsules(unlock_at);
"""


def generate_id() -> str:
    """Generate a unique capsule id."""
    return uuid.uuid4().hex


def to_db_time(value: datetime) -> str:
    """Serialise a timestamp as fixed-width UTC ISO text."""
    return ensure_utc(value).isoformat(timespec="microseconds")


def now_iso() -> str:
    """Get current UTC time in ISO format."""
    return to_db_time(datetime.now(UTC))


def _row_to_record(row: sqlite3.Row) -> CapsuleRecord:
    media = None
    if row["media_url"]:
        media = MediaRef(url=row["media_url"], type=MediaType(row["media_type"] or "raw"))
    return CapsuleRecord(
        id=row["id"],
        owner_id=row["owner_id"],
        title=row["title"],
        content=row["content"],
        media=media,
        unlock_at=datetime.fromisoformat(row["unlock_at"]),
        unlocked=bool(row["unlocked"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class CapsuleDB(CapsuleStore):
    """
    SQLite implementation of CapsuleStore.

    Usage:
        db = CapsuleDB("timecapsule.db")
        capsule_id = db.insert(record)
        db.find_by_owner("alice")
        db.close()

    Or use as context manager:
        with CapsuleDB(":memory:") as db:
            ...
    """

    def __init__(self, db_path: str | Path) -> None:
        """
        Initialize the database connection.

        Args:
            db_path: Path to the SQLite database file, or ":memory:".
                     Will be created if it doesn't exist.
        """
        self.db_path = Path(db_path) if str(db_path) != ":memory:" else db_path
        self._conn: sqlite3.Connection | None = None
        self._connect()
        self._init_schema()

    def _connect(self) -> None:
        """Establish database connection."""
        try:
            self._conn = sqlite3.connect(
                str(self.db_path),
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
            logger.debug("Opened capsule database %s", self.db_path)
        except sqlite3.Error as e:
            raise StorageConnectionError(
                db_path=str(self.db_path),
                operation="connect",
                underlying_error=str(e),
            ) from e

    def _init_schema(self) -> None:
        """Initialize database schema if needed."""
        try:
            cursor = self._conn.executescript(CREATE_TABLES_SQL)
            cursor.close()

            cursor = self._conn.execute(
                "SELECT version FROM schema_version ORDER BY version DESC LIMIT 1"
            )
            if cursor.fetchone() is None:
                self._conn.execute(
                    "INSERT INTO schema_version (version, applied_at) VALUES (?, ?)",
                    (SCHEMA_VERSION, now_iso()),
                )
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation="init_schema",
                underlying_error=str(e),
            ) from e

    def close(self) -> None:
        """Close the database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> "CapsuleDB":
        """Enter context manager."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit context manager."""
        self.close()

    # =========================================================================
    # CapsuleStore Operations
    # =========================================================================

    def insert(self, record: CapsuleRecord) -> str:
        """
        Insert a new capsule.

        A record without an id gets a generated one.

        Returns:
            The capsule id
        """
        capsule_id = record.id or generate_id()
        try:
            self._conn.execute(
                """
                INSERT INTO capsules (
                    id, owner_id, title, content, media_url, media_type,
                    unlock_at, unlocked, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    capsule_id,
                    record.owner_id,
                    record.title,
                    record.content,
                    record.media.url if record.media else None,
                    record.media.type.value if record.media else None,
                    to_db_time(record.unlock_at),
                    int(record.unlocked),
                    to_db_time(record.created_at),
                    to_db_time(record.updated_at),
                ),
            )
            self._conn.commit()
            return capsule_id
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation="insert",
                underlying_error=str(e),
            ) from e

    def find_by_id(self, capsule_id: str) -> CapsuleRecord | None:
        """Get a capsule by id."""
        try:
            cursor = self._conn.execute(
                "SELECT * FROM capsules WHERE id = ?",
                (capsule_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return _row_to_record(row)
        except sqlite3.Error as e:
            raise StorageReadError(
                operation="find_by_id",
                underlying_error=str(e),
            ) from e

    def find_by_owner(self, owner_id: str) -> list[CapsuleRecord]:
        """
        List an owner's capsules.

        Returns:
            Records ordered by deadline, then creation time
        """
        try:
            cursor = self._conn.execute(
                """
                SELECT * FROM capsules
                WHERE owner_id = ?
                ORDER BY unlock_at, created_at
                """,
                (owner_id,),
            )
            return [_row_to_record(row) for row in cursor]
        except sqlite3.Error as e:
            raise StorageReadError(
                operation="find_by_owner",
                underlying_error=str(e),
            ) from e

    def update_fields(self, capsule_id: str, fields: dict[str, Any]) -> None:
        """
        Overwrite selected fields of a capsule.

        Raises:
            StorageWriteError: On unknown fields, an attempt to clear the
                unlock flag, or a database failure
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise StorageWriteError(
                operation="update_fields",
                underlying_error=f"unknown fields: {', '.join(sorted(unknown))}",
            )
        if fields.get("unlocked") is False:
            raise StorageWriteError(
                operation="update_fields",
                underlying_error="the unlock flag cannot be cleared",
            )
        if not fields:
            return

        updates: list[str] = []
        params: list[Any] = []
        for name, value in fields.items():
            if name == "media":
                updates.extend(["media_url = ?", "media_type = ?"])
                params.append(value.url if value else None)
                params.append(value.type.value if value else None)
            elif name in ("unlock_at", "updated_at"):
                updates.append(f"{name} = ?")
                params.append(to_db_time(value))
            elif name == "unlocked":
                updates.append("unlocked = ?")
                params.append(1)
            else:
                updates.append(f"{name} = ?")
                params.append(value)
        params.append(capsule_id)

        try:
            self._conn.execute(
                f"UPDATE capsules SET {', '.join(updates)} WHERE id = ?",
                params,
            )
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation="update_fields",
                underlying_error=str(e),
            ) from e

    def delete(self, capsule_id: str) -> None:
        """Delete a capsule."""
        try:
            self._conn.execute("DELETE FROM capsules WHERE id = ?", (capsule_id,))
            self._conn.commit()
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation="delete",
                underlying_error=str(e),
            ) from e

    def mark_unlocked(self, capsule_id: str, now: datetime) -> bool:
        """Flip the unlock flag if it is still clear."""
        try:
            cursor = self._conn.execute(
                "UPDATE capsules SET unlocked = 1, updated_at = ? WHERE id = ? AND unlocked = 0",
                (to_db_time(now), capsule_id),
            )
            self._conn.commit()
            return cursor.rowcount == 1
        except sqlite3.Error as e:
            raise StorageWriteError(
                operation="mark_unlocked",
                underlying_error=str(e),
            ) from e

    # =========================================================================
    # Utility Operations
    # =========================================================================

    def count(self) -> int:
        """Total number of stored capsules."""
        try:
            cursor = self._conn.execute("SELECT COUNT(*) FROM capsules")
            return cursor.fetchone()[0]
        except sqlite3.Error as e:
            raise StorageReadError(
                operation="count",
                underlying_error=str(e),
            ) from e
