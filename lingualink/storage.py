"""SQLite backed key-value persistence for lingualink client state."""

from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Optional

from .config import APP_DIR

DB_PATH = APP_DIR / "local.db"
SCHEMA_VERSION = 1


class StorageError(RuntimeError):
    """Raised when something goes wrong while accessing the storage."""


class LocalStore:
    """String key-value store scoped to one client, similar to browser local storage."""

    def __init__(self, db_path: Path = DB_PATH) -> None:
        self.db_path = db_path
        self._ensure_initialised()

    def _connect(self) -> sqlite3.Connection:
        try:
            return sqlite3.connect(self.db_path)
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to open {self.db_path}: {exc}") from exc

    def _ensure_initialised(self) -> None:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to create {self.db_path.parent}: {exc}") from exc
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS items (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                    """
                )
                conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS metadata (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL
                    )
                    """
                )
                cur = conn.execute("SELECT value FROM metadata WHERE key = ?", ("schema_version",))
                if cur.fetchone() is None:
                    conn.execute(
                        "INSERT INTO metadata(key, value) VALUES(?, ?)",
                        ("schema_version", str(SCHEMA_VERSION)),
                    )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to initialise {self.db_path}: {exc}") from exc

    def get_item(self, key: str) -> Optional[str]:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT value FROM items WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to read {key!r}: {exc}") from exc
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO items(key, value) VALUES(?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                    (key, value),
                )
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to write {key!r}: {exc}") from exc

    def remove_item(self, key: str) -> None:
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM items WHERE key = ?", (key,))
        except sqlite3.Error as exc:
            raise StorageError(f"Failed to remove {key!r}: {exc}") from exc

