# src/kv_store.py
from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol

from src.config import DEFAULT_DB_PATH
from src.error_codes import STORAGE_READ_FAIL, STORAGE_WRITE_FAIL
from src.errors import PersistenceError


class KVStore(Protocol):
    def get(self, key: str) -> bytes | None: ...

    def set(self, key: str, value: bytes) -> None: ...


class InvalidDbPathError(PersistenceError):
    """Raised when FEED_DB_PATH points to an invalid location."""


class SqliteKVStore:
    """
    Byte-valued key/value store on a single sqlite table.

    One connection per operation; every set() is its own transaction, so a
    value is either fully written or not at all.
    """

    def __init__(self, path: str | None = None):
        self.path = Path(path or DEFAULT_DB_PATH)

    @contextmanager
    def _conn(self, *, code: str):
        """
        Open connection, ensure schema, yield, close on exit.
        sqlite errors surface as PersistenceError(code).
        """
        # Get the root of the path (e.g., "Z:\" on Windows, "/" on Unix)
        root = self.path.anchor
        if root and not Path(root).exists():
            raise InvalidDbPathError(
                f"FEED_DB_PATH is set to '{self.path}' but the root path '{root}' doesn't exist.",
                code=code,
            )

        try:
            # Ensure parent directory exists (e.g., ./data/)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.path))
        except (OSError, sqlite3.Error) as exc:
            raise PersistenceError(f"cannot open {self.path}: {exc}", code=code) from exc

        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value BLOB NOT NULL
                );
                """
            )
            yield conn
        except sqlite3.Error as exc:
            raise PersistenceError(f"sqlite error on {self.path}: {exc}", code=code) from exc
        finally:
            conn.close()

    def get(self, key: str) -> bytes | None:
        with self._conn(code=STORAGE_READ_FAIL) as conn:
            row = conn.execute("SELECT value FROM kv WHERE key = ?;", (key,)).fetchone()
        if row is None:
            return None
        value = row[0]
        return value.encode("utf-8") if isinstance(value, str) else bytes(value)

    def set(self, key: str, value: bytes) -> None:
        with self._conn(code=STORAGE_WRITE_FAIL) as conn:
            # `with conn` commits on success, rolls back on error
            with conn:
                conn.execute(
                    "INSERT INTO kv (key, value) VALUES (?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value = excluded.value;",
                    (key, sqlite3.Binary(value)),
                )
