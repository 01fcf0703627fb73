"""SQLite implementation of DatabaseInterface.

Rows come back as plain dicts. The core tables used by the reference
services are created on first connection; anything beyond them belongs to
migrations owned by the application.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from darkheim.contracts import DatabaseInterface, LoggerInterface

_CORE_SCHEMA = """
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    username TEXT NOT NULL UNIQUE,
    email TEXT NOT NULL UNIQUE,
    password_hash TEXT NOT NULL,
    role TEXT NOT NULL DEFAULT 'user',
    email_verified INTEGER NOT NULL DEFAULT 0,
    created_at REAL NOT NULL
);
CREATE TABLE IF NOT EXISTS tokens (
    token TEXT PRIMARY KEY,
    user_id INTEGER NOT NULL,
    kind TEXT NOT NULL DEFAULT 'default',
    expires_at REAL,
    created_at REAL NOT NULL
);
CREATE TABLE IF NOT EXISTS site_settings (
    category TEXT NOT NULL,
    key TEXT NOT NULL,
    value TEXT,
    PRIMARY KEY (category, key)
);
CREATE TABLE IF NOT EXISTS news (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    slug TEXT NOT NULL UNIQUE,
    body TEXT NOT NULL DEFAULT '',
    published INTEGER NOT NULL DEFAULT 0,
    published_at REAL
);
"""


class Database(DatabaseInterface):
    """Single sqlite3 connection shared for the life of the process."""

    def __init__(self, logger: LoggerInterface, path: str = ":memory:", timeout: float = 5.0) -> None:
        self._logger = logger
        self.path = path
        self._conn = sqlite3.connect(path, timeout=timeout, isolation_level=None, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.executescript(_CORE_SCHEMA)
        self._last_id = 0
        logger.debug("Database connected", {"path": path})

    def execute(self, sql: str, params: tuple | dict = ()) -> int:
        try:
            cursor = self._conn.execute(sql, params)
        except sqlite3.Error as exc:
            self._logger.error("Query failed", {"sql": sql, "error": str(exc)})
            raise
        self._last_id = cursor.lastrowid or self._last_id
        return cursor.rowcount

    def fetch(self, sql: str, params: tuple | dict = ()) -> dict[str, Any] | None:
        row = self._conn.execute(sql, params).fetchone()
        return dict(row) if row is not None else None

    def fetch_all(self, sql: str, params: tuple | dict = ()) -> list[dict[str, Any]]:
        return [dict(row) for row in self._conn.execute(sql, params).fetchall()]

    def last_insert_id(self) -> int:
        return self._last_id

    def begin(self) -> None:
        self._conn.execute("BEGIN")

    def commit(self) -> None:
        self._conn.execute("COMMIT")

    def rollback(self) -> None:
        self._conn.execute("ROLLBACK")

    @contextmanager
    def transaction(self) -> Iterator[Database]:
        self.begin()
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        else:
            self.commit()

    def close(self) -> None:
        self._conn.close()
