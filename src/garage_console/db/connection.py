"""SQLite access for the cluster registry."""

from __future__ import annotations

import sqlite3
import threading
from pathlib import Path


class Database:
    """Per-thread SQLite connections over one registry file.

    Registry lookups run on the proxy's worker threads, so every thread
    that touches the database gets its own connection. All of them are
    tracked here and :meth:`close` shuts every one down, not just the
    caller's. Writes are serialized by a single lock.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._lock = threading.Lock()
        self._connections: dict[int, sqlite3.Connection] = {}

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def _connection(self) -> sqlite3.Connection:
        ident = threading.get_ident()
        with self._lock:
            conn = self._connections.get(ident)
            if conn is None:
                conn = sqlite3.connect(self._db_path, check_same_thread=False)
                conn.execute("PRAGMA journal_mode=WAL")
                conn.row_factory = sqlite3.Row
                self._connections[ident] = conn
            return conn

    def fetchone(self, sql: str, params: tuple = ()) -> sqlite3.Row | None:
        return self._connection().execute(sql, params).fetchone()

    def fetchall(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        return self._connection().execute(sql, params).fetchall()

    def write(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        """Run one statement and commit it."""
        conn = self._connection()
        with self._lock:
            cursor = conn.execute(sql, params)
            conn.commit()
            return cursor

    def write_script(self, sql: str) -> None:
        """Run a multi-statement script (schema migrations)."""
        conn = self._connection()
        with self._lock:
            conn.executescript(sql)

    def close(self) -> None:
        """Close every connection opened by any thread.

        The database stays usable: the next query reopens a connection.
        """
        with self._lock:
            connections = list(self._connections.values())
            self._connections.clear()
        for conn in connections:
            conn.close()
