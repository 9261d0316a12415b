"""Read-only SQLite connection factory.

The query core never decides where the database lives and never opens a
write-capable handle. It receives a factory and asks it for a fresh
read-only connection per call.

Usage
-----
::

    from timespine.core.connection import SqliteConnectionFactory, open_read_only

    factory = SqliteConnectionFactory("/data/ManicTimeReports.db")
    with open_read_only(factory) as conn:
        rows = conn.execute("SELECT ReportId FROM Ar_Timeline").fetchall()
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Protocol, runtime_checkable

from timespine.core.errors import DatabaseUnavailableError
from timespine.core.logging import get_logger

logger = get_logger(__name__)


@runtime_checkable
class ConnectionFactory(Protocol):
    """Yields open, read-only database handles.

    Each call returns a new connection owned by the caller, who must close it.
    """

    @property
    def database_path(self) -> str: ...

    def create_connection(self) -> sqlite3.Connection: ...


class SqliteConnectionFactory:
    """Opens ``mode=ro`` SQLite handles on a fixed database file.

    Args:
        database_path: Resolved path of the reports database
        busy_timeout_s: SQLite busy-handler timeout. The retry wrapper owns
            retries on a locked database, so this defaults to 0.
    """

    def __init__(self, database_path: str | Path, *, busy_timeout_s: float = 0.0):
        self._path = Path(database_path)
        self._busy_timeout_s = busy_timeout_s

    @property
    def database_path(self) -> str:
        return str(self._path)

    def create_connection(self) -> sqlite3.Connection:
        """Open a new read-only connection.

        Raises:
            DatabaseUnavailableError: the file is missing or cannot be opened
        """
        if not self._path.is_file():
            raise DatabaseUnavailableError(
                f"Database file not found: {self._path}"
            ).with_context(database_path=self.database_path)

        uri = f"{self._path.resolve().as_uri()}?mode=ro"
        try:
            conn = sqlite3.connect(uri, uri=True, timeout=self._busy_timeout_s)
        except sqlite3.Error as e:
            raise DatabaseUnavailableError(
                f"Failed to open database read-only: {e}",
                cause=e,
            ).with_context(database_path=self.database_path) from e

        conn.row_factory = sqlite3.Row
        logger.debug("database_connection_opened", path=self.database_path)
        return conn

    def __repr__(self) -> str:
        return f"SqliteConnectionFactory({self.database_path!r})"


@contextmanager
def open_read_only(factory: ConnectionFactory) -> Iterator[sqlite3.Connection]:
    """Open a connection from ``factory`` and close it on every exit path."""
    conn = factory.create_connection()
    try:
        yield conn
    finally:
        conn.close()


__all__ = [
    "ConnectionFactory",
    "SqliteConnectionFactory",
    "open_read_only",
]
