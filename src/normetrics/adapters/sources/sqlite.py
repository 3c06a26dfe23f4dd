"""SQLite source adapter.

Runs version-gated queries against a SQLite database using the standard
sqlite3 module. Rows are returned as ``(column, value)`` pairs taken from
``cursor.description``.
"""

import sqlite3
from collections.abc import Iterator
from pathlib import Path

from normetrics.core.errors import QueryExecutionError, SourceUnreachable
from normetrics.core.models import RawRow
from normetrics.core.version import parse_version_number

_VERSION_QUERY = "SELECT sqlite_version()"


class SQLiteRowCursor:
    """Implementation of RowCursor over a sqlite3 cursor.

    Rows are fetched lazily; the cursor is closed once drained or when
    ``close()`` is called.
    """

    def __init__(self, cursor: sqlite3.Cursor) -> None:
        self._cursor = cursor
        self._columns = [column[0] for column in cursor.description or ()]
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def columns(self) -> list[str]:
        return list(self._columns)

    def __iter__(self) -> Iterator[RawRow]:
        while not self._closed:
            try:
                row = self._cursor.fetchone()
            except sqlite3.Error as e:
                self.close()
                raise QueryExecutionError(f"fetch failed: {e}", e) from e
            if row is None:
                self.close()
                return
            yield list(zip(self._columns, row, strict=True))

    def close(self) -> None:
        if not self._closed:
            self._cursor.close()
            self._closed = True


class SQLiteSource:
    """SQLite implementation of SourcePort.

    The detected version is ``sqlite_version()`` encoded like
    SQLITE_VERSION_NUMBER: major * 1000000 + minor * 1000 + patch.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn = connection

    @classmethod
    def from_path(cls, db_path: str | Path) -> "SQLiteSource":
        """Open a database file read-only.

        The connection may be used from a worker thread; calls must still be
        serialized by the caller.

        Raises:
            SourceUnreachable: If the file cannot be opened.
        """
        uri = f"{Path(db_path).resolve().as_uri()}?mode=ro"
        try:
            return cls(sqlite3.connect(uri, uri=True, check_same_thread=False))
        except sqlite3.Error as e:
            raise SourceUnreachable(f"cannot open {db_path}: {e}", e) from e

    def detect_version(self) -> int:
        try:
            row = self._conn.execute(_VERSION_QUERY).fetchone()
        except sqlite3.Error as e:
            raise SourceUnreachable(f"version query failed: {e}", e) from e
        if row is None:
            raise SourceUnreachable("version query returned no rows")
        try:
            return parse_version_number(str(row[0]))
        except ValueError as e:
            raise SourceUnreachable(str(e), e) from e

    def run_query(self, text: str) -> SQLiteRowCursor:
        try:
            cursor = self._conn.execute(text)
        except sqlite3.Error as e:
            raise QueryExecutionError(f"query failed: {e}", e) from e
        return SQLiteRowCursor(cursor)

    def close(self) -> None:
        self._conn.close()
