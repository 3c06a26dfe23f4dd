"""Port interfaces for sources and record storage.

These protocols define the contracts that adapters must implement.
The core depends only on these interfaces, not concrete implementations.
"""

from collections.abc import AsyncIterable, Callable, Iterator
from typing import Protocol, runtime_checkable

from normetrics.core.models import MetricRecord, RawRow

RecordSink = Callable[[MetricRecord], None]
"""Receives records one at a time, e.g. ``storage.write_sync``."""


@runtime_checkable
class RowCursor(Protocol):
    """Rows of one executed query.

    Must release its resources once fully drained or when closed.
    """

    def __iter__(self) -> Iterator[RawRow]: ...

    def close(self) -> None: ...


@runtime_checkable
class SourcePort(Protocol):
    """Port for sources that answer version-gated queries.

    Examples: SQLiteSource.
    """

    def detect_version(self) -> int:
        """Return the source version as a single integer.

        Raises:
            SourceUnreachable: If the version cannot be determined.
        """
        ...

    def run_query(self, text: str) -> RowCursor:
        """Execute a query and return a cursor over its rows.

        Raises:
            QueryExecutionError: If the query cannot be executed.
        """
        ...


@runtime_checkable
class RecordStoragePort(Protocol):
    """Port for record storage operations.

    Example: InMemoryRecordStorage.
    """

    async def write(self, record: MetricRecord) -> None:
        """Write a record to storage."""
        ...

    def read(self, since: int = 0) -> AsyncIterable[MetricRecord]:
        """Read records since the given timestamp.

        Args:
            since: Nanoseconds since the epoch. Returns records with
                   timestamp > since. Default 0 returns all records.

        Returns:
            AsyncIterable of MetricRecord objects, ordered by timestamp ascending.
        """
        ...
