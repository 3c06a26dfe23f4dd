"""In-memory storage adapter for metric records."""

from collections import deque
from collections.abc import AsyncIterable

from normetrics.core.models import MetricRecord


class InMemoryRecordStorage:
    """In-memory implementation of RecordStoragePort.

    Stores records in a deque. With ``max_size`` the storage behaves as a
    ring buffer and evicts the oldest record when full. Suitable for testing
    and for agents that hand records straight on to an output.

    Args:
        max_size: Maximum number of records to keep, or None for unbounded.
    """

    def __init__(self, max_size: int | None = None) -> None:
        self._records: deque[MetricRecord] = deque(maxlen=max_size)

    async def write(self, record: MetricRecord) -> None:
        """Write a record to storage."""
        self._records.append(record)

    async def read(self, since: int = 0) -> AsyncIterable[MetricRecord]:
        """Read records since the given timestamp.

        Returns records with timestamp > since, ordered by timestamp ascending.
        """
        for record in self.read_sync(since):
            yield record

    async def count(self) -> int:
        """Return number of records in storage."""
        return len(self._records)

    async def clear(self) -> None:
        """Clear all records from storage."""
        self._records.clear()

    def write_sync(self, record: MetricRecord) -> None:
        """Synchronous write, usable as a QueryRunner sink."""
        self._records.append(record)

    def read_sync(self, since: int = 0) -> list[MetricRecord]:
        """Synchronous read for non-async contexts.

        Works on a snapshot, so a sink may keep writing from another thread.
        """
        snapshot = list(self._records)
        filtered = [r for r in snapshot if r.timestamp > since]
        return sorted(filtered, key=lambda r: r.timestamp)

    def clear_sync(self) -> None:
        """Synchronous clear for non-async contexts."""
        self._records.clear()
