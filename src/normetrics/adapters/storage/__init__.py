"""Storage adapters implementing RecordStoragePort."""

from normetrics.adapters.storage.in_memory import InMemoryRecordStorage

__all__ = [
    "InMemoryRecordStorage",
]
