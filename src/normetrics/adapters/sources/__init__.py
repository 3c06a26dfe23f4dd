"""Source adapters implementing SourcePort."""

from normetrics.adapters.sources.sqlite import SQLiteRowCursor, SQLiteSource

__all__ = ["SQLiteRowCursor", "SQLiteSource"]
