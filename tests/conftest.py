"""Shared test fixtures for all test modules."""

from collections.abc import Callable, Iterator, Mapping, Sequence
from pathlib import Path

import pytest

from normetrics.core.errors import QueryExecutionError, SourceUnreachable
from normetrics.core.models import RawRow

try:
    import httpx
except ImportError:
    httpx = None


class FakeCursor:
    """RowCursor over canned rows, optionally failing part way through."""

    def __init__(self, rows: Sequence[RawRow], fail_at: int | None = None) -> None:
        self._rows = list(rows)
        self._fail_at = fail_at
        self.closed = False

    def __iter__(self) -> Iterator[RawRow]:
        for index, row in enumerate(self._rows):
            if index == self._fail_at:
                raise QueryExecutionError(f"connection lost at row {index}")
            yield row

    def close(self) -> None:
        self.closed = True


class FakeSource:
    """SourcePort with canned results keyed by query text.

    A result is either a list of rows, a FakeCursor, or an exception to raise
    from run_query.
    """

    def __init__(
        self,
        version: int | Exception,
        results: Mapping[str, Sequence[RawRow] | FakeCursor | Exception],
    ) -> None:
        self._version = version
        self._results = dict(results)
        self.queries: list[str] = []
        self.cursors: list[FakeCursor] = []

    def detect_version(self) -> int:
        if isinstance(self._version, Exception):
            raise self._version
        return self._version

    def run_query(self, text: str) -> FakeCursor:
        self.queries.append(text)
        result = self._results[text]
        if isinstance(result, Exception):
            raise result
        cursor = result if isinstance(result, FakeCursor) else FakeCursor(result)
        self.cursors.append(cursor)
        return cursor


@pytest.fixture
def fake_source() -> Callable[..., FakeSource]:
    """Factory fixture for FakeSource instances."""
    return FakeSource


@pytest.fixture
def fake_cursor() -> Callable[..., FakeCursor]:
    """Factory fixture for FakeCursor instances."""
    return FakeCursor


@pytest.fixture
def unreachable_error() -> SourceUnreachable:
    return SourceUnreachable("connection refused")


@pytest.fixture
def source_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for source adapter tests."""
    return str(tmp_path / "source.db")


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            async with asgi_test_client(app) as client:
                response = await client.get("/records")
    """
    if httpx is None:
        pytest.skip("httpx not installed")

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
