"""Example FastAPI application collecting records from a SQLite database.

Run with:
    NORMETRICS_DB=app.db uvicorn examples.fastapi_example:app --reload

Endpoints:
    /records              - NDJSON records (all collected)
    /records?since=<ns>   - NDJSON records newer than a nanosecond timestamp

A background task runs one collection cycle per interval and stores the
records in memory.
"""

import asyncio
import contextlib
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from normetrics.adapters.frameworks.fastapi import create_records_router
from normetrics.adapters.sources.sqlite import SQLiteSource
from normetrics.adapters.storage.in_memory import InMemoryRecordStorage
from normetrics.core.errors import SourceUnreachable
from normetrics.core.literals import parse_duration
from normetrics.core.models import QueryDescriptor
from normetrics.core.runner import QueryRunner
from normetrics.core.version import set_version

logger = logging.getLogger("normetrics.example")

DB_PATH = os.environ.get("NORMETRICS_DB", "app.db")
INTERVAL = parse_duration(os.environ.get("NORMETRICS_INTERVAL", "10s"))

DESCRIPTORS = [
    QueryDescriptor(
        text="SELECT name, type FROM sqlite_schema",
        tag_names="type",
        measurement_name="sqlite_schema",
    ),
    QueryDescriptor(
        text="SELECT * FROM pragma_page_count(), pragma_page_size()",
        min_version=3_016_000,
        measurement_name="sqlite_pages",
    ),
]

storage = InMemoryRecordStorage(max_size=10_000)


async def collect_until(runner: QueryRunner, stop: asyncio.Event) -> None:
    while not stop.is_set():
        try:
            report = await asyncio.to_thread(runner.run_cycle, storage.write_sync)
            logger.info(
                "Cycle emitted %d records (%d skipped, %d failed)",
                report.emitted,
                len(report.skipped),
                len(report.failures),
            )
        except SourceUnreachable as e:
            logger.error("Source unreachable: %s", e.message)
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(stop.wait(), INTERVAL.total_seconds() or 10)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    set_version("0.1.0")
    source = SQLiteSource.from_path(DB_PATH)
    runner = QueryRunner(source, DESCRIPTORS, base_tags={"server": DB_PATH})
    stop = asyncio.Event()
    task = asyncio.create_task(collect_until(runner, stop))
    yield
    # Let a cycle running in the worker thread finish before closing.
    stop.set()
    await task
    source.close()


app = FastAPI(title="normetrics example", lifespan=lifespan)

# Mount record endpoints
app.include_router(create_records_router(storage))
