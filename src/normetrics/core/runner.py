"""Run version-gated queries against a source and emit metric records."""

import logging
import time
from collections.abc import Callable, Collection, Iterable, Mapping
from contextlib import closing
from dataclasses import dataclass, field

from normetrics.core.classify import classify
from normetrics.core.errors import (
    NormetricsError,
    QueryExecutionError,
    SourceUnreachable,
    TimestampError,
)
from normetrics.core.models import MetricRecord, QueryDescriptor, RawRow
from normetrics.core.ports import RecordSink, SourcePort
from normetrics.core.timestamps import parse_timestamp

logger = logging.getLogger(__name__)

DEFAULT_IGNORED_COLUMNS = frozenset({"stats_reset"})


def resolve_query_text(descriptor: QueryDescriptor, databases: Iterable[str]) -> str:
    """Return the query text with the database name predicate applied.

    With ``with_name_filter`` the text gets `` IN ('a','b')`` when databases
    are configured, else `` IS NOT NULL``.
    """
    if not descriptor.with_name_filter:
        return descriptor.text
    names = [name.replace("'", "''") for name in databases]
    if names:
        return descriptor.text + " IN ('" + "','".join(names) + "')"
    return descriptor.text + " IS NOT NULL"


@dataclass(frozen=True)
class QueryFailure:
    """A descriptor whose query failed during a cycle."""

    query: str
    error: QueryExecutionError


@dataclass
class CycleReport:
    """Outcome of one collection cycle.

    Attributes:
        version: Detected source version.
        emitted: Number of records handed to the sink.
        skipped: Query texts gated out by version.
        failures: Queries that failed to execute or drain.
        diagnostics: Dropped columns and skipped records.
    """

    version: int
    emitted: int = 0
    skipped: list[str] = field(default_factory=list)
    failures: list[QueryFailure] = field(default_factory=list)
    diagnostics: list[NormetricsError] = field(default_factory=list)


class QueryRunner:
    """Sequences query descriptors against a source once per cycle.

    Descriptors run in declared order. A descriptor is skipped when the
    detected version is lower than its ``min_version``. A failing query is
    recorded and the next descriptor still runs.

    Not reentrant: concurrent cycles against the same source must be
    serialized by the caller.

    Example:
        ```python
        runner = QueryRunner(SQLiteSource.from_path("app.db"), descriptors)
        storage = InMemoryRecordStorage()
        report = runner.run_cycle(storage.write_sync)
        ```
    """

    def __init__(
        self,
        source: SourcePort,
        descriptors: Iterable[QueryDescriptor],
        *,
        databases: Iterable[str] = (),
        ignored_names: Collection[str] = DEFAULT_IGNORED_COLUMNS,
        identity_column: str = "datname",
        fallback_identity: str = "postgres",
        base_tags: Mapping[str, str] | None = None,
        clock: Callable[[], int] = time.time_ns,
    ) -> None:
        self._source = source
        self._descriptors = tuple(descriptors)
        self._databases = tuple(databases)
        self._ignored_names = frozenset(ignored_names)
        self._identity_column = identity_column
        self._fallback_identity = fallback_identity
        self._base_tags = dict(base_tags or {})
        self._clock = clock

    @property
    def descriptors(self) -> tuple[QueryDescriptor, ...]:
        return self._descriptors

    def run_cycle(self, sink: RecordSink) -> CycleReport:
        """Run every applicable descriptor and hand records to ``sink``.

        Raises:
            SourceUnreachable: If the source version cannot be detected. No
                records are emitted in that case.
        """
        started = self._clock()
        try:
            version = self._source.detect_version()
        except SourceUnreachable:
            raise
        except Exception as e:
            raise SourceUnreachable(f"version detection failed: {e}", e) from e

        report = CycleReport(version=version)
        for descriptor in self._descriptors:
            text = resolve_query_text(descriptor, self._databases)
            if version < descriptor.min_version:
                report.skipped.append(text)
                continue
            try:
                self._run_query(descriptor, text, started, sink, report)
            except QueryExecutionError as e:
                logger.error("Query failed: %s", e.message)
                report.failures.append(QueryFailure(query=text, error=e))
        return report

    def _run_query(
        self,
        descriptor: QueryDescriptor,
        text: str,
        started: int,
        sink: RecordSink,
        report: CycleReport,
    ) -> None:
        with closing(self._source.run_query(text)) as cursor:
            for row in cursor:
                record = self._build_record(descriptor, row, started, report)
                if record is not None:
                    sink(record)
                    report.emitted += 1

    def _build_record(
        self,
        descriptor: QueryDescriptor,
        row: RawRow,
        started: int,
        report: CycleReport,
    ) -> MetricRecord | None:
        timestamp = started
        ignored: Collection[str] = self._ignored_names
        time_column = descriptor.timestamp_column
        if time_column:
            ignored = self._ignored_names | {time_column}
            raw_time = next(
                (value for name, value in row if name == time_column), None
            )
            if raw_time is not None:
                try:
                    timestamp = parse_timestamp(descriptor.timestamp_spec, raw_time)
                except TimestampError as e:
                    logger.warning(
                        "Skipping %s record: bad timestamp in column %s: %s",
                        descriptor.measurement_name,
                        time_column,
                        e.message,
                    )
                    report.diagnostics.append(e)
                    return None

        classification = classify(
            row,
            tag_names=descriptor.tag_names,
            ignored_names=ignored,
            identity_column=self._identity_column,
            fallback_identity=self._fallback_identity,
            base_tags=self._base_tags,
        )
        report.diagnostics.extend(classification.failures)
        return MetricRecord(
            name=descriptor.measurement_name,
            tags=classification.tags,
            fields=classification.fields,
            timestamp=timestamp,
        )
