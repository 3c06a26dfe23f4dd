"""Core domain models for normalized metric data."""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from pathlib import Path
from typing import Any

RawValue = None | bool | int | float | str | bytes
"""One column's native value from a source with no declared type."""

RawRow = Sequence[tuple[str, RawValue]]
"""Ordered ``(column_name, value)`` pairs from one result row."""

DEFAULT_MEASUREMENT = "postgresql"

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class ValueKind(StrEnum):
    """The cases of RawValue."""

    NULL = "null"
    BOOL = "bool"
    INT64 = "int64"
    FLOAT64 = "float64"
    STRING = "string"
    BYTES = "bytes"


def value_kind(value: object) -> ValueKind:
    """Map a native value to its RawValue case.

    Raises:
        TypeError: If the value is not one of the supported kinds, or is an
            integer outside the signed 64-bit range.
    """
    if value is None:
        return ValueKind.NULL
    # bool is a subclass of int and must be checked first
    if isinstance(value, bool):
        return ValueKind.BOOL
    if isinstance(value, int):
        if not _INT64_MIN <= value <= _INT64_MAX:
            raise TypeError(f"integer {value} does not fit in 64 bits")
        return ValueKind.INT64
    if isinstance(value, float):
        return ValueKind.FLOAT64
    if isinstance(value, str):
        return ValueKind.STRING
    if isinstance(value, (bytes, bytearray, memoryview)):
        return ValueKind.BYTES
    raise TypeError(f"unsupported value type {type(value).__name__}")


def instant_to_datetime(instant: int) -> datetime:
    """Convert nanoseconds since the epoch to an aware UTC datetime.

    Precision below one microsecond is truncated.
    """
    return _EPOCH + timedelta(microseconds=instant // 1000)


def datetime_to_instant(moment: datetime) -> int:
    """Convert an aware datetime to nanoseconds since the epoch."""
    return (moment - _EPOCH) // timedelta(microseconds=1) * 1000


@dataclass(frozen=True)
class MetricRecord:
    """A normalized metric record.

    Attributes:
        name: Measurement name (e.g., postgresql).
        tags: String-valued dimensions.
        fields: Measured values.
        timestamp: Nanoseconds since the Unix epoch, UTC.
    """

    name: str
    tags: dict[str, str] = field(default_factory=dict)
    fields: dict[str, RawValue] = field(default_factory=dict)
    timestamp: int = 0

    @property
    def time(self) -> datetime:
        """The record timestamp as an aware UTC datetime."""
        return instant_to_datetime(self.timestamp)


class TimestampKind(StrEnum):
    """How a raw timestamp value is encoded."""

    UNIX = "unix"
    UNIX_MS = "unix_ms"
    UNIX_US = "unix_us"
    UNIX_NS = "unix_ns"
    CUSTOM_LAYOUT = "custom_layout"


@dataclass(frozen=True)
class TimestampSpec:
    """Describes how to read a timestamp.

    Attributes:
        kind: Encoding of the raw value.
        layout: Calendar layout, used only for CUSTOM_LAYOUT.
        location: IANA zone name for CUSTOM_LAYOUT; empty means UTC.
    """

    kind: TimestampKind
    layout: str = ""
    location: str = ""

    @classmethod
    def from_format(cls, fmt: str, location: str = "") -> "TimestampSpec":
        """Build a spec from an agent time format string.

        "unix", "unix_ms", "unix_us" and "unix_ns" select the epoch kinds;
        any other string is a calendar layout.
        """
        lowered = fmt.lower()
        if lowered in {"unix", "unix_ms", "unix_us", "unix_ns"}:
            return cls(kind=TimestampKind(lowered), location=location)
        return cls(kind=TimestampKind.CUSTOM_LAYOUT, layout=fmt, location=location)


def parse_tag_names(literal: str) -> tuple[str, ...]:
    """Split a comma separated tag list, dropping blank entries."""
    return tuple(name.strip() for name in literal.split(",") if name.strip())


def read_query_from_file(path: str | Path) -> str:
    """Read a query script from disk."""
    return Path(path).read_text()


@dataclass(frozen=True)
class QueryDescriptor:
    """One version-gated query and the rules for turning its rows into records.

    Attributes:
        text: Query text.
        min_version: Lowest detected source version the query runs against.
        with_name_filter: Append a database name predicate to the text.
        tag_names: Columns reported as tags.
        measurement_name: Name of the emitted records.
        timestamp_column: Column holding the record time, if the source
            supplies one.
        timestamp_spec: How to parse ``timestamp_column``.
    """

    text: str
    min_version: int = 0
    with_name_filter: bool = False
    tag_names: tuple[str, ...] = ()
    measurement_name: str = DEFAULT_MEASUREMENT
    timestamp_column: str = ""
    timestamp_spec: TimestampSpec = TimestampSpec(kind=TimestampKind.UNIX)

    def __post_init__(self) -> None:
        if isinstance(self.tag_names, str):
            object.__setattr__(self, "tag_names", parse_tag_names(self.tag_names))
        else:
            object.__setattr__(self, "tag_names", tuple(self.tag_names))
        if not self.measurement_name:
            object.__setattr__(self, "measurement_name", DEFAULT_MEASUREMENT)

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "QueryDescriptor":
        """Build a descriptor from a loader-provided query block.

        Recognized keys are ``sqlquery``, ``script``, ``version``,
        ``withdbname``, ``tagvalue``, ``measurement``, ``timestamp_column``,
        ``timestamp_format`` and ``timezone``. When ``sqlquery`` is empty the
        text is read from the ``script`` path.

        Raises:
            OSError: If the script file cannot be read.
        """
        text = config.get("sqlquery") or ""
        if not text:
            text = read_query_from_file(config.get("script") or "")
        return cls(
            text=text,
            min_version=int(config.get("version", 0)),
            with_name_filter=bool(config.get("withdbname", False)),
            tag_names=parse_tag_names(config.get("tagvalue") or ""),
            measurement_name=config.get("measurement") or DEFAULT_MEASUREMENT,
            timestamp_column=config.get("timestamp_column") or "",
            timestamp_spec=TimestampSpec.from_format(
                config.get("timestamp_format") or "unix",
                config.get("timezone") or "",
            ),
        )
