"""Timestamp normalization into nanoseconds since the Unix epoch (UTC).

Formats follow the agent options usually written in configuration as:

    json_time_key = "timestamp"
    json_time_format = "2006-01-02T15:04:05Z07:00"
    json_timezone = "America/Los_Angeles"

The format is one of "unix", "unix_ms", "unix_us", "unix_ns", or a calendar
layout. Layouts are written either with the reference date
"Mon Jan 2 15:04:05 MST 2006" or as ``strptime`` directives.

With "unix" an optional fractional component is allowed. The sub-second
kinds cannot carry a fractional component; one present in the input is
ignored.
"""

import math
import re
from datetime import UTC, datetime, tzinfo
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from normetrics.core.errors import (
    FormatMismatch,
    InvalidTimestampKind,
    UnresolvableLocation,
)
from normetrics.core.models import (
    RawValue,
    TimestampKind,
    TimestampSpec,
    datetime_to_instant,
)

_NANOS_PER_UNIT = {
    TimestampKind.UNIX_MS: 1_000_000,
    TimestampKind.UNIX_US: 1_000,
    TimestampKind.UNIX_NS: 1,
}

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
_NANOS_RE = re.compile(r"[0-9]{9}")

# Reference layout chunks and their strptime equivalents.
_LAYOUT_CHUNKS = {
    "January": "%B",
    "Monday": "%A",
    "Z07:00": "%z",
    "-07:00": "%z",
    "Z0700": "%z",
    "-0700": "%z",
    "2006": "%Y",
    "Jan": "%b",
    "Mon": "%a",
    "MST": "%Z",
    "Z07": "%z",
    "-07": "%z",
    "002": "%j",
    "06": "%y",
    "01": "%m",
    "02": "%d",
    "_2": "%d",
    "15": "%H",
    "03": "%I",
    "04": "%M",
    "05": "%S",
    "PM": "%p",
    "pm": "%p",
    "1": "%m",
    "2": "%d",
    "3": "%I",
    "4": "%M",
    "5": "%S",
}

_LAYOUT_RE = re.compile(
    r"(?P<fraction>[.,](?:0+|9+))|"
    + "|".join(re.escape(c) for c in sorted(_LAYOUT_CHUNKS, key=len, reverse=True))
)


def _parse_int64(text: str) -> int:
    if not _INTEGER_RE.fullmatch(text):
        raise FormatMismatch(f"invalid integer {text!r}")
    value = int(text)
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise FormatMismatch(f"integer {text!r} out of range")
    return value


def _split_components(integer: str, fraction: str) -> tuple[int, int]:
    # Leading digits of a nine digit nanosecond field; extra precision is dropped.
    padded = fraction[:9].ljust(9, "0")
    if not _NANOS_RE.fullmatch(padded):
        raise FormatMismatch(f"invalid fractional component {fraction!r}")
    return _parse_int64(integer), int(padded)


def decompose_fraction(timestamp: RawValue) -> tuple[int, int]:
    """Return the integer and nanosecond parts of an epoch timestamp.

    Both '.' and ',' are accepted as the decimal point.

        ex: "42.5" -> (42, 500000000)

    Raises:
        InvalidTimestampKind: For anything but str, int or float.
        FormatMismatch: When a string does not hold a number.
    """
    if isinstance(timestamp, str):
        for separator in (".", ","):
            if separator in timestamp:
                integer, fraction = timestamp.split(separator, 1)
                return _split_components(integer, fraction)
        return _parse_int64(timestamp), 0
    if isinstance(timestamp, bool):
        raise InvalidTimestampKind("unsupported timestamp type bool")
    if isinstance(timestamp, int):
        return timestamp, 0
    if isinstance(timestamp, float):
        if not math.isfinite(timestamp):
            raise FormatMismatch(f"timestamp {timestamp} is not finite")
        fractional, integer = math.modf(timestamp)
        return int(integer), round(fractional * 1e9)
    raise InvalidTimestampKind(
        f"unsupported timestamp type {type(timestamp).__name__}"
    )


@lru_cache(maxsize=64)
def translate_layout(layout: str) -> str:
    """Translate a reference-date layout into a strptime format.

    Layouts already containing '%' are treated as strptime formats.
    """
    if "%" in layout:
        return layout
    parts: list[str] = []
    pos = 0
    for match in _LAYOUT_RE.finditer(layout):
        parts.append(layout[pos : match.start()])
        if match.group("fraction"):
            parts.append(match.group("fraction")[0] + "%f")
        else:
            parts.append(_LAYOUT_CHUNKS[match.group()])
        pos = match.end()
    parts.append(layout[pos:])
    return "".join(parts)


def resolve_location(location: str) -> tzinfo:
    """Resolve an IANA zone name, defaulting to UTC when empty.

    Raises:
        UnresolvableLocation: If the zone is unknown.
    """
    if not location or location.upper() == "UTC":
        return UTC
    try:
        return ZoneInfo(location)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise UnresolvableLocation(f"unknown location {location!r}", e) from e


def _parse_unix(kind: TimestampKind, timestamp: RawValue) -> int:
    integer, fractional = decompose_fraction(timestamp)
    if kind == TimestampKind.UNIX:
        return integer * 1_000_000_000 + fractional
    return integer * _NANOS_PER_UNIT[kind]


def _parse_layout(layout: str, timestamp: RawValue, location: str) -> int:
    if not isinstance(timestamp, str):
        raise InvalidTimestampKind(
            f"layout timestamps must be strings, got {type(timestamp).__name__}"
        )
    zone = resolve_location(location)
    try:
        parsed = datetime.strptime(timestamp, translate_layout(layout))
    except ValueError as e:
        raise FormatMismatch(
            f"{timestamp!r} does not match layout {layout!r}", e
        ) from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=zone)
    return datetime_to_instant(parsed.astimezone(UTC))


def parse_timestamp(spec: TimestampSpec, timestamp: RawValue) -> int:
    """Parse a raw timestamp into nanoseconds since the epoch, UTC.

    Unix kinds accept int, float or str and ignore the location. Layout
    timestamps must be strings and are read in ``spec.location`` unless the
    layout carries its own offset.

    Raises:
        InvalidTimestampKind: The raw value has an unsupported type.
        UnresolvableLocation: The location names no known zone.
        FormatMismatch: The value does not match the format.
    """
    if spec.kind == TimestampKind.CUSTOM_LAYOUT:
        return _parse_layout(spec.layout, timestamp, spec.location)
    return _parse_unix(spec.kind, timestamp)
