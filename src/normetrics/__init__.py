"""normetrics - normalize loosely-typed source values into metric records."""

from normetrics.adapters.sources import SQLiteSource
from normetrics.adapters.storage import InMemoryRecordStorage
from normetrics.core.classify import Classification, classify
from normetrics.core.errors import (
    AlreadySet,
    ColumnClassificationFailure,
    ErrorKind,
    FormatMismatch,
    InvalidTimestampKind,
    MalformedNumberLiteral,
    MalformedSizeLiteral,
    NormetricsError,
    QueryExecutionError,
    SourceUnreachable,
    UnresolvableLocation,
)
from normetrics.core.literals import parse_duration, parse_number, parse_size
from normetrics.core.models import (
    MetricRecord,
    QueryDescriptor,
    TimestampKind,
    TimestampSpec,
    ValueKind,
)
from normetrics.core.runner import CycleReport, QueryRunner
from normetrics.core.timestamps import decompose_fraction, parse_timestamp
from normetrics.core.version import get_version, set_version

__all__ = [
    "AlreadySet",
    "Classification",
    "ColumnClassificationFailure",
    "CycleReport",
    "ErrorKind",
    "FormatMismatch",
    "InMemoryRecordStorage",
    "InvalidTimestampKind",
    "MalformedNumberLiteral",
    "MalformedSizeLiteral",
    "MetricRecord",
    "NormetricsError",
    "QueryDescriptor",
    "QueryExecutionError",
    "QueryRunner",
    "SQLiteSource",
    "SourceUnreachable",
    "TimestampKind",
    "TimestampSpec",
    "UnresolvableLocation",
    "ValueKind",
    "classify",
    "decompose_fraction",
    "get_version",
    "parse_duration",
    "parse_number",
    "parse_size",
    "parse_timestamp",
    "set_version",
]
