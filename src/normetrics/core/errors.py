"""Error types raised or collected while normalizing source data."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Classification of normalization errors."""

    INVALID_TIMESTAMP_KIND = "invalid_timestamp_kind"
    UNRESOLVABLE_LOCATION = "unresolvable_location"
    FORMAT_MISMATCH = "format_mismatch"
    MALFORMED_SIZE_LITERAL = "malformed_size_literal"
    MALFORMED_NUMBER_LITERAL = "malformed_number_literal"
    SOURCE_UNREACHABLE = "source_unreachable"
    QUERY_EXECUTION = "query_execution"
    COLUMN_CLASSIFICATION = "column_classification"
    ALREADY_SET = "already_set"


class NormetricsError(Exception):
    """Base error for all normetrics operations.

    Attributes:
        message: Human readable description.
        kind: Error classification.
        source: Underlying exception, if any.
    """

    kind: ErrorKind

    def __init__(self, message: str, source: BaseException | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.source = source

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, kind={self.kind!r})"


class TimestampError(NormetricsError):
    """Base for timestamp parse failures."""


class InvalidTimestampKind(TimestampError):
    kind = ErrorKind.INVALID_TIMESTAMP_KIND


class UnresolvableLocation(TimestampError):
    kind = ErrorKind.UNRESOLVABLE_LOCATION


class FormatMismatch(TimestampError):
    kind = ErrorKind.FORMAT_MISMATCH


class LiteralError(NormetricsError):
    """Base for configuration literal parse failures."""


class MalformedSizeLiteral(LiteralError):
    kind = ErrorKind.MALFORMED_SIZE_LITERAL


class MalformedNumberLiteral(LiteralError):
    kind = ErrorKind.MALFORMED_NUMBER_LITERAL


class SourceUnreachable(NormetricsError):
    """The source could not report its version; the cycle is abandoned."""

    kind = ErrorKind.SOURCE_UNREACHABLE


class QueryExecutionError(NormetricsError):
    """A single query failed to execute or to drain."""

    kind = ErrorKind.QUERY_EXECUTION


class ColumnClassificationFailure(NormetricsError):
    """A single column could not be classified.

    Collected as a diagnostic by the row classifier, never raised by it.
    """

    kind = ErrorKind.COLUMN_CLASSIFICATION

    def __init__(
        self, column: str, message: str, source: BaseException | None = None
    ) -> None:
        super().__init__(message, source)
        self.column = column


class AlreadySet(NormetricsError):
    kind = ErrorKind.ALREADY_SET
