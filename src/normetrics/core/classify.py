"""Split a schema-less result row into tags and fields."""

import logging
from collections import Counter
from collections.abc import Collection, Mapping
from dataclasses import dataclass, field

from normetrics.core.errors import ColumnClassificationFailure
from normetrics.core.models import RawRow, RawValue, ValueKind, value_kind

logger = logging.getLogger(__name__)

DEFAULT_IDENTITY_TAG = "db"


@dataclass
class Classification:
    """Tags and fields produced from one row.

    Attributes:
        tags: String-valued dimensions, including the identity tag.
        fields: Measured values.
        failures: Columns that were dropped, one entry per column name.
    """

    tags: dict[str, str] = field(default_factory=dict)
    fields: dict[str, RawValue] = field(default_factory=dict)
    failures: list[ColumnClassificationFailure] = field(default_factory=list)

    def drop(self, column: str, message: str) -> None:
        """Record a column that could not be classified."""
        logger.debug("Dropping column %s: %s", column, message)
        self.failures.append(ColumnClassificationFailure(column, message))


def _as_text(value: bytes | bytearray | memoryview) -> str:
    return bytes(value).decode("utf-8", errors="replace")


def _kind_or_none(value: object) -> ValueKind | None:
    try:
        return value_kind(value)
    except TypeError:
        return None


def _render_tag(kind: ValueKind, value: RawValue) -> str | None:
    """Return the tag form of a value, or None if it cannot be a tag."""
    match kind:
        case ValueKind.STRING:
            return value  # type: ignore[return-value]
        case ValueKind.BYTES:
            return _as_text(value)  # type: ignore[arg-type]
        case ValueKind.INT64 | ValueKind.BOOL:
            return str(int(value))  # type: ignore[arg-type]
        case ValueKind.FLOAT64 | ValueKind.NULL:
            return None


def classify(
    row: RawRow,
    tag_names: Collection[str] = (),
    ignored_names: Collection[str] = (),
    identity_column: str = "",
    fallback_identity: str = "",
    identity_tag: str = DEFAULT_IDENTITY_TAG,
    base_tags: Mapping[str, str] | None = None,
) -> Classification:
    """Classify the columns of a row into tags and fields.

    Null and ignored columns are dropped. Columns named in ``tag_names``
    become tags, everything else becomes a field. The identity tag takes the
    string value of ``identity_column``, even when empty, or else
    ``fallback_identity``; tag columns win over it and over ``base_tags`` on a
    key clash. Only tags are checked for clashes: a field column may share its
    name with the identity tag or a base tag and is kept as a field.

    The result does not depend on the order of the row. A column that cannot
    be classified is dropped and reported in ``failures``; the rest of the
    row is unaffected.
    """
    tag_set = frozenset(tag_names)
    ignored = frozenset(ignored_names)
    result = Classification(tags=dict(base_tags or {}))

    counts = Counter(name for name, _ in row)
    duplicated = {name for name, count in counts.items() if count > 1}
    for name in sorted(duplicated):
        result.drop(name, f"column {name!r} appears {counts[name]} times")
    columns = {name: value for name, value in row if name not in duplicated}

    identity = columns.get(identity_column) if identity_column else None
    if isinstance(identity, str):
        result.tags[identity_tag] = identity
    elif fallback_identity:
        result.tags[identity_tag] = fallback_identity

    for name in sorted(columns):
        value = columns[name]
        if value is None or name in ignored:
            continue
        kind = _kind_or_none(value)
        if kind is None:
            result.drop(name, f"unsupported value type {type(value).__name__}")
            continue

        if name in tag_set:
            rendered = _render_tag(kind, value)
            if rendered is None:
                result.drop(name, f"cannot use {kind} column {name!r} as a tag")
                continue
            result.tags[name] = rendered
        elif kind == ValueKind.BYTES:
            result.fields[name] = _as_text(value)  # type: ignore[arg-type]
        else:
            result.fields[name] = value

    return result
