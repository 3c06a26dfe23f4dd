"""NDJSON encoder for metric records."""

import json
from collections.abc import Iterable

from normetrics.core.models import MetricRecord


def encode_records(records: Iterable[MetricRecord]) -> str:
    """Encode metric records to newline-delimited JSON.

    Args:
        records: An iterable of MetricRecord objects.

    Returns:
        NDJSON string with one JSON object per line.
        Empty string if no records.
    """
    lines = []
    for record in records:
        obj = {
            "name": record.name,
            "timestamp": record.timestamp,
            "tags": record.tags,
            "fields": record.fields,
        }
        lines.append(json.dumps(obj))

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
