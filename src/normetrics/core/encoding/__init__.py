"""Encoders for metric records."""

from normetrics.core.encoding.ndjson import encode_records

__all__ = ["encode_records"]
