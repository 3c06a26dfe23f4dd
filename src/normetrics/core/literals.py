"""Parsers for human-entered duration, size and number configuration literals.

Literals arrive as the raw text of a configuration value, so they may still
carry their quotes: ``"1s"``, ``'10MB'`` or a bare ``30``.
"""

import re
from dataclasses import dataclass
from datetime import timedelta

import humanfriendly

from normetrics.core.errors import MalformedNumberLiteral, MalformedSizeLiteral

_UNIT_NANOS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # micro sign
    "μs": 1_000,  # greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

_UNITS = "|".join(sorted(_UNIT_NANOS, key=len, reverse=True))
_COMPONENT = rf"(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:{_UNITS})"
_DURATION_RE = re.compile(rf"[-+]?(?:{_COMPONENT})+")
_COMPONENT_RE = re.compile(rf"([0-9]*)(?:\.([0-9]*))?({_UNITS})")
_INTEGER_RE = re.compile(r"[-+]?[0-9]+")


def _text(literal: str | bytes) -> str:
    if isinstance(literal, bytes):
        literal = literal.decode(errors="replace")
    return literal.strip("'")


def _unquote(text: str) -> str | None:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"`":
        return text[1:-1]
    return None


def parse_go_duration(text: str) -> timedelta:
    """Parse a duration expression such as "300ms", "-1.5h" or "2h45m".

    Valid units are "ns", "us" (or "µs"), "ms", "s", "m" and "h". A bare
    "0" is accepted.

    Raises:
        ValueError: If the text is not a duration expression.
    """
    if text in {"0", "+0", "-0"}:
        return timedelta(0)
    if not _DURATION_RE.fullmatch(text):
        raise ValueError(f"invalid duration {text!r}")
    sign = -1 if text.startswith("-") else 1
    nanos = 0
    for whole, fraction, unit in _COMPONENT_RE.findall(text.lstrip("+-")):
        scale = _UNIT_NANOS[unit]
        nanos += int(whole or 0) * scale
        if fraction:
            nanos += int(fraction) * scale // 10 ** len(fraction)
    return timedelta(microseconds=sign * nanos / 1000)


def parse_duration(literal: str | bytes) -> timedelta:
    """Parse a duration literal, falling back to zero.

    Tried in order: a duration expression, a quoted duration expression,
    whole seconds, fractional seconds. When nothing matches the result is a
    zero duration; callers that cannot accept zero must check for it.
    """
    text = _text(literal)
    try:
        return parse_go_duration(text)
    except (ValueError, OverflowError):
        pass

    unquoted = _unquote(text)
    if unquoted:
        try:
            return parse_go_duration(unquoted)
        except (ValueError, OverflowError):
            pass

    try:
        if _INTEGER_RE.fullmatch(text):
            return timedelta(seconds=int(text))
        return timedelta(seconds=float(text))
    except (ValueError, OverflowError):
        return timedelta(0)


def parse_size(literal: str | bytes) -> int:
    """Parse a size literal into bytes.

    Accepts a bare integer, or a quoted size such as "10MB" (1000 based) or
    "10MiB" (1024 based).

    Raises:
        MalformedSizeLiteral: If neither form applies.
    """
    text = _text(literal)
    if _INTEGER_RE.fullmatch(text):
        return int(text)
    unquoted = _unquote(text)
    if unquoted is None:
        raise MalformedSizeLiteral(f"size {text!r} is neither an integer nor quoted")
    try:
        return humanfriendly.parse_size(unquoted)
    except humanfriendly.InvalidSize as e:
        raise MalformedSizeLiteral(f"invalid size {unquoted!r}", e) from e


def parse_number(literal: str | bytes) -> float:
    """Parse a numeric literal as a 64-bit float.

    Digit separators and surrounding whitespace are rejected.

    Raises:
        MalformedNumberLiteral: If the literal is not a number.
    """
    text = literal.decode(errors="replace") if isinstance(literal, bytes) else literal
    if "_" in text or text != text.strip():
        raise MalformedNumberLiteral(f"invalid number {text!r}")
    try:
        return float(text)
    except ValueError as e:
        raise MalformedNumberLiteral(f"invalid number {text!r}", e) from e


@dataclass(frozen=True)
class Duration:
    """Configuration duration value."""

    duration: timedelta = timedelta(0)

    @classmethod
    def from_literal(cls, literal: str | bytes) -> "Duration":
        return cls(parse_duration(literal))


@dataclass(frozen=True)
class Size:
    """Configuration size value in bytes."""

    size: int = 0

    @classmethod
    def from_literal(cls, literal: str | bytes) -> "Size":
        return cls(parse_size(literal))


@dataclass(frozen=True)
class Number:
    """Configuration numeric value."""

    value: float = 0.0

    @classmethod
    def from_literal(cls, literal: str | bytes) -> "Number":
        return cls(parse_number(literal))
