"""Process-wide agent version, set once at start-up."""

import platform
import re
import threading

from normetrics.core.errors import AlreadySet

_lock = threading.Lock()
_version = ""
_is_set = False


def set_version(version: str) -> None:
    """Set the agent version.

    Raises:
        AlreadySet: If a version was already set.
    """
    global _version, _is_set
    with _lock:
        if _is_set:
            raise AlreadySet("version has already been set")
        _version = version
        _is_set = True


def get_version() -> str:
    """Return the agent version, or an empty string before it is set."""
    return _version


def product_token() -> str:
    """Return a product token suitable for user agents."""
    return f"normetrics/{get_version()} Python/{platform.python_version()}"


def reset_version() -> None:
    """Clear the version. Only for tests."""
    global _version, _is_set
    with _lock:
        _version = ""
        _is_set = False


_VERSION_RE = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")


def parse_version_number(
    text: str, weights: tuple[int, int, int] = (1_000_000, 1_000, 1)
) -> int:
    """Extract a single comparable integer from a version string.

    The first ``major.minor[.patch]`` group in ``text`` is weighted and
    summed, so "3.45.1" becomes 3045001 with the default weights.

    Raises:
        ValueError: If the text holds no version number.
    """
    match = _VERSION_RE.search(text)
    if match is None:
        raise ValueError(f"malformed version string {text!r}")
    parts = (int(group or 0) for group in match.groups())
    return sum(part * weight for part, weight in zip(parts, weights, strict=True))
