"""Config file version helpers."""

from __future__ import annotations

from typing import Any, Mapping, Tuple

VERSION_KEY = "version"
DEFAULT_VERSION = "1.0.0"


def parse_version(text: Any) -> Tuple[int, ...]:
    """Split a dotted version into integer components.

    Components that are not integers count as 0, so ``"1.x.3"`` parses to
    ``(1, 0, 3)``.
    """
    parts = []
    for part in str(text).strip().split("."):
        try:
            parts.append(int(part))
        except ValueError:
            parts.append(0)
    return tuple(parts)


def compare_versions(left: Any, right: Any) -> int:
    """Return -1, 0 or 1 as ``left`` is older than, equal to or newer than ``right``.

    Missing trailing components are treated as 0: ``"1.2"`` equals ``"1.2.0"``.
    """
    a = parse_version(left)
    b = parse_version(right)
    width = max(len(a), len(b))
    a = a + (0,) * (width - len(a))
    b = b + (0,) * (width - len(b))
    if a < b:
        return -1
    if a > b:
        return 1
    return 0


def is_older_version(current: Any, latest: Any) -> bool:
    return compare_versions(current, latest) < 0


def is_version_key(key: Any) -> bool:
    return isinstance(key, str) and key.upper() == VERSION_KEY.upper()


def find_version(document: Mapping[Any, Any]) -> str:
    """Return the document's top-level version, or ``1.0.0`` when absent."""
    for key, value in document.items():
        if is_version_key(key) and value is not None:
            return str(value)
    return DEFAULT_VERSION
