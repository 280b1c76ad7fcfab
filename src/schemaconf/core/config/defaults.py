"""Parsers that turn raw textual values into typed field values."""

from __future__ import annotations

import json
import types
import typing
from typing import Any, Callable, Dict, Optional

DefaultParser = Callable[[str], Any]

_TRUE_STRINGS = {"1", "true", "yes", "on"}
_FALSE_STRINGS = {"0", "false", "no", "off"}


def base_type(annotation: Any) -> Any:
    """Strip ``Optional[...]`` and return the underlying type.

    String annotations (from ``from __future__ import annotations``) are
    expected to be resolved before they reach this function.
    """
    origin = typing.get_origin(annotation)
    if origin is typing.Union or _is_union_type(origin):
        args = [arg for arg in typing.get_args(annotation) if arg is not type(None)]
        if len(args) == 1:
            return base_type(args[0])
        return annotation
    if origin in (list, dict, tuple):
        return origin
    return annotation


def _is_union_type(origin: Any) -> bool:
    union_type = getattr(types, "UnionType", None)
    return union_type is not None and origin is union_type


def _parse_str(raw: str) -> str:
    return raw


def _parse_bool(raw: str) -> bool:
    lowered = raw.strip().lower()
    if lowered in _TRUE_STRINGS:
        return True
    if lowered in _FALSE_STRINGS:
        return False
    raise ValueError(f"Cannot interpret {raw!r} as a boolean")


def _parse_int(raw: str) -> int:
    return int(raw.strip())


def _parse_float(raw: str) -> float:
    return float(raw.strip())


def _parse_list(raw: str) -> list:
    trimmed = raw.strip()
    try:
        parsed = json.loads(trimmed)
        if isinstance(parsed, list):
            return parsed
    except json.JSONDecodeError:
        pass
    return [item.strip() for item in trimmed.split(",") if item.strip()]


def _parse_dict(raw: str) -> dict:
    parsed = json.loads(raw.strip())
    if not isinstance(parsed, dict):
        raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
    return parsed


class DefaultRegistry:
    """
    Mapping from a declared field type to the parser for its raw text.

    A registry is an ordinary object: the resolver owns one, tests build
    their own, and nothing is shared between loaders unless the caller
    shares it. Registering a parser for a type that already has one
    replaces it.
    """

    def __init__(self, parsers: Optional[Dict[Any, DefaultParser]] = None):
        self._parsers: Dict[Any, DefaultParser] = dict(parsers or {})

    @classmethod
    def standard(cls) -> "DefaultRegistry":
        """Return a registry with parsers for the built-in field types."""
        registry = cls()
        registry.register(str, _parse_str)
        registry.register(bool, _parse_bool)
        registry.register(int, _parse_int)
        registry.register(float, _parse_float)
        registry.register(list, _parse_list)
        registry.register(dict, _parse_dict)
        return registry

    def register(self, field_type: Any, parser: DefaultParser) -> "DefaultRegistry":
        self._parsers[base_type(field_type)] = parser
        return self

    def get(self, field_type: Any) -> Optional[DefaultParser]:
        return self._parsers.get(base_type(field_type))

    def __contains__(self, field_type: Any) -> bool:
        return base_type(field_type) in self._parsers

    def copy(self) -> "DefaultRegistry":
        return DefaultRegistry(self._parsers)

    def parse(self, raw: str, field_type: Any) -> Any:
        """Parse ``raw`` as ``field_type``.

        Raises:
            KeyError: No parser is registered for the type.
            ValueError: The registered parser rejected the text.
        """
        parser = self.get(field_type)
        if parser is None:
            raise KeyError(field_type)
        return parser(raw)

    def coerce(self, value: Any, field_type: Any) -> Any:
        """Bring a raw document value to ``field_type`` where a parser exists.

        Values that already have the right type pass through unchanged.
        Integers are accepted for float fields. Strings go through the
        registered parser. Anything else, including types without a parser,
        is returned as-is.
        """
        target = base_type(field_type)
        if value is None or not isinstance(target, type):
            return value
        if target is float and isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        if target is int and isinstance(value, bool):
            raise ValueError(f"Expected int, got bool {value!r}")
        if isinstance(value, target):
            return value
        if target is str and isinstance(value, (int, float, bool)):
            return str(value)
        if isinstance(value, str) and target in self:
            return self.parse(value, target)
        if target in (int, float, bool) and value is not None:
            raise ValueError(f"Expected {target.__name__}, got {type(value).__name__}")
        return value
