"""
Field rules and schemas for configuration target types.

A schema is the per-type contract the resolver applies: for every
constructor parameter of the target type, which key it is read from,
whether it is required, its default, its numeric range and any custom
loader, validators or null handler.

Schemas come from one of two places:

- `SchemaBuilder`, which declares rules programmatically
- `schema_for`, which scans a dataclass (rules attached with `setting`) or a
  plain class's ``__init__`` signature

Scanning happens once per type; the result is cached and immutable.
"""

from __future__ import annotations

import dataclasses
import functools
import inspect
import typing
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple

from ..errors import SchemaError
from .defaults import base_type

METADATA_KEY = "schemaconf"

FieldLoader = Callable[[Any], Any]
FieldValidator = Callable[[Any, Any], Any]
NullHandler = Callable[[Any, Any, Any], Any]


class _NoDefault:
    _instance: Optional["_NoDefault"] = None

    def __new__(cls) -> "_NoDefault":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_DEFAULT"

    def __bool__(self) -> bool:
        return False


NO_DEFAULT = _NoDefault()


@dataclass(frozen=True)
class FieldRule:
    """Metadata describing how one target field is resolved."""

    name: str
    type: Any = str
    alias: Optional[str] = None
    required: bool = False
    soft: bool = False
    min: Optional[int] = None
    max: Optional[int] = None
    default: Any = NO_DEFAULT
    loader: Optional[FieldLoader] = None
    validators: Tuple[FieldValidator, ...] = ()
    null_handler: Optional[NullHandler] = None
    context: Any = None
    schema: Optional["Schema"] = None
    description: str = ""

    @property
    def key(self) -> str:
        return self.alias or self.name

    @property
    def has_default(self) -> bool:
        return self.default is not NO_DEFAULT

    @property
    def has_range(self) -> bool:
        return self.min is not None or self.max is not None

    @property
    def hard_required(self) -> bool:
        return self.required and not self.soft

    @property
    def soft_required(self) -> bool:
        return self.required and self.soft


@dataclass(frozen=True)
class Schema:
    """Ordered, immutable set of field rules for one target type."""

    target: type
    fields: Tuple[FieldRule, ...]

    def __iter__(self) -> Iterator[FieldRule]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    @property
    def names(self) -> List[str]:
        return [rule.name for rule in self.fields]

    def field(self, name: str) -> FieldRule:
        for rule in self.fields:
            if rule.name == name:
                return rule
        raise KeyError(name)


def _as_tuple(validators: Any) -> Tuple[FieldValidator, ...]:
    if validators is None:
        return ()
    if callable(validators):
        return (validators,)
    return tuple(validators)


def _check_range(name: str, min_value: Optional[int], max_value: Optional[int]) -> None:
    if min_value is not None and max_value is not None and min_value > max_value:
        raise SchemaError(f"Field '{name}' has min {min_value} greater than max {max_value}")


def setting(
    *,
    default: Any = NO_DEFAULT,
    alias: Optional[str] = None,
    required: bool = False,
    soft: bool = False,
    min: Optional[int] = None,
    max: Optional[int] = None,
    loader: Optional[FieldLoader] = None,
    validate: Any = None,
    if_null: Optional[NullHandler] = None,
    context: Any = None,
    description: str = "",
) -> Any:
    """Declare resolution rules on a dataclass field.

    ``default`` is the config-level default: a raw string parsed with the
    registry for the field's type (``"8080"`` for an ``int``), or a value of
    the field's type used as-is. The dataclass itself gets ``None`` as its
    default, so `setting` fields may follow fields with plain defaults; the
    resolver always passes every field to the constructor, and that ``None``
    is never used as a config default.
    """
    _check_range(alias or "<field>", min, max)
    options = {
        "default": default,
        "alias": alias,
        "required": required,
        "soft": soft,
        "min": min,
        "max": max,
        "loader": loader,
        "validators": _as_tuple(validate),
        "null_handler": if_null,
        "context": context,
        "description": description,
    }
    return dataclasses.field(default=None, metadata={METADATA_KEY: options})


def is_field_bag(tp: Any) -> bool:
    """True for types resolved recursively from a nested mapping."""
    return inspect.isclass(tp) and dataclasses.is_dataclass(tp)


def _nested_schema(tp: Any) -> Optional[Schema]:
    target = base_type(tp)
    if is_field_bag(target):
        return schema_for(target)
    return None


class SchemaBuilder:
    """
    Programmatic schema declaration.

    Example::

        schema = (
            SchemaBuilder(ServerConfig)
            .field("port", int, default="8080", min=1, max=65535)
            .field("api_key", str, alias="apiKey", required=True)
            .build()
        )

    For dataclass targets the field type defaults to the annotation and
    every declared name must be a dataclass field. Fields of the target
    that are not declared are resolved with no rules.
    """

    def __init__(self, target: type):
        self.target = target
        self._rules: Dict[str, FieldRule] = {}

    def field(
        self,
        name: str,
        type: Any = None,
        *,
        default: Any = NO_DEFAULT,
        alias: Optional[str] = None,
        required: bool = False,
        soft: bool = False,
        min: Optional[int] = None,
        max: Optional[int] = None,
        loader: Optional[FieldLoader] = None,
        validate: Any = None,
        if_null: Optional[NullHandler] = None,
        context: Any = None,
        schema: Optional[Schema] = None,
        description: str = "",
    ) -> "SchemaBuilder":
        if name in self._rules:
            raise SchemaError(f"Field '{name}' declared twice for {self.target.__name__}")
        _check_range(name, min, max)

        hints = _constructor_hints(self.target)
        if hints and name not in hints:
            raise SchemaError(f"{self.target.__name__} has no field '{name}'")
        declared = type if type is not None else hints.get(name, str)

        self._rules[name] = FieldRule(
            name=name,
            type=declared,
            alias=alias,
            required=required,
            soft=soft,
            min=min,
            max=max,
            default=default,
            loader=loader,
            validators=_as_tuple(validate),
            null_handler=if_null,
            context=context,
            schema=schema if schema is not None else _nested_schema(declared),
            description=description,
        )
        return self

    def build(self) -> Schema:
        hints = _constructor_hints(self.target)
        scanned = schema_for(self.target) if hints else None
        rules: List[FieldRule] = []
        for name in hints:
            rule = self._rules.get(name)
            if rule is None:
                rule = scanned.field(name)
            rules.append(rule)
        for name, rule in self._rules.items():
            if name not in hints:
                rules.append(rule)
        return Schema(target=self.target, fields=tuple(rules))


def _type_hints(obj: Any) -> Dict[str, Any]:
    # Unresolvable string annotations fall back to the raw annotation.
    try:
        return typing.get_type_hints(obj)
    except (NameError, TypeError):
        return {}


def _constructor_hints(target: type) -> Dict[str, Any]:
    """Constructor parameter names mapped to their annotations, in order."""
    if dataclasses.is_dataclass(target):
        resolved = _type_hints(target)
        return {
            f.name: resolved.get(f.name, f.type)
            for f in dataclasses.fields(target)
            if f.init
        }
    try:
        signature = inspect.signature(target)
    except (TypeError, ValueError):
        return {}
    resolved = _type_hints(target.__init__)
    hints: Dict[str, Any] = {}
    for param in signature.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        annotation = resolved.get(param.name, param.annotation)
        hints[param.name] = str if annotation is inspect.Parameter.empty else annotation
    return hints


def _rules_from_dataclass(target: type) -> Iterable[FieldRule]:
    hints = _type_hints(target)
    for f in dataclasses.fields(target):
        if not f.init:
            continue
        declared = hints.get(f.name, f.type)
        declared_with_setting = METADATA_KEY in f.metadata
        options = dict(f.metadata.get(METADATA_KEY, {}))
        default = options.pop("default", NO_DEFAULT)
        if not declared_with_setting:
            if f.default is not dataclasses.MISSING:
                default = f.default
            elif f.default_factory is not dataclasses.MISSING:
                default = f.default_factory()
        _check_range(f.name, options.get("min"), options.get("max"))
        yield FieldRule(
            name=f.name,
            type=declared,
            default=default,
            schema=_nested_schema(declared),
            **options,
        )


def _rules_from_signature(target: type) -> Iterable[FieldRule]:
    signature = inspect.signature(target)
    hints = _constructor_hints(target)
    for name, annotation in hints.items():
        param = signature.parameters[name]
        default = NO_DEFAULT if param.default is inspect.Parameter.empty else param.default
        yield FieldRule(
            name=name,
            type=annotation,
            default=default,
            schema=_nested_schema(annotation),
        )


@functools.lru_cache(maxsize=None)
def schema_for(target: type) -> Schema:
    """Scan ``target`` once and return its cached schema.

    Dataclasses contribute their `setting` metadata and dataclass defaults;
    other classes contribute their ``__init__`` parameters and defaults.
    """
    if not inspect.isclass(target):
        raise SchemaError(f"Schema target must be a class, got {target!r}")
    if dataclasses.is_dataclass(target):
        rules = tuple(_rules_from_dataclass(target))
    else:
        rules = tuple(_rules_from_signature(target))
    return Schema(target=target, fields=rules)
