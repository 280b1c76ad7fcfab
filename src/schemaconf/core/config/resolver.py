"""
Resolution of a parsed config document into a typed target object.

For every field of the target's schema the resolver applies, in order:

1. lookup of the raw value by alias or name (case and separator insensitive)
2. the custom loader, or coercion to the declared type
3. default injection when the value is missing or blank
4. the required check (hard fails, soft warns)
5. the inclusive range check on numeric values
6. construction through the target's constructor with every field by name
7. the null handler for fields still blank, then custom validators, both
   called with the constructed object as owner

Any fatal check aborts the whole object; nothing partially built is ever
returned. Loader failures, unparsable defaults and defaults for types
without a registered parser are logged as warnings and leave the field
missing.
"""

from __future__ import annotations

import logging
import typing
from collections.abc import Mapping
from copy import deepcopy
from typing import Any, Callable, Dict, Optional, Tuple, TypeVar, Union

from ..errors import SchemaError
from ..utils.logger import log_debug, log_error, log_info, log_warning
from .defaults import DefaultRegistry, base_type
from .schema import FieldRule, Schema, schema_for
from .validation import check_range, check_required, is_blank, run_validators

T = TypeVar("T")

MODULE = "resolver"

_MISSING = object()


def normalize_key(key: Any) -> str:
    """Lookup form of a key: ``apiKey``, ``API_KEY`` and ``api-key`` agree."""
    return str(key).lower().replace("_", "").replace("-", "")


def _allows_none(annotation: Any) -> bool:
    args = typing.get_args(annotation)
    return bool(args) and type(None) in args


class _KeyIndex:
    """Case-insensitive view over one mapping level of a document."""

    def __init__(self, bag: Mapping, logger: Optional[logging.Logger], prefix: str):
        self._bag = bag
        self._normalized: Dict[str, Any] = {}
        for key in bag:
            normalized = normalize_key(key)
            if normalized in self._normalized:
                log_debug(
                    MODULE,
                    f"Key '{prefix}{key}' collides with '{prefix}{self._normalized[normalized]}'; "
                    "the first one is used",
                    logger=logger,
                )
                continue
            self._normalized[normalized] = key

    def find(self, key: str) -> Tuple[bool, Any]:
        if key in self._bag:
            return True, self._bag[key]
        raw_key = self._normalized.get(normalize_key(key))
        if raw_key is None:
            return False, None
        return True, self._bag[raw_key]


class FieldResolver:
    """
    Build target objects from parsed documents.

    Args:
        registry: Parsers for default values and raw strings. A fresh
            standard registry is used when omitted.
        logger: Logger for soft warnings (package logger when omitted).
        context_providers: Factories keyed by the ``context`` declared on a
            field; the produced object is passed to that field's null
            handler.
    """

    def __init__(
        self,
        registry: Optional[DefaultRegistry] = None,
        logger: Optional[logging.Logger] = None,
        context_providers: Optional[Dict[Any, Callable[[], Any]]] = None,
    ):
        self.registry = registry if registry is not None else DefaultRegistry.standard()
        self.logger = logger
        self.context_providers: Dict[Any, Callable[[], Any]] = dict(context_providers or {})

    def resolve(self, document: Mapping, target: Union[Schema, type]) -> Any:
        """Resolve ``document`` into an instance of the schema's target type.

        Raises:
            RequiredFieldMissing: A hard-required field has no value.
            RangeViolation: A numeric field is outside its declared range.
            CustomValidationFailure: A custom validator rejected a value.
            SchemaError: The target type cannot be constructed from its fields.
        """
        schema = target if isinstance(target, Schema) else schema_for(target)
        return self._resolve_object(document, schema, prefix="")

    def _resolve_object(self, bag: Mapping, schema: Schema, prefix: str) -> Any:
        index = _KeyIndex(bag, self.logger, prefix)
        values: Dict[str, Any] = {}
        for rule in schema:
            values[rule.name] = self._resolve_field(index, rule, prefix)

        try:
            obj = schema.target(**values)
        except TypeError as e:
            raise SchemaError(f"Cannot construct {schema.target.__name__}: {e}") from e

        for rule in schema:
            path = f"{prefix}{rule.name}"
            value = values[rule.name]
            if rule.null_handler is not None and is_blank(value):
                self._run_null_handler(rule, value, obj, path)
            run_validators(rule, value, obj, path)
        return obj

    def _resolve_field(self, index: _KeyIndex, rule: FieldRule, prefix: str) -> Any:
        path = f"{prefix}{rule.name}"
        present, raw = index.find(rule.key)

        value: Any = None
        if present and raw is not None:
            if is_blank(raw) and rule.loader is None:
                value = raw if base_type(rule.type) is str else None
            else:
                loaded = self._load(rule, raw, path)
                if loaded is not _MISSING:
                    value = loaded

        if is_blank(value) and rule.has_default:
            injected = self._inject_default(rule, path)
            if injected is not _MISSING:
                value = injected

        # An absent section still gets its own defaults unless it is Optional.
        if (
            value is None
            and rule.schema is not None
            and not rule.has_default
            and not _allows_none(rule.type)
        ):
            value = self._resolve_object({}, rule.schema, prefix=f"{path}.")

        check_required(rule, value, path, self.logger)
        check_range(rule, value, path)
        return value

    def _load(self, rule: FieldRule, raw: Any, path: str) -> Any:
        if rule.loader is not None:
            try:
                return rule.loader(raw)
            except Exception as e:
                log_warning(
                    MODULE,
                    f"Custom loader failed for field '{path}': {e}",
                    logger=self.logger,
                )
                return _MISSING

        if rule.schema is not None:
            if isinstance(raw, Mapping):
                return self._resolve_object(raw, rule.schema, prefix=f"{path}.")
            log_warning(
                MODULE,
                f"Field '{path}' expects a mapping, got {type(raw).__name__}",
                logger=self.logger,
            )
            return _MISSING

        try:
            return self.registry.coerce(raw, rule.type)
        except (TypeError, ValueError) as e:
            log_warning(
                MODULE,
                f"Cannot convert value of field '{path}' to {_type_name(rule.type)}: {e}",
                logger=self.logger,
            )
            return _MISSING

    def _inject_default(self, rule: FieldRule, path: str) -> Any:
        default = rule.default
        if rule.schema is not None and isinstance(default, Mapping):
            value = self._resolve_object(default, rule.schema, prefix=f"{path}.")
        elif isinstance(default, str):
            parser = self.registry.get(rule.type)
            if parser is None:
                log_warning(
                    MODULE,
                    f"No default parser registered for '{_type_name(rule.type)}' "
                    f"to parse default on '{path}'",
                    logger=self.logger,
                )
                return _MISSING
            try:
                value = parser(default)
            except Exception as e:
                log_warning(
                    MODULE,
                    f"Failed to parse default value {default!r} for field '{path}': {e}",
                    logger=self.logger,
                )
                return _MISSING
        else:
            value = deepcopy(default)
        if value is not None:
            log_info(
                MODULE,
                f"Field '{path}' was null or blank, set default: {value!r}",
                logger=self.logger,
            )
        return value

    def _run_null_handler(self, rule: FieldRule, value: Any, owner: Any, path: str) -> None:
        context = None
        if rule.context is not None:
            provider = self.context_providers.get(rule.context)
            if provider is None:
                log_warning(
                    MODULE,
                    f"No context provider for {rule.context!r}; null handler skipped for '{path}'",
                    logger=self.logger,
                )
                return
        handler = rule.null_handler
        try:
            if rule.context is not None:
                context = provider()
            handler(value, owner, context)
            log_info(
                MODULE,
                f"Executed null handler {getattr(handler, '__name__', handler)!s} for field '{path}'",
                logger=self.logger,
            )
        except Exception as e:
            log_error(
                MODULE,
                f"Null handler failed for field '{path}'",
                context=str(e),
                exception=e,
                logger=self.logger,
            )


def _type_name(tp: Any) -> str:
    target = base_type(tp)
    return getattr(target, "__name__", str(target))


def resolve(
    document: Mapping,
    target: Union[Schema, type],
    registry: Optional[DefaultRegistry] = None,
    logger: Optional[logging.Logger] = None,
) -> Any:
    """Resolve ``document`` with a one-off `FieldResolver`."""
    return FieldResolver(registry=registry, logger=logger).resolve(document, target)
