"""
Exception hierarchy for schemaconf.

Every error raised while loading, reconciling or resolving a configuration
derives from `ConfigError`, so callers can catch the whole family at once.

- `StructureError` aborts a load: missing resource, missing document, a root
  that is not a mapping, an unsupported file format.
- `ResolutionError` subclasses abort the construction of one object. The
  previously loaded object, if any, is left untouched.
- `SchemaError` reports a schema declared incorrectly by the caller.
"""

from __future__ import annotations

from typing import Any, Optional


class ConfigError(Exception):
    """Base class for all schemaconf errors."""


class StructureError(ConfigError):
    """The configuration source cannot be read as a mapping document."""


class UnsupportedFormatError(StructureError):
    """No registered format handles the given file extension."""


class SchemaError(ConfigError):
    """A schema declaration is invalid."""


class ResolutionError(ConfigError):
    """Resolving a document into a target object failed."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class RequiredFieldMissing(ResolutionError):
    """A hard-required field is missing or blank."""

    def __init__(self, field: str):
        super().__init__(field, f"Missing required config field: {field}")


class RangeViolation(ResolutionError):
    """A numeric field lies outside its declared inclusive range."""

    def __init__(self, field: str, min_value: Optional[int], max_value: Optional[int], value: Any):
        self.min = min_value
        self.max = max_value
        self.value = value
        super().__init__(
            field,
            f"Config field '{field}' out of range [{min_value}, {max_value}]: {value}",
        )


class CustomValidationFailure(ResolutionError):
    """A custom validator rejected a field value."""

    def __init__(self, field: str, detail: str):
        self.detail = detail
        super().__init__(field, f"Validation failed for config field '{field}': {detail}")
