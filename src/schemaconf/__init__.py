"""
schemaconf - typed configuration loading

Reads YAML or JSON config files into dataclasses (or any class with a
keyword constructor), applying per-field defaults, required checks, numeric
ranges and custom loaders and validators. A config file on disk can be
reconciled with a newer bundled default: the user's values and comments are
kept, new keys are added and the version is bumped.

Package Structure:
- core/config/: schema, resolution, merge, update and loader facade
- core/utils/: logging
- cli/: the ``schemaconf`` command line tool
"""

__version__ = "0.3.0"

from .core.config import (
    NO_DEFAULT,
    ConfigLoader,
    ConfigLoaderBuilder,
    DefaultRegistry,
    FieldResolver,
    FieldRule,
    FormatRegistry,
    LoaderSettings,
    Schema,
    SchemaBuilder,
    UpdateCoordinator,
    loader,
    merge_documents,
    reconcile,
    resolve,
    schema_for,
    setting,
)
from .core.errors import (
    ConfigError,
    CustomValidationFailure,
    RangeViolation,
    RequiredFieldMissing,
    ResolutionError,
    SchemaError,
    StructureError,
    UnsupportedFormatError,
)

__all__ = [
    "NO_DEFAULT",
    "ConfigError",
    "ConfigLoader",
    "ConfigLoaderBuilder",
    "CustomValidationFailure",
    "DefaultRegistry",
    "FieldResolver",
    "FieldRule",
    "FormatRegistry",
    "LoaderSettings",
    "RangeViolation",
    "RequiredFieldMissing",
    "ResolutionError",
    "Schema",
    "SchemaBuilder",
    "SchemaError",
    "StructureError",
    "UnsupportedFormatError",
    "UpdateCoordinator",
    "loader",
    "merge_documents",
    "reconcile",
    "resolve",
    "schema_for",
    "setting",
]
