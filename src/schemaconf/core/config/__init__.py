"""Schema-driven config loading: formats, merge, update, resolution."""

from .defaults import DefaultRegistry
from .formats import ConfigFormat, FormatRegistry, JsonFormat, YamlFormat
from .loader import ConfigLoader, ConfigLoaderBuilder, LoaderSettings, LoaderState, loader
from .merge import MergeResult, flatten, merge_documents, merge_tree
from .persistence import bootstrap_copy, read_resource, write_atomic
from .resolver import FieldResolver, normalize_key, resolve
from .schema import NO_DEFAULT, FieldRule, Schema, SchemaBuilder, schema_for, setting
from .update import UpdateCoordinator, UpdatePlan, reconcile
from .validation import validate_object
from .version import compare_versions, find_version, is_older_version, parse_version

__all__ = [
    "NO_DEFAULT",
    "ConfigFormat",
    "ConfigLoader",
    "ConfigLoaderBuilder",
    "DefaultRegistry",
    "FieldResolver",
    "FieldRule",
    "FormatRegistry",
    "JsonFormat",
    "LoaderSettings",
    "LoaderState",
    "MergeResult",
    "Schema",
    "SchemaBuilder",
    "UpdateCoordinator",
    "UpdatePlan",
    "YamlFormat",
    "bootstrap_copy",
    "compare_versions",
    "find_version",
    "flatten",
    "is_older_version",
    "loader",
    "merge_documents",
    "merge_tree",
    "normalize_key",
    "parse_version",
    "read_resource",
    "reconcile",
    "resolve",
    "schema_for",
    "setting",
    "validate_object",
    "write_atomic",
]
