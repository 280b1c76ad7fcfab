"""
Config loader facade.

`ConfigLoader` ties the pieces together for one config file:

- on construction, copy the bundled default to the target path if the file
  does not exist yet, optionally bring an outdated file up to the default's
  version, then parse and resolve it into the target type
- `reload` re-reads the file and swaps in the new object, keeping the old
  one if anything fails
- `update_config` reconciles the file with the bundled default; the caller
  decides when to `reload` afterwards

Loaders are usually created through `ConfigLoaderBuilder` (see `loader`).
"""

from __future__ import annotations

import enum
import logging
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Optional, TypeVar, Union

from ..utils.logger import log_error, log_info
from .defaults import DefaultRegistry
from .formats import ConfigFormat, FormatRegistry
from .persistence import PathLike, bootstrap_copy, read_config_file
from .resolver import FieldResolver
from .schema import Schema, schema_for
from .update import UpdateCoordinator
from .validation import validate_object

T = TypeVar("T")

MODULE = "loader"


class LoaderState(str, enum.Enum):
    UNBOOTSTRAPPED = "unbootstrapped"
    LOADED = "loaded"
    RELOADING = "reloading"
    UPDATING = "updating"


@dataclass
class LoaderSettings:
    """Settings shared by several loaders; explicit builder calls win."""

    format: Optional[ConfigFormat] = None
    logger: Optional[logging.Logger] = None
    auto_update: bool = False
    registry: Optional[DefaultRegistry] = None


class ConfigLoader(Generic[T]):
    """
    Live, reloadable configuration object backed by a file.

    Args:
        target: Class the file is resolved into.
        resource_path: Bundled default config (filesystem path or
            ``"package:relative/path"``).
        target_file: On-disk config file.
        schema: Field rules; scanned from ``target`` when omitted.
        fmt: File format; chosen from the file extension when omitted.
        logger: Logger for diagnostics (package logger when omitted).
        registry: Default value parsers (standard registry when omitted).
        auto_update: Reconcile an outdated file before the first load.
        context_providers: Factories for null handler contexts.
        formats: Format registry used to pick ``fmt``.

    Raises:
        StructureError: The resource is missing when a copy is needed, or a
            document is not a mapping.
        ResolutionError: The file does not satisfy the schema.
    """

    def __init__(
        self,
        target: type,
        resource_path: PathLike,
        target_file: PathLike,
        *,
        schema: Optional[Schema] = None,
        fmt: Optional[ConfigFormat] = None,
        logger: Optional[logging.Logger] = None,
        registry: Optional[DefaultRegistry] = None,
        auto_update: bool = False,
        context_providers: Optional[Dict[Any, Callable[[], Any]]] = None,
        formats: Optional[FormatRegistry] = None,
    ):
        self.target = target
        self.resource_path = resource_path
        self.target_file = Path(target_file)
        self.schema = schema if schema is not None else schema_for(target)
        self.logger = logger
        self.auto_update = auto_update
        formats = formats or FormatRegistry.standard()
        self.format = fmt or formats.for_path(self.target_file)
        self.resolver = FieldResolver(
            registry=registry, logger=logger, context_providers=context_providers
        )
        self.coordinator = UpdateCoordinator(formats=formats, logger=logger)

        self._lock = threading.Lock()
        self._config: Optional[T] = None
        self.state = LoaderState.UNBOOTSTRAPPED

        if not self.target_file.exists():
            log_info(
                MODULE,
                f"Config file not found. Copying from resource: {resource_path}",
                context=str(self.target_file),
                logger=logger,
            )
        bootstrap_copy(resource_path, self.target_file, logger=logger)

        if auto_update:
            self.update_config()

        self._config = self._load_from_file()
        self.state = LoaderState.LOADED

    @classmethod
    def load(
        cls, target: type, resource_path: PathLike, target_file: PathLike, **options: Any
    ) -> "ConfigLoader":
        """Create a loader and load ``target_file`` (see the class arguments)."""
        return cls(target, resource_path, target_file, **options)

    @property
    def config(self) -> T:
        """The currently held configuration object."""
        return self._config

    def _load_from_file(self) -> T:
        data = read_config_file(self.target_file)
        document = self.format.parse(data, str(self.target_file))
        return self.resolver.resolve(document, self.schema)

    def reload(self) -> "ConfigLoader[T]":
        """Re-read the file and replace the held object.

        On failure the previous object is kept and the error is raised.
        """
        with self._lock:
            log_info(MODULE, f"Reloading config from {self.target_file}", logger=self.logger)
            previous_state = self.state
            self.state = LoaderState.RELOADING
            try:
                fresh = self._load_from_file()
            except Exception as e:
                log_error(
                    MODULE,
                    "Reload failed; keeping the previous config",
                    context=str(e),
                    logger=self.logger,
                )
                raise
            finally:
                self.state = previous_state
            self._config = fresh
            self.state = LoaderState.LOADED
        return self

    def update_config(self) -> bool:
        """Reconcile the file with the bundled default.

        Returns True when the file was rewritten; call `reload` to pick up
        the new contents.
        """
        previous_state = self.state
        self.state = LoaderState.UPDATING
        try:
            updated = self.coordinator.reconcile(
                self.resource_path, self.target_file, self.format
            )
        finally:
            self.state = previous_state
        if not updated:
            log_info(MODULE, "Config already up-to-date.", logger=self.logger)
        return updated

    def validate(self) -> "ConfigLoader[T]":
        """Re-run the schema's checks against the held object."""
        log_info(MODULE, f"Validating config class: {self.schema.target.__name__}", logger=self.logger)
        validate_object(self._config, self.schema, self.logger)
        return self

    def __repr__(self) -> str:
        return (
            f"ConfigLoader(target={self.target.__name__}, file={str(self.target_file)!r}, "
            f"state={self.state.value})"
        )


class ConfigLoaderBuilder(Generic[T]):
    """
    Fluent construction of a `ConfigLoader`.

    Example::

        app_config = (
            loader(AppConfig)
            .from_resource("myapp:defaults/config.yml")
            .to_file("config.yml")
            .auto_update_if_outdated()
            .load()
        )
    """

    def __init__(self, target: type):
        self.target = target
        self._resource_path: Optional[PathLike] = None
        self._target_file: Optional[PathLike] = None
        self._format: Optional[ConfigFormat] = None
        self._logger: Optional[logging.Logger] = None
        self._registry: Optional[DefaultRegistry] = None
        self._schema: Optional[Schema] = None
        self._auto_update: Optional[bool] = None
        self._formats: Optional[FormatRegistry] = None
        self._context_providers: Dict[Any, Callable[[], Any]] = {}

    def from_resource(self, path: PathLike) -> "ConfigLoaderBuilder[T]":
        self._resource_path = path
        return self

    def to_file(self, path: PathLike) -> "ConfigLoaderBuilder[T]":
        self._target_file = path
        return self

    def format(self, fmt: Union[ConfigFormat, str]) -> "ConfigLoaderBuilder[T]":
        if isinstance(fmt, str):
            fmt = (self._formats or FormatRegistry.standard()).by_name(fmt)
        self._format = fmt
        return self

    def formats(self, formats: FormatRegistry) -> "ConfigLoaderBuilder[T]":
        self._formats = formats
        return self

    def with_logger(self, logger: logging.Logger) -> "ConfigLoaderBuilder[T]":
        self._logger = logger
        return self

    def with_registry(self, registry: DefaultRegistry) -> "ConfigLoaderBuilder[T]":
        self._registry = registry
        return self

    def with_schema(self, schema: Schema) -> "ConfigLoaderBuilder[T]":
        self._schema = schema
        return self

    def auto_update_if_outdated(self, enabled: bool = True) -> "ConfigLoaderBuilder[T]":
        self._auto_update = enabled
        return self

    def register_context_provider(
        self, key: Any, provider: Callable[[], Any]
    ) -> "ConfigLoaderBuilder[T]":
        self._context_providers[key] = provider
        return self

    def with_defaults(self, settings: LoaderSettings) -> "ConfigLoaderBuilder[T]":
        """Fill in anything not set explicitly from shared settings."""
        if self._format is None:
            self._format = settings.format
        if self._logger is None:
            self._logger = settings.logger
        if self._registry is None:
            self._registry = settings.registry
        if self._auto_update is None:
            self._auto_update = settings.auto_update
        return self

    def load(self) -> ConfigLoader[T]:
        if self._resource_path is None:
            raise ValueError("Resource path is not set")
        if self._target_file is None:
            raise ValueError("Target file is not set")
        return ConfigLoader(
            self.target,
            self._resource_path,
            self._target_file,
            schema=self._schema,
            fmt=self._format,
            logger=self._logger,
            registry=self._registry,
            auto_update=bool(self._auto_update),
            context_providers=self._context_providers,
            formats=self._formats,
        )


def loader(target: type, settings: Optional[LoaderSettings] = None) -> ConfigLoaderBuilder:
    """Start building a loader for ``target``."""
    builder: ConfigLoaderBuilder = ConfigLoaderBuilder(target)
    if settings is not None:
        builder.with_defaults(settings)
    return builder
