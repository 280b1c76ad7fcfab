"""
Config file formats.

A format turns file bytes into a document and back. Each format offers two
readings of the same bytes:

- ``parse`` returns plain Python containers (the flat bag the resolver reads)
- ``parse_tree`` returns the representation used when the file is rewritten
  after a version update

For YAML the tree is a ruamel.yaml round-trip document, which keeps the
user's comments, key order and quoting through a rewrite. JSON has no
comments, so both readings are the same dict.

Formats are picked by file extension through a `FormatRegistry`.
"""

from __future__ import annotations

import io
import json
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import yaml  # PyYAML
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError as RuamelYAMLError

from ..errors import StructureError, UnsupportedFormatError


def _require_mapping(data: Any, source: str) -> Any:
    if data is None:
        raise StructureError(f"No config document found in {source}")
    if not isinstance(data, dict):
        raise StructureError(
            f"Config root must be a mapping in {source}, got {type(data).__name__}"
        )
    return data


class ConfigFormat:
    """Base class for a config file format."""

    name: str = ""
    extensions: tuple = ()
    preserves_comments: bool = False

    def parse(self, data: bytes, source: str = "<bytes>") -> Dict[str, Any]:
        raise NotImplementedError

    def parse_tree(self, data: bytes, source: str = "<bytes>") -> Any:
        return self.parse(data, source)

    def emit(self, document: Any) -> bytes:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class YamlFormat(ConfigFormat):
    name = "yaml"
    extensions = (".yaml", ".yml")
    preserves_comments = True

    def parse(self, data: bytes, source: str = "<bytes>") -> Dict[str, Any]:
        try:
            loaded = yaml.safe_load(data.decode("utf-8"))
        except yaml.YAMLError as e:
            raise StructureError(f"YAML parsing error in {source}: {e}") from e
        return _require_mapping(loaded, source)

    def _round_trip(self) -> YAML:
        rt = YAML(typ="rt")
        rt.preserve_quotes = True
        rt.width = 4096
        return rt

    def parse_tree(self, data: bytes, source: str = "<bytes>") -> Any:
        try:
            loaded = self._round_trip().load(data.decode("utf-8"))
        except RuamelYAMLError as e:
            raise StructureError(f"YAML parsing error in {source}: {e}") from e
        return _require_mapping(loaded, source)

    def emit(self, document: Any) -> bytes:
        buffer = io.StringIO()
        self._round_trip().dump(document, buffer)
        return buffer.getvalue().encode("utf-8")


class JsonFormat(ConfigFormat):
    name = "json"
    extensions = (".json",)

    def parse(self, data: bytes, source: str = "<bytes>") -> Dict[str, Any]:
        text = data.decode("utf-8")
        if not text.strip():
            raise StructureError(f"No config document found in {source}")
        try:
            loaded = json.loads(text)
        except json.JSONDecodeError as e:
            raise StructureError(f"JSON parsing error in {source}: {e}") from e
        return _require_mapping(loaded, source)

    def emit(self, document: Any) -> bytes:
        return (json.dumps(document, indent=2, ensure_ascii=False) + "\n").encode("utf-8")


class FormatRegistry:
    """Formats keyed by lower-case file extension."""

    def __init__(self, formats: Optional[Iterable[ConfigFormat]] = None):
        self._by_extension: Dict[str, ConfigFormat] = {}
        for fmt in formats or ():
            self.register(fmt)

    @classmethod
    def standard(cls) -> "FormatRegistry":
        return cls([YamlFormat(), JsonFormat()])

    def register(self, fmt: ConfigFormat) -> "FormatRegistry":
        for extension in fmt.extensions:
            self._by_extension[extension.lower()] = fmt
        return self

    def for_path(self, path: Union[str, Path]) -> ConfigFormat:
        suffix = Path(str(path)).suffix.lower()
        fmt = self._by_extension.get(suffix)
        if fmt is None:
            raise UnsupportedFormatError(f"Unsupported config format: {suffix or path}")
        return fmt

    def by_name(self, name: str) -> ConfigFormat:
        for fmt in self._by_extension.values():
            if fmt.name == name.lower():
                return fmt
        raise UnsupportedFormatError(f"Unsupported config format: {name}")

    @property
    def extensions(self) -> list:
        return sorted(self._by_extension)
