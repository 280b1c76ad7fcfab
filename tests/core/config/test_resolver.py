import logging
from dataclasses import dataclass, field
from typing import List, Optional

import pytest

from schemaconf.core.config.defaults import DefaultRegistry
from schemaconf.core.config.resolver import FieldResolver, normalize_key, resolve
from schemaconf.core.config.schema import SchemaBuilder, setting
from schemaconf.core.errors import (
    CustomValidationFailure,
    RangeViolation,
    RequiredFieldMissing,
    SchemaError,
)


@dataclass
class ServerConfig:
    port: int = setting(default="8080", min=1, max=65535)
    api_key: Optional[str] = setting(required=True)


@dataclass
class SoftConfig:
    api_key: Optional[str] = setting(alias="apiKey", required=True, soft=True)


@dataclass
class Pool:
    size: int = setting(default="5", min=1, max=100)
    timeout: float = 30.0


@dataclass
class Database:
    host: str = setting(default="localhost")
    pool: Pool = setting()


@dataclass
class AppConfig:
    name: str = setting(default="app")
    db: Database = setting()
    fallback: Optional[Database] = None
    tags: List[str] = field(default_factory=list)


class Endpoint:
    def __init__(self, url: str, timeout: int = 10):
        self.url = url
        self.timeout = timeout


class Color:
    def __init__(self, name):
        self.name = name


@dataclass
class Themed:
    color: Optional[Color] = setting(default="blue")


def test_normalize_key():
    assert normalize_key("apiKey") == normalize_key("API_KEY") == normalize_key("api-key")


class TestLookup:
    def test_lookup_ignores_case_and_separators(self):
        config = resolve({"PORT": "9090", "API_KEY": "secret"}, ServerConfig)
        assert config.port == 9090
        assert config.api_key == "secret"

    def test_alias_is_used_for_lookup(self):
        assert resolve({"apiKey": "k"}, SoftConfig).api_key == "k"
        assert resolve({"api_key": "k"}, SoftConfig).api_key == "k"

    def test_exact_key_wins_over_normalized_match(self):
        config = resolve({"Port": "1", "port": "2", "api_key": "k"}, ServerConfig)
        assert config.port == 2


class TestDefaults:
    def test_string_default_is_parsed(self):
        config = resolve({"api_key": "k"}, ServerConfig)
        assert config.port == 8080

    def test_null_and_blank_values_take_the_default(self):
        assert resolve({"port": None, "api_key": "k"}, ServerConfig).port == 8080
        assert resolve({"port": "  ", "api_key": "k"}, ServerConfig).port == 8080

    def test_default_injection_is_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="schemaconf"):
            resolve({"api_key": "k"}, ServerConfig)
        assert "Field 'port' was null or blank, set default: 8080" in caplog.text

    def test_missing_default_parser_warns_and_leaves_field_missing(self, caplog):
        with caplog.at_level(logging.WARNING, logger="schemaconf"):
            config = resolve({}, Themed)
        assert config.color is None
        assert "No default parser registered for 'Color'" in caplog.text

    def test_registered_default_parser_is_used(self):
        registry = DefaultRegistry.standard().register(Color, Color)
        config = FieldResolver(registry=registry).resolve({}, Themed)
        assert config.color.name == "blue"

    def test_unparsable_default_warns(self, caplog):
        schema = SchemaBuilder(ServerConfig).field("port", default="eighty").build()
        with caplog.at_level(logging.WARNING, logger="schemaconf"):
            config = resolve({"api_key": "k"}, schema)
        assert config.port is None
        assert "Failed to parse default value 'eighty'" in caplog.text

    def test_constructor_defaults_are_config_defaults(self):
        endpoint = resolve({"URL": "http://localhost"}, Endpoint)
        assert endpoint.url == "http://localhost"
        assert endpoint.timeout == 10


class TestRequired:
    def test_hard_required_missing(self):
        with pytest.raises(RequiredFieldMissing) as excinfo:
            resolve({"port": 80}, ServerConfig)
        assert excinfo.value.field == "api_key"

    def test_hard_required_blank(self):
        with pytest.raises(RequiredFieldMissing):
            resolve({"api_key": "   "}, ServerConfig)

    def test_soft_required_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="schemaconf"):
            config = resolve({}, SoftConfig)
        assert config.api_key is None
        assert "Soft required field 'api_key' is not set." in caplog.text


class TestRange:
    def test_out_of_range(self):
        with pytest.raises(RangeViolation) as excinfo:
            resolve({"port": 70000, "api_key": "k"}, ServerConfig)
        error = excinfo.value
        assert (error.min, error.max, error.value) == (1, 65535, 70000)
        assert error.field == "port"

    def test_in_range(self):
        assert resolve({"port": 8080, "api_key": "k"}, ServerConfig).port == 8080

    def test_bounds_are_inclusive(self):
        assert resolve({"port": 65535, "api_key": "k"}, ServerConfig).port == 65535
        with pytest.raises(RangeViolation):
            resolve({"port": 0, "api_key": "k"}, ServerConfig)


class TestCoercion:
    def test_unconvertible_value_warns(self, caplog):
        with caplog.at_level(logging.WARNING, logger="schemaconf"):
            config = resolve({"port": "eighty", "api_key": "k"}, ServerConfig)
        # falls back to the default once the raw value is rejected
        assert config.port == 8080
        assert "Cannot convert value of field 'port' to int" in caplog.text

    def test_blank_string_field_is_kept(self):
        @dataclass
        class Named:
            label: str = ""

        assert resolve({"label": ""}, Named).label == ""


class TestCustomLoader:
    def test_loader_replaces_coercion(self):
        schema = (
            SchemaBuilder(ServerConfig)
            .field("api_key", loader=lambda raw: raw.upper(), required=True)
            .build()
        )
        assert resolve({"api_key": "abc"}, schema).api_key == "ABC"

    def test_failing_loader_leaves_field_missing(self, caplog):
        def explode(raw):
            raise RuntimeError("bad secret")

        schema = SchemaBuilder(SoftConfig).field("api_key", loader=explode).build()
        with caplog.at_level(logging.WARNING, logger="schemaconf"):
            config = resolve({"api_key": "abc"}, schema)

        assert config.api_key is None
        assert "Custom loader failed for field 'api_key': bad secret" in caplog.text


class TestValidators:
    def test_validator_receives_value_and_owner(self):
        seen = []

        def record(value, owner):
            seen.append((value, owner))

        schema = SchemaBuilder(ServerConfig).field("port", validate=record, default="1").build()
        config = resolve({"api_key": "k"}, schema)

        assert seen == [(1, config)]

    def test_false_return_fails(self):
        schema = (
            SchemaBuilder(ServerConfig)
            .field("port", validate=lambda value, owner: value % 2 == 0)
            .build()
        )
        with pytest.raises(CustomValidationFailure) as excinfo:
            resolve({"port": 81, "api_key": "k"}, schema)
        assert excinfo.value.field == "port"

    def test_raising_validator_is_wrapped(self):
        def must_be_https(value, owner):
            if not value.startswith("https://"):
                raise ValueError("not https")

        schema = SchemaBuilder(Endpoint).field("url", validate=must_be_https).build()
        with pytest.raises(CustomValidationFailure, match="not https") as excinfo:
            resolve({"url": "http://x"}, schema)
        assert isinstance(excinfo.value.__cause__, ValueError)


class TestNullHandler:
    def test_handler_runs_for_blank_value_with_context(self):
        calls = []

        def remember(value, owner, context):
            calls.append((value, owner, context))

        schema = (
            SchemaBuilder(SoftConfig)
            .field("api_key", if_null=remember, context="secrets")
            .build()
        )
        resolver = FieldResolver(context_providers={"secrets": lambda: {"vault": True}})
        config = resolver.resolve({}, schema)

        assert calls == [(None, config, {"vault": True})]

    def test_handler_is_skipped_for_set_values(self):
        calls = []
        schema = (
            SchemaBuilder(SoftConfig)
            .field("api_key", if_null=lambda *args: calls.append(args))
            .build()
        )
        resolve({"api_key": "k"}, schema)
        assert calls == []

    def test_missing_context_provider_skips_handler(self, caplog):
        calls = []
        schema = (
            SchemaBuilder(SoftConfig)
            .field("api_key", if_null=lambda *args: calls.append(args), context="vault")
            .build()
        )
        with caplog.at_level(logging.WARNING, logger="schemaconf"):
            resolve({}, schema)

        assert calls == []
        assert "No context provider for 'vault'" in caplog.text

    def test_failing_handler_is_logged_not_raised(self, caplog):
        def explode(value, owner, context):
            raise RuntimeError("handler broke")

        schema = SchemaBuilder(SoftConfig).field("api_key", if_null=explode).build()
        with caplog.at_level(logging.ERROR, logger="schemaconf"):
            config = resolve({}, schema)

        assert config.api_key is None
        assert "Null handler failed for field 'api_key'" in caplog.text


class TestNested:
    def test_nested_sections_resolve_recursively(self):
        config = resolve(
            {"name": "svc", "db": {"HOST": "db.internal", "pool": {"size": "20"}}},
            AppConfig,
        )
        assert config.db.host == "db.internal"
        assert config.db.pool.size == 20
        assert config.db.pool.timeout == 30.0
        assert config.fallback is None

    def test_absent_section_uses_its_own_defaults(self):
        config = resolve({}, AppConfig)
        assert config.name == "app"
        assert config.db == Database(host="localhost", pool=Pool(size=5, timeout=30.0))
        assert config.tags == []

    def test_nested_errors_carry_the_dotpath(self):
        with pytest.raises(RangeViolation) as excinfo:
            resolve({"db": {"pool": {"size": 500}}}, AppConfig)
        assert excinfo.value.field == "db.pool.size"

    def test_scalar_where_section_expected(self, caplog):
        with caplog.at_level(logging.WARNING, logger="schemaconf"):
            config = resolve({"fallback": "nope"}, AppConfig)
        assert config.fallback is None
        assert "Field 'fallback' expects a mapping, got str" in caplog.text


def test_unconstructible_target():
    class NeedsMore:
        def __init__(self, a: int):
            if a is None:
                raise TypeError("a is required")

    with pytest.raises(SchemaError):
        resolve({}, NeedsMore)


@dataclass
class OrderedConfig:
    debug: bool = False
    port: int = setting(default="8080", min=1, max=65535)


def test_setting_after_plain_default_resolves():
    config = resolve({"DEBUG": "yes"}, OrderedConfig)
    assert config == OrderedConfig(debug=True, port=8080)


def test_range_error_carries_the_raw_value():
    @dataclass
    class Ratio:
        ratio: float = setting(min=1, max=2)

    with pytest.raises(RangeViolation) as excinfo:
        resolve({"ratio": 0.5}, Ratio)
    assert excinfo.value.value == 0.5
