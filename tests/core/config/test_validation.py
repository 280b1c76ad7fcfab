import logging
from dataclasses import dataclass

import pytest

from schemaconf.core.config.schema import FieldRule, schema_for, setting
from schemaconf.core.config.validation import (
    check_range,
    check_required,
    is_blank,
    validate_object,
)
from schemaconf.core.errors import RangeViolation, RequiredFieldMissing


@dataclass
class Limits:
    workers: int = setting(default="4", min=1, max=64)
    ratio: float = setting(default="0.5", min=0, max=1)


@dataclass
class Service:
    name: str = setting(required=True)
    limits: Limits = setting()


def test_is_blank():
    assert is_blank(None)
    assert is_blank("")
    assert is_blank(" \t")
    assert not is_blank(0)
    assert not is_blank("x")
    assert not is_blank([])


class TestCheckRange:
    rule = FieldRule(name="port", type=int, min=1, max=65535)

    def test_values_are_truncated_before_comparing(self):
        check_range(self.rule, 65535.9, "port")
        with pytest.raises(RangeViolation):
            check_range(self.rule, 0.99, "port")

    def test_error_reports_the_value_as_given(self):
        with pytest.raises(RangeViolation) as excinfo:
            check_range(FieldRule(name="ratio", type=float, min=1), 0.5, "ratio")
        assert excinfo.value.value == 0.5
        assert "0.5" in str(excinfo.value)

    def test_non_finite_floats_fail(self):
        with pytest.raises(RangeViolation):
            check_range(self.rule, float("inf"), "port")
        with pytest.raises(RangeViolation):
            check_range(self.rule, float("nan"), "port")

    def test_non_numeric_and_missing_values_are_skipped(self):
        check_range(self.rule, None, "port")
        check_range(self.rule, "70000", "port")
        check_range(self.rule, True, "port")

    def test_open_ended_range(self):
        rule = FieldRule(name="retries", type=int, min=0)
        check_range(rule, 10**9, "retries")
        with pytest.raises(RangeViolation):
            check_range(rule, -1, "retries")


def test_check_required_hard_and_soft(caplog):
    hard = FieldRule(name="token", required=True)
    soft = FieldRule(name="token", required=True, soft=True)

    with pytest.raises(RequiredFieldMissing, match="Missing required config field: token"):
        check_required(hard, "", "token")

    with caplog.at_level(logging.WARNING, logger="schemaconf"):
        check_required(soft, None, "token")
    assert "Soft required field 'token' is not set." in caplog.text

    check_required(FieldRule(name="token"), None, "token")


def test_validate_object_rechecks_mutated_values():
    service = Service(name="api", limits=Limits(workers=4, ratio=0.5))
    validate_object(service, schema_for(Service))

    service.limits.workers = 100
    with pytest.raises(RangeViolation) as excinfo:
        validate_object(service, schema_for(Service))
    assert excinfo.value.field == "limits.workers"

    service.limits.workers = 4
    service.name = ""
    with pytest.raises(RequiredFieldMissing):
        validate_object(service, schema_for(Service))
