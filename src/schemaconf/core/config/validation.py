"""Validation checks applied to resolved field values."""

from __future__ import annotations

import logging
import math
import numbers
from typing import Any, Optional

from ..errors import (
    CustomValidationFailure,
    RangeViolation,
    RequiredFieldMissing,
    ResolutionError,
)
from ..utils.logger import log_warning
from .schema import FieldRule, Schema

MODULE = "validation"


def is_blank(value: Any) -> bool:
    """None, or a string that is empty or whitespace only."""
    return value is None or (isinstance(value, str) and not value.strip())


def check_required(
    rule: FieldRule, value: Any, path: str, logger: Optional[logging.Logger] = None
) -> None:
    """Raise for a missing hard-required field, warn for a soft-required one."""
    if not rule.required or not is_blank(value):
        return
    if rule.soft:
        log_warning(MODULE, f"Soft required field '{path}' is not set.", logger=logger)
        return
    raise RequiredFieldMissing(path)


def check_range(rule: FieldRule, value: Any, path: str) -> None:
    """Enforce ``rule.min <= value <= rule.max`` on numeric values.

    The value is truncated to an integer before comparing, so ``65535.9``
    passes a ``max`` of 65535. The error reports the value as given. Non-numeric values and booleans are not
    range-checked.
    """
    if not rule.has_range or value is None:
        return
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        return
    if isinstance(value, float) and not math.isfinite(value):
        raise RangeViolation(path, rule.min, rule.max, value)
    number = int(value)
    if rule.min is not None and number < rule.min:
        raise RangeViolation(path, rule.min, rule.max, value)
    if rule.max is not None and number > rule.max:
        raise RangeViolation(path, rule.min, rule.max, value)


def run_validators(rule: FieldRule, value: Any, owner: Any, path: str) -> None:
    """Run the field's custom validators with ``(value, owner)``.

    A validator fails by raising or by returning False.
    """
    for validator in rule.validators:
        try:
            outcome = validator(value, owner)
        except ResolutionError:
            raise
        except Exception as e:
            raise CustomValidationFailure(path, str(e) or type(e).__name__) from e
        if outcome is False:
            name = getattr(validator, "__name__", type(validator).__name__)
            raise CustomValidationFailure(path, f"{name} rejected value {value!r}")


def validate_object(
    obj: Any,
    schema: Schema,
    logger: Optional[logging.Logger] = None,
    prefix: str = "",
) -> None:
    """Re-check a constructed object against its schema.

    Runs the required, range and custom-validator checks on the object's
    current attribute values, descending into nested field bags.
    """
    for rule in schema:
        path = f"{prefix}{rule.name}"
        value = getattr(obj, rule.name, None)
        check_required(rule, value, path, logger)
        if rule.schema is not None and value is not None:
            validate_object(value, rule.schema, logger, prefix=f"{path}.")
        else:
            check_range(rule, value, path)
        run_validators(rule, value, obj, path)
