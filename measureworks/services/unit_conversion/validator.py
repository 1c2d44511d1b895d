"""
Unit validation

Numeric domain checks for values expressed in a unit, unit-type
compatibility, and the definition checks run before a unit is stored.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Callable, List, Optional

from ...models import MeasurementUnit, to_decimal
from .errors import (
    IncompatibleUnitTypeError,
    InvalidBaseUnitError,
    InvalidConversionFactorError,
    InvalidUnitDefinitionError,
    OutOfRangeError,
    PrecisionLossError,
)

logger = logging.getLogger(__name__)

PRECISION_LOSS = "PRECISION_LOSS"

UnitLookup = Callable[[str], Optional[MeasurementUnit]]


@dataclass
class ValidationReport:
    """Outcome of a successful validation; soft findings are warning codes."""
    value: Decimal
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.warnings


def coerce_value(value) -> Decimal:
    """Turn a caller value into a finite Decimal or raise OutOfRangeError."""
    if value is None or isinstance(value, bool):
        raise OutOfRangeError("value must be numeric", {'value': value, 'reason': 'not_numeric'})
    try:
        decimal_value = to_decimal(value)
    except (InvalidOperation, ValueError, TypeError):
        raise OutOfRangeError("value must be numeric", {'value': value, 'reason': 'not_numeric'})
    if not decimal_value.is_finite():
        raise OutOfRangeError("value must be finite", {'value': str(value), 'reason': 'not_finite'})
    return decimal_value


def increment_places(precision) -> int:
    """Number of decimal digits implied by a precision increment (0.01 -> 2)."""
    exponent = to_decimal(precision).normalize().as_tuple().exponent
    return max(0, -exponent) if isinstance(exponent, int) else 0


def validate(value, unit: MeasurementUnit, strict: bool = False) -> ValidationReport:
    """
    Check ``value`` against the domain constraints of ``unit``.

    Hard violations raise OutOfRangeError. Precision finer than one digit
    beyond the unit's increment is reported as a warning, or raised as
    PrecisionLossError in strict mode.
    """
    decimal_value = coerce_value(value)
    context = {'unit_id': unit.id, 'value': float(decimal_value)}

    if decimal_value < 0 and not unit.allow_negative:
        raise OutOfRangeError("negative values not allowed", {**context, 'reason': 'negative_not_allowed'})

    if unit.min_value is not None:
        min_value = to_decimal(unit.min_value)
        # allow_negative lifts the default zero floor only
        widened = unit.allow_negative and min_value == 0
        if not widened and decimal_value < min_value:
            raise OutOfRangeError(
                "value below minimum",
                {**context, 'reason': 'below_minimum', 'min_value': unit.min_value},
            )

    if unit.max_value is not None and decimal_value > to_decimal(unit.max_value):
        raise OutOfRangeError(
            "value above maximum",
            {**context, 'reason': 'above_maximum', 'max_value': unit.max_value},
        )

    report = ValidationReport(value=decimal_value)
    if _finer_than_precision(decimal_value, unit.precision):
        if strict:
            raise PrecisionLossError(
                "value finer than unit precision",
                {**context, 'precision': unit.precision},
            )
        logger.warning(
            "Value %s exceeds precision %s of unit %s", decimal_value, unit.precision, unit.id
        )
        report.warnings.append(PRECISION_LOSS)
    return report


def _finer_than_precision(value: Decimal, precision) -> bool:
    # one digit below the increment is tolerated
    step = to_decimal(precision) / 10
    if step <= 0:
        return False
    try:
        return abs(value) % step != 0
    except InvalidOperation:
        # quotient too large for the context: the value is far coarser than the step
        return False


def same_type(a: MeasurementUnit, b: MeasurementUnit) -> bool:
    return a.unit_type == b.unit_type


def ensure_same_type(a: MeasurementUnit, b: MeasurementUnit) -> None:
    if not same_type(a, b):
        raise IncompatibleUnitTypeError(
            "unit types differ",
            {
                'from_unit': a.id,
                'from_type': a.unit_type.value,
                'to_unit': b.id,
                'to_type': b.unit_type.value,
            },
        )


def _finite(number) -> bool:
    try:
        return to_decimal(number).is_finite()
    except (InvalidOperation, ValueError, TypeError):
        return False


def validate_definition(unit: MeasurementUnit, lookup: UnitLookup) -> None:
    """Reject a unit definition that would break the registry invariants."""
    ctx = {'unit_id': unit.id}

    for attr in ('id', 'name', 'symbol'):
        if not str(getattr(unit, attr) or '').strip():
            raise InvalidUnitDefinitionError(f"{attr} is required", {**ctx, 'field': attr})
    if not isinstance(unit.decimal_places, int) or isinstance(unit.decimal_places, bool) or unit.decimal_places < 0:
        raise InvalidUnitDefinitionError("decimal_places must be >= 0", {**ctx, 'field': 'decimal_places'})
    if not _finite(unit.precision) or to_decimal(unit.precision) <= 0:
        raise InvalidUnitDefinitionError("precision must be > 0", {**ctx, 'field': 'precision'})
    for attr in ('min_value', 'max_value'):
        bound = getattr(unit, attr)
        if bound is not None and not _finite(bound):
            raise InvalidUnitDefinitionError(f"{attr} must be finite", {**ctx, 'field': attr})
    if unit.min_value is not None and unit.max_value is not None and unit.min_value > unit.max_value:
        raise InvalidUnitDefinitionError("min_value exceeds max_value", {**ctx, 'field': 'max_value'})

    fmt = unit.display_format
    if not fmt.decimal_separator:
        raise InvalidUnitDefinitionError("decimal separator is required", {**ctx, 'field': 'display_format'})
    if fmt.thousands_separator and fmt.thousands_separator == fmt.decimal_separator:
        raise InvalidUnitDefinitionError("separators must differ", {**ctx, 'field': 'display_format'})

    if unit.base_unit_ref and unit.base_unit_ref != unit.id:
        if unit.is_base_unit:
            raise InvalidBaseUnitError("base unit cannot reference another base", {**ctx, 'base_unit_ref': unit.base_unit_ref})
        base = lookup(unit.base_unit_ref)
        if base is None:
            raise InvalidBaseUnitError("base unit reference not found", {**ctx, 'base_unit_ref': unit.base_unit_ref})
        if not same_type(unit, base):
            raise InvalidBaseUnitError(
                "base unit reference has a different unit type",
                {**ctx, 'base_unit_ref': base.id, 'base_type': base.unit_type.value},
            )

    for target_id, cf in unit.conversion_factors.items():
        factor_ctx = {**ctx, 'target_unit': target_id, 'factor': cf.factor, 'offset': cf.offset}
        if cf.target_unit != target_id:
            raise InvalidConversionFactorError("factor keyed under the wrong target", factor_ctx)
        if not _finite(cf.factor) or not _finite(cf.offset):
            raise InvalidConversionFactorError("factor and offset must be finite", factor_ctx)
        if to_decimal(cf.factor) == 0:
            raise InvalidConversionFactorError("factor must be non-zero", factor_ctx)
        if target_id == unit.id:
            if not cf.is_identity:
                raise InvalidConversionFactorError("self factor must be the identity", factor_ctx)
            continue
        target = lookup(target_id)
        if target is None:
            raise InvalidConversionFactorError("target unit not registered", factor_ctx)
        if not same_type(unit, target):
            raise InvalidConversionFactorError(
                "target unit has a different unit type",
                {**factor_ctx, 'target_type': target.unit_type.value},
            )
