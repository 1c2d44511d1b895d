import logging
import math
from typing import Optional, Tuple

from ...models import (
    AffineTransform,
    ConversionPath,
    ConversionResult,
    MeasurementUnit,
    UnitReference,
)
from ...utils.timezone_utils import TimezoneUtils
from .errors import MeasurementError, NoConversionPathError, OutOfRangeError, UnitNotFoundError
from .formatter import format_value, round_half_even
from .registry import UnitRegistry
from .validator import ensure_same_type, increment_places, validate

logger = logging.getLogger(__name__)

DEFAULT_MAX_PRECISION = 10


class ConversionEngine:
    """
    Unit Conversion Engine
    Resolves identity, direct and via-base conversions between units of one type.

    Transforms are stored one way only (on the unit that owns the factor); the
    reverse direction is derived analytically, so registering A -> B is enough
    to convert B -> A as well.
    """

    def __init__(self, registry: UnitRegistry, strict_precision: bool = False,
                 max_precision: int = DEFAULT_MAX_PRECISION):
        self.registry = registry
        self.strict_precision = strict_precision
        self.max_precision = max_precision

    def convert(self, value, from_unit_id: str, to_unit_id: str,
                precision: Optional[int] = None) -> ConversionResult:
        """
        Convert ``value`` from one unit to another.

        ``precision`` is a number of decimal places overriding the target's
        display rounding; it is capped at the digits the target's own
        precision increment can represent.
        """
        source = self._resolve_unit(from_unit_id, 'source')
        target = self._resolve_unit(to_unit_id, 'target')
        ensure_same_type(source, target)
        report = validate(value, source, strict=self.strict_precision)
        places = self._decimal_places(target, precision)

        transform, path = self.resolve_path(source, target)
        if path == ConversionPath.IDENTITY:
            converted = float(report.value)
        else:
            rounded = round_half_even(transform.apply(report.value), places)
            if not rounded:
                # no negative zero in results
                rounded = abs(rounded)
            converted = float(rounded)
            if math.isinf(converted):
                raise OutOfRangeError(
                    "converted value exceeds the float range",
                    {'from_unit': source.id, 'to_unit': target.id, 'value': float(report.value), 'reason': 'magnitude'},
                )

        converted_at = TimezoneUtils.utc_now()
        self.registry.record_usage((source.id, target.id), when=converted_at)

        logger.debug(
            "Converted %s %s -> %s %s via %s",
            report.value, source.id, converted, target.id, path.value,
        )
        return ConversionResult(
            original_value=float(report.value),
            original_unit=_reference(source),
            converted_value=converted,
            target_unit=_reference(target),
            conversion_factor=float(transform.factor),
            conversion_offset=float(transform.offset),
            conversion_path=path,
            precision=places,
            converted_at=converted_at,
            formatted_value=format_value(converted, target, places),
            warnings=tuple(report.warnings),
        )

    def can_convert(self, from_unit_id: str, to_unit_id: str) -> bool:
        """Check whether a conversion path exists without touching usage counters."""
        try:
            source = self._resolve_unit(from_unit_id, 'source')
            target = self._resolve_unit(to_unit_id, 'target')
            ensure_same_type(source, target)
            self.resolve_path(source, target)
            return True
        except MeasurementError:
            return False

    def resolve_path(self, source: MeasurementUnit,
                     target: MeasurementUnit) -> Tuple[AffineTransform, ConversionPath]:
        """Find the effective transform from source to target."""
        if source.id == target.id:
            return AffineTransform(), ConversionPath.IDENTITY

        direct = self._hop(source, target)
        if direct is not None:
            return direct, ConversionPath.DIRECT

        base = self.registry.find_base_unit(source.unit_type)
        if base is None:
            raise NoConversionPathError(
                "no base unit defined for unit type",
                {
                    'from_unit': source.id,
                    'to_unit': target.id,
                    'unit_type': source.unit_type.value,
                    'reason': 'no_base_unit',
                },
            )

        to_base = self._hop(source, base)
        if to_base is None:
            raise NoConversionPathError(
                "no factor between unit and base",
                {'from_unit': source.id, 'to_unit': target.id, 'base_unit': base.id, 'reason': 'missing_hop', 'missing_hop': source.id},
            )
        from_base = self._hop(base, target)
        if from_base is None:
            raise NoConversionPathError(
                "no factor between base and unit",
                {'from_unit': source.id, 'to_unit': target.id, 'base_unit': base.id, 'reason': 'missing_hop', 'missing_hop': target.id},
            )
        return to_base.then(from_base), ConversionPath.VIA_BASE

    @staticmethod
    def _hop(start: MeasurementUnit, end: MeasurementUnit) -> Optional[AffineTransform]:
        if start.id == end.id:
            return AffineTransform()
        forward = start.conversion_factor_to(end.id)
        if forward is not None:
            return AffineTransform.from_factor(forward)
        reverse = end.conversion_factor_to(start.id)
        if reverse is not None:
            return AffineTransform.from_factor(reverse).inverted()
        return None

    def _resolve_unit(self, unit_id: str, role: str) -> MeasurementUnit:
        unit = self.registry.find_by_id(unit_id) if unit_id else None
        if unit is None:
            raise UnitNotFoundError("unit not found", {'unit_id': unit_id, 'role': role, 'reason': 'missing'})
        if not unit.is_active:
            raise UnitNotFoundError("unit is inactive", {'unit_id': unit_id, 'role': role, 'reason': 'inactive'})
        return unit

    def _decimal_places(self, target: MeasurementUnit, precision) -> int:
        if precision is None:
            return target.decimal_places
        if isinstance(precision, bool) or not isinstance(precision, int):
            raise OutOfRangeError("precision must be an integer", {'precision': precision, 'reason': 'invalid_precision'})
        if precision < 0 or precision > self.max_precision:
            raise OutOfRangeError(
                "precision out of range",
                {'precision': precision, 'max_precision': self.max_precision, 'reason': 'invalid_precision'},
            )
        return min(precision, increment_places(target.precision))


def _reference(unit: MeasurementUnit) -> UnitReference:
    return UnitReference(id=unit.id, name=unit.name, symbol=unit.symbol)
