"""
Conversion value types: the affine transform stored on a unit and the
immutable record produced by every conversion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

from ..utils.timezone_utils import TimezoneUtils


def to_decimal(value: object) -> Decimal:
    if isinstance(value, Decimal):
        return value
    if value is None:
        return Decimal("0")
    return Decimal(str(value))


class ConversionPath(Enum):
    """How a conversion was resolved"""
    IDENTITY = "identity"
    DIRECT = "direct"
    VIA_BASE = "via_base"


@dataclass(frozen=True)
class ConversionFactor:
    """
    Affine transform from the owning unit to ``target_unit``:
    value_in_target = value_in_source * factor + offset
    """
    target_unit: str
    factor: float
    offset: float = 0.0

    @property
    def is_identity(self) -> bool:
        return to_decimal(self.factor) == 1 and to_decimal(self.offset) == 0

    def apply(self, value: Decimal) -> Decimal:
        return to_decimal(value) * to_decimal(self.factor) + to_decimal(self.offset)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'target_unit': self.target_unit,
            'factor': self.factor,
            'offset': self.offset,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversionFactor":
        return cls(
            target_unit=str(data['target_unit']),
            factor=float(data['factor']),
            offset=float(data.get('offset') or 0.0),
        )


@dataclass(frozen=True)
class AffineTransform:
    """Exact (Decimal) transform used while resolving a conversion path."""
    factor: Decimal = Decimal("1")
    offset: Decimal = Decimal("0")

    @classmethod
    def from_factor(cls, conversion_factor: ConversionFactor) -> "AffineTransform":
        return cls(to_decimal(conversion_factor.factor), to_decimal(conversion_factor.offset))

    def apply(self, value: Decimal) -> Decimal:
        return value * self.factor + self.offset

    def inverted(self) -> "AffineTransform":
        # y = x*f + o  =>  x = y/f - o/f
        return AffineTransform(Decimal(1) / self.factor, -self.offset / self.factor)

    def then(self, other: "AffineTransform") -> "AffineTransform":
        # other(self(x)) = (x*f1 + o1)*f2 + o2
        return AffineTransform(self.factor * other.factor, self.offset * other.factor + other.offset)


@dataclass(frozen=True)
class UnitReference:
    id: str
    name: str
    symbol: str

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'symbol': self.symbol}


@dataclass(frozen=True)
class ConversionResult:
    """Result of one conversion. Built fresh per call and never mutated."""
    original_value: float
    original_unit: UnitReference
    converted_value: float
    target_unit: UnitReference
    conversion_factor: float
    conversion_offset: float
    conversion_path: ConversionPath
    precision: Optional[int]
    converted_at: datetime = field(default_factory=TimezoneUtils.utc_now)
    formatted_value: str = ""
    warnings: tuple = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for API responses"""
        return {
            'original_value': self.original_value,
            'original_unit': self.original_unit.to_dict(),
            'converted_value': self.converted_value,
            'target_unit': self.target_unit.to_dict(),
            'conversion_factor': self.conversion_factor,
            'conversion_offset': self.conversion_offset,
            'conversion_path': self.conversion_path.value,
            'precision': self.precision,
            'converted_at': TimezoneUtils.to_iso(self.converted_at),
            'formatted_value': self.formatted_value,
            'warnings': list(self.warnings),
        }
