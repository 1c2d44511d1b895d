from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from ..utils.coercion import parse_bool
from ..utils.timezone_utils import TimezoneUtils
from .conversion import ConversionFactor


class _ParsableEnum(Enum):

    @classmethod
    def parse(cls, value):
        """Accept an enum member, its value or its name in any case."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Invalid {cls.__name__}: {value!r}")
        candidate = value.strip()
        for member in cls:
            if candidate.upper() == member.name or candidate.lower() == str(member.value).lower():
                return member
        raise ValueError(f"Invalid {cls.__name__}: {value!r}")


class UnitType(_ParsableEnum):
    """Measurement domains; conversion only happens within one type"""
    WEIGHT = "WEIGHT"
    VOLUME = "VOLUME"
    QUANTITY = "QUANTITY"
    LENGTH = "LENGTH"
    AREA = "AREA"
    TIME = "TIME"
    TEMPERATURE = "TEMPERATURE"
    CUSTOM = "CUSTOM"


class UnitSystem(_ParsableEnum):
    METRIC = "METRIC"
    IMPERIAL = "IMPERIAL"
    US_CUSTOMARY = "US_CUSTOMARY"
    CUSTOM = "CUSTOM"


class UnitCategory(_ParsableEnum):
    COMMON = "COMMON"
    STANDARD = "STANDARD"
    SPECIALIZED = "SPECIALIZED"
    LEGACY = "LEGACY"


class SymbolPosition(_ParsableEnum):
    BEFORE = "before"
    AFTER = "after"


@dataclass
class DisplayFormat:
    show_symbol: bool = True
    symbol_position: SymbolPosition = SymbolPosition.AFTER
    thousands_separator: str = ","
    decimal_separator: str = "."

    def to_dict(self) -> Dict[str, Any]:
        return {
            'show_symbol': self.show_symbol,
            'symbol_position': self.symbol_position.value,
            'thousands_separator': self.thousands_separator,
            'decimal_separator': self.decimal_separator,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "DisplayFormat":
        data = data or {}
        return cls(
            show_symbol=parse_bool(data.get('show_symbol', True), 'show_symbol'),
            symbol_position=SymbolPosition.parse(data.get('symbol_position') or SymbolPosition.AFTER),
            thousands_separator=str(data.get('thousands_separator', ',') or ''),
            decimal_separator=str(data.get('decimal_separator') or '.'),
        )


@dataclass
class PosIntegration:
    """Point-of-sale hints carried with a unit; not used by conversion math."""
    is_default_for_type: bool = False
    applicable_categories: List[str] = field(default_factory=list)
    inventory_tracking: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            'is_default_for_type': self.is_default_for_type,
            'applicable_categories': list(self.applicable_categories),
            'inventory_tracking': self.inventory_tracking,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "PosIntegration":
        data = data or {}
        return cls(
            is_default_for_type=parse_bool(data.get('is_default_for_type', False), 'is_default_for_type'),
            applicable_categories=[str(c) for c in data.get('applicable_categories') or []],
            inventory_tracking=parse_bool(data.get('inventory_tracking', True), 'inventory_tracking'),
        )


@dataclass
class MeasurementUnit:
    """
    Canonical definition of one measurement unit.

    ``conversion_factors`` maps a target unit id to the affine transform from
    this unit to that target. Direct factors are optional shortcuts; units
    without one still convert through the base unit of their type.
    """
    id: str
    name: str
    symbol: str
    unit_type: UnitType
    display_name: str = ""
    description: str = ""
    unit_system: UnitSystem = UnitSystem.METRIC
    is_base_unit: bool = False
    base_unit_ref: Optional[str] = None
    conversion_factors: Dict[str, ConversionFactor] = field(default_factory=dict)
    decimal_places: int = 2
    precision: float = 0.01
    min_value: Optional[float] = 0.0
    max_value: Optional[float] = None
    allow_negative: bool = False
    display_format: DisplayFormat = field(default_factory=DisplayFormat)
    is_active: bool = True
    is_system_unit: bool = False
    usage_count: int = 0
    last_used: Optional[datetime] = None
    category: UnitCategory = UnitCategory.STANDARD
    sort_order: int = 0
    pos_integration: PosIntegration = field(default_factory=PosIntegration)
    created_at: datetime = field(default_factory=TimezoneUtils.utc_now)
    updated_at: datetime = field(default_factory=TimezoneUtils.utc_now)

    def __post_init__(self):
        if not self.display_name:
            self.display_name = self.name
        if self.is_base_unit:
            self.base_unit_ref = None

    def conversion_factor_to(self, target_id: str) -> Optional[ConversionFactor]:
        return self.conversion_factors.get(target_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'name': self.name,
            'symbol': self.symbol,
            'display_name': self.display_name,
            'description': self.description,
            'unit_type': self.unit_type.value,
            'unit_system': self.unit_system.value,
            'is_base_unit': self.is_base_unit,
            'base_unit_ref': self.base_unit_ref,
            'conversion_factors': [cf.to_dict() for cf in self.conversion_factors.values()],
            'decimal_places': self.decimal_places,
            'precision': self.precision,
            'min_value': self.min_value,
            'max_value': self.max_value,
            'allow_negative': self.allow_negative,
            'display_format': self.display_format.to_dict(),
            'is_active': self.is_active,
            'is_system_unit': self.is_system_unit,
            'usage_count': self.usage_count,
            'last_used': TimezoneUtils.to_iso(self.last_used),
            'category': self.category.value,
            'sort_order': self.sort_order,
            'pos_integration': self.pos_integration.to_dict(),
            'created_at': TimezoneUtils.to_iso(self.created_at),
            'updated_at': TimezoneUtils.to_iso(self.updated_at),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MeasurementUnit":
        """Build a unit from an API payload. Raises ValueError/TypeError/KeyError on bad input."""
        factors = parse_conversion_factors(data.get('conversion_factors'))
        max_value = data.get('max_value')
        min_value = data.get('min_value', 0.0)
        return cls(
            id=str(data['id']),
            name=str(data['name']).strip(),
            symbol=str(data['symbol']).strip(),
            unit_type=UnitType.parse(data['unit_type']),
            display_name=str(data.get('display_name') or '').strip(),
            description=str(data.get('description') or ''),
            unit_system=UnitSystem.parse(data.get('unit_system') or UnitSystem.METRIC),
            is_base_unit=parse_bool(data.get('is_base_unit', False), 'is_base_unit'),
            base_unit_ref=data.get('base_unit_ref') or None,
            conversion_factors=factors,
            decimal_places=int(data.get('decimal_places', 2)),
            precision=float(data.get('precision', 0.01)),
            min_value=None if min_value in (None, '') else float(min_value),
            max_value=None if max_value in (None, '') else float(max_value),
            allow_negative=parse_bool(data.get('allow_negative', False), 'allow_negative'),
            display_format=DisplayFormat.from_dict(data.get('display_format')),
            is_active=parse_bool(data.get('is_active', True), 'is_active'),
            is_system_unit=parse_bool(data.get('is_system_unit', False), 'is_system_unit'),
            category=UnitCategory.parse(data.get('category') or UnitCategory.STANDARD),
            sort_order=int(data.get('sort_order', 0)),
            pos_integration=PosIntegration.from_dict(data.get('pos_integration')),
        )


def parse_conversion_factors(raw) -> Dict[str, ConversionFactor]:
    """Accept a list of factor dicts or a {target_id: {...}} mapping, preserving order."""
    if not raw:
        return {}
    factors: Dict[str, ConversionFactor] = {}
    if isinstance(raw, dict):
        for target, entry in raw.items():
            if isinstance(entry, ConversionFactor):
                factors[target] = entry
            else:
                factors[target] = ConversionFactor.from_dict({'target_unit': target, **entry})
        return factors
    for entry in raw:
        cf = entry if isinstance(entry, ConversionFactor) else ConversionFactor.from_dict(entry)
        factors[cf.target_unit] = cf
    return factors
