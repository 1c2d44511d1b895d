"""
Unit Registry

Authoritative in-memory store of measurement units. One registry instance is
owned by whoever builds it (the Flask app keeps one in
``app.extensions["unit_registry"]``) and passed to the conversion engine.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from threading import Lock, RLock
from typing import Dict, Iterable, List, Optional, Tuple

from ...models import (
    ConversionFactor,
    DisplayFormat,
    MeasurementUnit,
    PosIntegration,
    UnitCategory,
    UnitSystem,
    UnitType,
    parse_conversion_factors,
)
from ...utils.coercion import parse_bool
from ...utils.timezone_utils import TimezoneUtils
from .errors import (
    DuplicateUnitError,
    InvalidBaseUnitError,
    InvalidUnitDefinitionError,
    UnitInUseError,
    UnitNotFoundError,
)
from .validator import validate_definition

logger = logging.getLogger(__name__)

# Fields PATCH may touch; id, usage counters and timestamps are engine-owned.
MUTABLE_FIELDS = frozenset({
    'name',
    'symbol',
    'display_name',
    'description',
    'unit_type',
    'unit_system',
    'is_base_unit',
    'base_unit_ref',
    'conversion_factors',
    'decimal_places',
    'precision',
    'min_value',
    'max_value',
    'allow_negative',
    'display_format',
    'is_active',
    'category',
    'sort_order',
    'pos_integration',
})

_BOOL_FIELDS = ('is_base_unit', 'allow_negative', 'is_active')

_ENUM_FIELDS = {
    'unit_type': UnitType,
    'unit_system': UnitSystem,
    'category': UnitCategory,
}


class UnitRegistry:
    """
    Lock-guarded unit catalog.

    Secondary indexes:
    - ``_base_index``: unit type -> id of its active base unit
    - ``_symbol_index``: (unit type, symbol) -> unit id
    """

    def __init__(self, units: Optional[Iterable[MeasurementUnit]] = None):
        self._lock = RLock()
        self._units: Dict[str, MeasurementUnit] = {}
        self._usage_locks: Dict[str, Lock] = {}
        self._base_index: Dict[UnitType, str] = {}
        self._symbol_index: Dict[Tuple[UnitType, str], str] = {}
        for unit in units or ():
            self.register(unit)

    def __len__(self) -> int:
        with self._lock:
            return len(self._units)

    def __contains__(self, unit_id) -> bool:
        with self._lock:
            return unit_id in self._units

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def find_by_id(self, unit_id: str) -> Optional[MeasurementUnit]:
        with self._lock:
            return self._units.get(unit_id)

    def get(self, unit_id: str) -> MeasurementUnit:
        """Like find_by_id but raises UnitNotFoundError."""
        unit = self.find_by_id(unit_id)
        if unit is None:
            raise UnitNotFoundError("unit not found", {'unit_id': unit_id})
        return unit

    def find_by_symbol(self, unit_type, symbol: str) -> Optional[MeasurementUnit]:
        unit_type = UnitType.parse(unit_type)
        with self._lock:
            unit_id = self._symbol_index.get((unit_type, symbol))
            return self._units.get(unit_id) if unit_id else None

    def find_base_unit(self, unit_type) -> Optional[MeasurementUnit]:
        """Active base unit for the type, or None when none is defined yet."""
        unit_type = UnitType.parse(unit_type)
        with self._lock:
            unit_id = self._base_index.get(unit_type)
            return self._units.get(unit_id) if unit_id else None

    def list_units(self, unit_type=None, include_inactive: bool = False) -> List[MeasurementUnit]:
        unit_type = UnitType.parse(unit_type) if unit_type else None
        with self._lock:
            units = [
                u for u in self._units.values()
                if (include_inactive or u.is_active) and (unit_type is None or u.unit_type == unit_type)
            ]
        return sorted(units, key=lambda u: (u.sort_order, u.name.lower()))

    def list_active(self, unit_type=None) -> List[MeasurementUnit]:
        return self.list_units(unit_type=unit_type, include_inactive=False)

    def summary(self) -> Dict[str, int]:
        """Catalog totals across every registered unit, active or not."""
        with self._lock:
            units = list(self._units.values())
        return {
            'total_units': len(units),
            'active_units': sum(1 for u in units if u.is_active),
            'total_usage': sum(u.usage_count for u in units),
            'unit_types': len({u.unit_type for u in units}),
        }

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def register(self, unit: MeasurementUnit) -> MeasurementUnit:
        with self._lock:
            if unit.id in self._units:
                raise DuplicateUnitError("unit id already registered", {'unit_id': unit.id})
            symbol_key = (unit.unit_type, unit.symbol)
            if symbol_key in self._symbol_index:
                raise DuplicateUnitError(
                    "symbol already registered for unit type",
                    {
                        'unit_id': unit.id,
                        'symbol': unit.symbol,
                        'unit_type': unit.unit_type.value,
                        'existing_unit_id': self._symbol_index[symbol_key],
                    },
                )
            validate_definition(unit, self._units.get)
            if unit.is_base_unit and unit.is_active:
                self._claim_base_slot(unit)

            self._units[unit.id] = unit
            self._usage_locks[unit.id] = Lock()
            self._symbol_index[symbol_key] = unit.id
            if unit.is_base_unit and unit.is_active:
                self._base_index[unit.unit_type] = unit.id

        logger.info(
            "Registered unit %s (%s, type=%s, base=%s)",
            unit.id, unit.symbol, unit.unit_type.value, unit.is_base_unit,
        )
        return unit

    def update(self, unit_id: str, **changes) -> MeasurementUnit:
        """Apply a partial update. The stored unit is only replaced once every check passes."""
        unknown = set(changes) - MUTABLE_FIELDS
        if unknown:
            raise InvalidUnitDefinitionError(
                "fields cannot be updated", {'unit_id': unit_id, 'fields': sorted(unknown)}
            )
        with self._lock:
            current = self.get(unit_id)
            changes = _normalize_changes(changes, current)
            candidate = replace(current, **changes)
            if candidate.is_base_unit:
                candidate.base_unit_ref = None

            if candidate.unit_type != current.unit_type and self._is_referenced(current):
                raise UnitInUseError(
                    "unit type is locked once the unit is referenced",
                    {'unit_id': unit_id, 'unit_type': current.unit_type.value},
                )

            old_symbol_key = (current.unit_type, current.symbol)
            new_symbol_key = (candidate.unit_type, candidate.symbol)
            if new_symbol_key != old_symbol_key and new_symbol_key in self._symbol_index:
                raise DuplicateUnitError(
                    "symbol already registered for unit type",
                    {
                        'unit_id': unit_id,
                        'symbol': candidate.symbol,
                        'existing_unit_id': self._symbol_index[new_symbol_key],
                    },
                )

            validate_definition(candidate, self._units.get)
            if candidate.is_base_unit and candidate.is_active:
                self._claim_base_slot(candidate)

            self._release_base_slot(current)
            del self._symbol_index[old_symbol_key]
            candidate.updated_at = TimezoneUtils.utc_now()
            with self._usage_locks[unit_id]:
                candidate.usage_count = current.usage_count
                candidate.last_used = current.last_used
                self._units[unit_id] = candidate
            self._symbol_index[new_symbol_key] = unit_id
            if candidate.is_base_unit and candidate.is_active:
                self._base_index[candidate.unit_type] = unit_id

        logger.info("Updated unit %s fields=%s", unit_id, sorted(changes))
        return candidate

    def add_conversion_factor(self, owner_id: str, factor: ConversionFactor) -> MeasurementUnit:
        with self._lock:
            owner = self.get(owner_id)
            factors = dict(owner.conversion_factors)
            factors[factor.target_unit] = factor
            return self.update(owner_id, conversion_factors=factors)

    def remove_conversion_factor(self, owner_id: str, target_id: str) -> MeasurementUnit:
        with self._lock:
            owner = self.get(owner_id)
            factors = dict(owner.conversion_factors)
            factors.pop(target_id, None)
            return self.update(owner_id, conversion_factors=factors)

    def deactivate(self, unit_id: str) -> MeasurementUnit:
        """Soft lifecycle: the unit stays for historical records but stops converting."""
        with self._lock:
            unit = self.get(unit_id)
            if unit.is_active:
                unit.is_active = False
                unit.updated_at = TimezoneUtils.utc_now()
                self._release_base_slot(unit)
                logger.info("Deactivated unit %s (usage_count=%s)", unit_id, unit.usage_count)
            return unit

    def delete(self, unit_id: str) -> MeasurementUnit:
        with self._lock:
            unit = self.get(unit_id)
            if unit.is_system_unit:
                raise UnitInUseError("system units cannot be deleted", {'unit_id': unit_id, 'reason': 'system_unit'})
            if unit.usage_count > 0:
                raise UnitInUseError(
                    "unit has recorded usage",
                    {'unit_id': unit_id, 'reason': 'in_use', 'usage_count': unit.usage_count},
                )
            referrers = self._referrers(unit_id)
            if referrers:
                raise UnitInUseError(
                    "unit is referenced by other units",
                    {'unit_id': unit_id, 'reason': 'referenced', 'referenced_by': referrers},
                )

            self._release_base_slot(unit)
            del self._symbol_index[(unit.unit_type, unit.symbol)]
            del self._units[unit_id]
            self._usage_locks.pop(unit_id, None)
        logger.info("Deleted unit %s", unit_id)
        return unit

    def retire(self, unit_id: str) -> Tuple[MeasurementUnit, bool]:
        """
        Remove a unit the way an administrator expects: hard delete when
        nothing depends on it, otherwise deactivate. Returns (unit, deleted).
        """
        with self._lock:
            unit = self.get(unit_id)
            if unit.is_system_unit or unit.usage_count > 0 or self._referrers(unit_id):
                return self.deactivate(unit_id), False
            return self.delete(unit_id), True

    def record_usage(self, unit_ids: Iterable[str], when: Optional[datetime] = None) -> None:
        """Bump usage counters; each unit is serialized on its own lock."""
        when = when or TimezoneUtils.utc_now()
        for unit_id in dict.fromkeys(unit_ids):
            with self._lock:
                usage_lock = self._usage_locks.get(unit_id)
            if usage_lock is None:
                continue
            with usage_lock:
                # update() swaps the stored object under this same lock
                unit = self._units.get(unit_id)
                if unit is None:
                    continue
                unit.usage_count += 1
                if unit.last_used is None or when > unit.last_used:
                    unit.last_used = when

    # ------------------------------------------------------------------
    # Internals (callers hold self._lock)
    # ------------------------------------------------------------------

    def _claim_base_slot(self, unit: MeasurementUnit) -> None:
        holder = self._base_index.get(unit.unit_type)
        if holder is not None and holder != unit.id:
            raise InvalidBaseUnitError(
                "an active base unit already exists for this type",
                {'unit_id': unit.id, 'unit_type': unit.unit_type.value, 'existing_base_unit': holder},
            )

    def _release_base_slot(self, unit: MeasurementUnit) -> None:
        if self._base_index.get(unit.unit_type) == unit.id:
            del self._base_index[unit.unit_type]

    def _referrers(self, unit_id: str) -> List[str]:
        return sorted(
            other.id for other in self._units.values()
            if other.id != unit_id and (unit_id in other.conversion_factors or other.base_unit_ref == unit_id)
        )

    def _is_referenced(self, unit: MeasurementUnit) -> bool:
        own_factors = any(target != unit.id for target in unit.conversion_factors)
        return bool(own_factors or unit.usage_count > 0 or self._referrers(unit.id))


def _normalize_changes(changes: dict, current: MeasurementUnit) -> dict:
    """Coerce PATCH payload values into model types; nested display settings merge into the current ones."""
    normalized = dict(changes)
    try:
        for key, enum_cls in _ENUM_FIELDS.items():
            if key in normalized:
                normalized[key] = enum_cls.parse(normalized[key])
        if 'conversion_factors' in normalized:
            normalized['conversion_factors'] = parse_conversion_factors(normalized['conversion_factors'])
        if 'display_format' in normalized and not isinstance(normalized['display_format'], DisplayFormat):
            normalized['display_format'] = DisplayFormat.from_dict(
                {**current.display_format.to_dict(), **normalized['display_format']}
            )
        if 'pos_integration' in normalized and not isinstance(normalized['pos_integration'], PosIntegration):
            normalized['pos_integration'] = PosIntegration.from_dict(
                {**current.pos_integration.to_dict(), **normalized['pos_integration']}
            )
        for key in _BOOL_FIELDS:
            if key in normalized:
                normalized[key] = parse_bool(normalized[key], key)
        for key in ('precision', 'min_value', 'max_value'):
            if key in normalized and normalized[key] is not None:
                normalized[key] = float(normalized[key])
        for key in ('decimal_places', 'sort_order'):
            if key in normalized:
                normalized[key] = int(normalized[key])
    except (KeyError, TypeError, ValueError) as exc:
        raise InvalidUnitDefinitionError("invalid field value", {'error': str(exc)})
    return normalized
