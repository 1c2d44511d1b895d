import logging

from ..models import (
    ConversionFactor,
    DisplayFormat,
    MeasurementUnit,
    SymbolPosition,
    UnitCategory,
    UnitSystem,
    UnitType,
)

logger = logging.getLogger(__name__)

METRIC = UnitSystem.METRIC
IMPERIAL = UnitSystem.IMPERIAL
US = UnitSystem.US_CUSTOMARY

# (id, name, symbol, unit_type, unit_system, base id, factor to base)
# A base id equal to the unit id marks the base unit of the type.
SYSTEM_UNITS = [
    # Weight
    ("gram", "gram", "g", UnitType.WEIGHT, METRIC, "gram", 1.0),
    ("kilogram", "kilogram", "kg", UnitType.WEIGHT, METRIC, "gram", 1000.0),
    ("milligram", "milligram", "mg", UnitType.WEIGHT, METRIC, "gram", 0.001),
    ("ounce", "ounce", "oz", UnitType.WEIGHT, IMPERIAL, "gram", 28.349523125),
    ("pound", "pound", "lb", UnitType.WEIGHT, IMPERIAL, "gram", 453.59237),

    # Volume
    ("milliliter", "milliliter", "ml", UnitType.VOLUME, METRIC, "milliliter", 1.0),
    ("liter", "liter", "L", UnitType.VOLUME, METRIC, "milliliter", 1000.0),
    ("teaspoon", "teaspoon", "tsp", UnitType.VOLUME, US, "milliliter", 4.92892),
    ("tablespoon", "tablespoon", "tbsp", UnitType.VOLUME, US, "milliliter", 14.7868),
    ("cup", "cup", "cup", UnitType.VOLUME, US, "milliliter", 236.588),
    ("fluid_ounce", "fluid ounce", "fl oz", UnitType.VOLUME, US, "milliliter", 29.5735),
    ("gallon", "gallon", "gal", UnitType.VOLUME, US, "milliliter", 3785.41),

    # Quantity
    ("count", "count", "ct", UnitType.QUANTITY, METRIC, "count", 1.0),
    ("dozen", "dozen", "dz", UnitType.QUANTITY, METRIC, "count", 12.0),
    ("pair", "pair", "pair", UnitType.QUANTITY, METRIC, "count", 2.0),

    # Length
    ("centimeter", "centimeter", "cm", UnitType.LENGTH, METRIC, "centimeter", 1.0),
    ("millimeter", "millimeter", "mm", UnitType.LENGTH, METRIC, "centimeter", 0.1),
    ("meter", "meter", "m", UnitType.LENGTH, METRIC, "centimeter", 100.0),
    ("inch", "inch", "in", UnitType.LENGTH, IMPERIAL, "centimeter", 2.54),
    ("foot", "foot", "ft", UnitType.LENGTH, IMPERIAL, "centimeter", 30.48),

    # Area
    ("square_centimeter", "square centimeter", "cm²", UnitType.AREA, METRIC, "square_centimeter", 1.0),
    ("square_meter", "square meter", "m²", UnitType.AREA, METRIC, "square_centimeter", 10000.0),
    ("square_foot", "square foot", "ft²", UnitType.AREA, IMPERIAL, "square_centimeter", 929.0304),

    # Time
    ("second", "second", "s", UnitType.TIME, METRIC, "second", 1.0),
    ("minute", "minute", "min", UnitType.TIME, METRIC, "second", 60.0),
    ("hour", "hour", "hr", UnitType.TIME, METRIC, "second", 3600.0),
    ("day", "day", "day", UnitType.TIME, METRIC, "second", 86400.0),
]

# Temperature is affine: the base owns the transforms, targets must exist first.
TEMPERATURE_UNITS = [
    ("celsius", "celsius", "°C", UnitSystem.METRIC, -273.15),
    ("fahrenheit", "fahrenheit", "°F", UnitSystem.IMPERIAL, -459.67),
    ("kelvin", "kelvin", "K", UnitSystem.METRIC, 0.0),
]
TEMPERATURE_FACTORS = [
    ConversionFactor("fahrenheit", 1.8, 32.0),
    ConversionFactor("kelvin", 1.0, 273.15),
]


def _system_unit(unit_id, name, symbol, unit_type, unit_system, **kwargs):
    return MeasurementUnit(
        id=unit_id,
        name=name,
        symbol=symbol,
        unit_type=unit_type,
        unit_system=unit_system,
        display_name=name.title(),
        is_system_unit=True,
        category=UnitCategory.COMMON,
        display_format=DisplayFormat(symbol_position=SymbolPosition.AFTER),
        **kwargs,
    )


def seed_units(registry):
    """Register the system unit catalog. Safe to run repeatedly."""
    created = 0

    for sort_order, (unit_id, name, symbol, unit_type, system, base_id, factor) in enumerate(SYSTEM_UNITS):
        if unit_id in registry:
            continue
        is_base = base_id == unit_id
        unit = _system_unit(
            unit_id, name, symbol, unit_type, system,
            is_base_unit=is_base,
            base_unit_ref=None if is_base else base_id,
            conversion_factors={} if is_base else {base_id: ConversionFactor(base_id, factor)},
            decimal_places=0 if unit_type == UnitType.QUANTITY else 2,
            precision=1.0 if unit_type == UnitType.QUANTITY else 0.01,
            sort_order=sort_order,
        )
        registry.register(unit)
        created += 1

    for sort_order, (unit_id, name, symbol, system, floor) in enumerate(TEMPERATURE_UNITS, start=len(SYSTEM_UNITS)):
        if unit_id in registry:
            continue
        is_base = unit_id == "celsius"
        unit = _system_unit(
            unit_id, name, symbol, UnitType.TEMPERATURE, system,
            is_base_unit=is_base,
            base_unit_ref=None if is_base or "celsius" not in registry else "celsius",
            min_value=floor,
            allow_negative=floor < 0,
            decimal_places=2,
            precision=0.01,
            sort_order=sort_order,
        )
        registry.register(unit)
        created += 1

    celsius = registry.find_by_id("celsius")
    for factor in TEMPERATURE_FACTORS:
        if celsius is not None and factor.target_unit not in celsius.conversion_factors:
            celsius = registry.add_conversion_factor("celsius", factor)

    if created:
        logger.info("Seeded %s system units", created)
    return created
