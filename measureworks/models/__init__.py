from .conversion import (
    AffineTransform,
    ConversionFactor,
    ConversionPath,
    ConversionResult,
    UnitReference,
    to_decimal,
)
from .unit import (
    DisplayFormat,
    MeasurementUnit,
    PosIntegration,
    SymbolPosition,
    UnitCategory,
    UnitSystem,
    UnitType,
    parse_conversion_factors,
)

__all__ = [
    'AffineTransform',
    'ConversionFactor',
    'ConversionPath',
    'ConversionResult',
    'UnitReference',
    'to_decimal',
    'DisplayFormat',
    'MeasurementUnit',
    'PosIntegration',
    'SymbolPosition',
    'UnitCategory',
    'UnitSystem',
    'UnitType',
    'parse_conversion_factors',
]
