"""
Conversion engine error taxonomy

Every error carries a stable ``code`` and a ``context`` dict (unit ids,
offending values) so callers can decide what to show. The engine never
builds user-facing text; the API layer maps codes to messages.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class MeasurementError(RuntimeError):
    """Base class for every failure raised by the conversion engine."""

    code = "MEASUREMENT_ERROR"

    def __init__(self, detail: str = "", context: Optional[Dict[str, Any]] = None):
        super().__init__(detail or self.code)
        self.detail = detail or self.code
        self.context: Dict[str, Any] = dict(context or {})

    def to_dict(self) -> Dict[str, Any]:
        return {'error_code': self.code, 'error_data': dict(self.context)}


# Registration-time failures

class RegistrationError(MeasurementError):
    code = "REGISTRATION_ERROR"


class DuplicateUnitError(RegistrationError):
    code = "DUPLICATE_UNIT"


class InvalidBaseUnitError(RegistrationError):
    code = "INVALID_BASE_UNIT"


class InvalidConversionFactorError(RegistrationError):
    code = "INVALID_CONVERSION_FACTOR"


class InvalidUnitDefinitionError(RegistrationError):
    code = "INVALID_UNIT_DEFINITION"


class UnitInUseError(RegistrationError):
    code = "UNIT_IN_USE"


# Conversion-time failures

class ConversionError(MeasurementError):
    code = "CONVERSION_ERROR"


class UnitNotFoundError(ConversionError):
    code = "UNIT_NOT_FOUND"


class IncompatibleUnitTypeError(ConversionError):
    code = "INCOMPATIBLE_UNIT_TYPE"


class NoConversionPathError(ConversionError):
    code = "NO_CONVERSION_PATH"


class ValidationError(ConversionError):
    code = "VALIDATION_ERROR"


class OutOfRangeError(ValidationError):
    code = "OUT_OF_RANGE"


class PrecisionLossError(ValidationError):
    code = "PRECISION_LOSS"


class ValueParseError(MeasurementError, ValueError):
    code = "VALUE_PARSE_ERROR"


__all__ = [
    'MeasurementError',
    'RegistrationError',
    'DuplicateUnitError',
    'InvalidBaseUnitError',
    'InvalidConversionFactorError',
    'InvalidUnitDefinitionError',
    'UnitInUseError',
    'ConversionError',
    'UnitNotFoundError',
    'IncompatibleUnitTypeError',
    'NoConversionPathError',
    'ValidationError',
    'OutOfRangeError',
    'PrecisionLossError',
    'ValueParseError',
]
