
"""
Unit Conversion Service Package

Unit registry, validation, formatting and the conversion engine. Owns all
conversion error decisions; callers translate error codes for display.
"""

from .unit_conversion import ConversionEngine
from .registry import UnitRegistry
from .formatter import format_value, parse_value
from . import errors, validator

__all__ = ['ConversionEngine', 'UnitRegistry', 'format_value', 'parse_value', 'errors', 'validator']
