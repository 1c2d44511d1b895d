"""
Value formatting

Pure rendering of a numeric value with a unit's display settings, and the
inverse parse of user input back into a raw value.
"""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation, localcontext
from typing import Optional

from ...models import MeasurementUnit, SymbolPosition, to_decimal
from .errors import ValueParseError

_FORMAT_CONTEXT_PRECISION = 60


def round_half_even(value, places: int) -> Decimal:
    """Quantize to ``places`` decimals with banker's rounding."""
    number = to_decimal(value)
    with localcontext() as ctx:
        # quantize needs room for every integer digit plus the requested places
        magnitude = number.adjusted() if number.is_finite() and number else 0
        ctx.prec = max(_FORMAT_CONTEXT_PRECISION, magnitude + places + 2)
        quantum = Decimal(1).scaleb(-places)
        return number.quantize(quantum, rounding=ROUND_HALF_EVEN)


def _group(digits: str, separator: str) -> str:
    if not separator or len(digits) <= 3:
        return digits
    head = len(digits) % 3 or 3
    groups = [digits[:head]] + [digits[i:i + 3] for i in range(head, len(digits), 3)]
    return separator.join(groups)


def format_value(value, unit: MeasurementUnit, decimal_places: Optional[int] = None) -> str:
    places = unit.decimal_places if decimal_places is None else decimal_places
    fmt = unit.display_format
    rounded = round_half_even(value, places)

    sign = "-" if rounded < 0 else ""
    text = format(abs(rounded), "f")
    integer_part, _, fraction = text.partition(".")
    number = _group(integer_part, fmt.thousands_separator)
    if fraction:
        number = f"{number}{fmt.decimal_separator}{fraction}"

    if not (fmt.show_symbol and unit.symbol):
        return f"{sign}{number}"
    if fmt.symbol_position == SymbolPosition.BEFORE:
        return f"{sign}{unit.symbol}{number}"
    return f"{sign}{number} {unit.symbol}"


def _strip_sign(text: str):
    if text[:1] in ("-", "+"):
        return text[0], text[1:].strip()
    return "", text


def parse_value(text, unit: MeasurementUnit) -> float:
    """Parse formatted input for ``unit`` back into a float."""
    if not isinstance(text, str) or not text.strip():
        raise ValueParseError("empty input", {'unit_id': unit.id, 'text': text})

    fmt = unit.display_format
    sign, body = _strip_sign(text.strip())
    symbol = unit.symbol
    if symbol:
        if body.startswith(symbol):
            body = body[len(symbol):].strip()
        elif body.endswith(symbol):
            body = body[:-len(symbol)].strip()
    if not sign:
        sign, body = _strip_sign(body)

    if fmt.thousands_separator:
        body = body.replace(fmt.thousands_separator, "")
    if fmt.decimal_separator != ".":
        if "." in body:
            raise ValueParseError("unexpected separator", {'unit_id': unit.id, 'text': text})
        body = body.replace(fmt.decimal_separator, ".")
    body = body.strip()

    try:
        parsed = Decimal(f"{sign}{body}")
    except InvalidOperation:
        raise ValueParseError("not a number", {'unit_id': unit.id, 'text': text})
    if not parsed.is_finite() or not body or body[0] in "+-":
        raise ValueParseError("not a number", {'unit_id': unit.id, 'text': text})
    return float(parsed)
