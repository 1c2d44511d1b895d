from decimal import Decimal

import pytest

from measureworks.models import DisplayFormat, SymbolPosition
from measureworks.services.unit_conversion import format_value, parse_value
from measureworks.services.unit_conversion.errors import ValueParseError
from measureworks.services.unit_conversion.formatter import round_half_even


@pytest.fixture
def kilogram(make_unit):
    return make_unit('kilogram', symbol='kg')


@pytest.fixture
def dollars(make_unit):
    return make_unit(
        'usd', symbol='$', allow_negative=True,
        display_format=DisplayFormat(symbol_position=SymbolPosition.BEFORE),
    )


@pytest.fixture
def european(make_unit):
    return make_unit(
        'liter', symbol='L',
        display_format=DisplayFormat(thousands_separator='.', decimal_separator=','),
    )


@pytest.mark.parametrize("value, places, expected", [
    ('2.345', 2, Decimal('2.34')),
    ('2.355', 2, Decimal('2.36')),
    (2.675, 2, Decimal('2.68')),
    (0.5, 0, Decimal('0')),
    (1.5, 0, Decimal('2')),
])
def test_round_half_even(value, places, expected):
    assert round_half_even(value, places) == expected


def test_round_half_even_beyond_default_context():
    assert round_half_even(Decimal('1E+70'), 2) == Decimal('1E+70')
    assert round_half_even(Decimal('1E+70'), 2).as_tuple().exponent == -2
    assert round_half_even(1e100, 4) == Decimal('1E+100')


class TestFormat:

    def test_symbol_after(self, kilogram):
        assert format_value(1234.5, kilogram) == "1,234.50 kg"

    def test_symbol_before_with_sign(self, dollars):
        assert format_value(-1234.5, dollars) == "-$1,234.50"

    def test_explicit_decimal_places(self, kilogram):
        assert format_value(1234.5, kilogram, decimal_places=0) == "1,234 kg"
        assert format_value(0.123456, kilogram, decimal_places=4) == "0.1235 kg"

    def test_custom_separators(self, european):
        assert format_value(1234567.891, european) == "1.234.567,89 L"

    def test_hidden_symbol(self, make_unit):
        unit = make_unit('count', symbol='ct', display_format=DisplayFormat(show_symbol=False))
        assert format_value(1000000, unit) == "1,000,000.00"

    def test_small_numbers_are_not_grouped(self, kilogram):
        assert format_value(999, kilogram) == "999.00 kg"

    def test_huge_value(self, kilogram):
        text = format_value(1e100, kilogram)
        assert text.startswith("10,000,000,000")
        assert text.endswith(".00 kg")


class TestParse:

    @pytest.mark.parametrize("text, expected", [
        ("1,234.50 kg", 1234.5),
        ("1234.5kg", 1234.5),
        ("  42  ", 42.0),
        ("-3.25 kg", -3.25),
    ])
    def test_parse(self, kilogram, text, expected):
        assert parse_value(text, kilogram) == expected

    def test_parse_symbol_before(self, dollars):
        assert parse_value("-$1,234.50", dollars) == -1234.5
        assert parse_value("$-7", dollars) == -7.0

    def test_parse_custom_separators(self, european):
        assert parse_value("1.234.567,89 L", european) == 1234567.89

    def test_parse_round_trips_format(self, european, dollars):
        for unit, value in ((european, 9876.54), (dollars, -12.5)):
            assert parse_value(format_value(value, unit), unit) == value

    @pytest.mark.parametrize("text", ["", "   ", "kg", "abc kg", "--5", "1.2.3", None, 12])
    def test_parse_rejects(self, kilogram, text):
        with pytest.raises(ValueParseError):
            parse_value(text, kilogram)

    def test_parse_rejects_stray_dot_with_comma_decimals(self, make_unit):
        unit = make_unit('liter', symbol='L', display_format=DisplayFormat(thousands_separator=' ', decimal_separator=','))
        assert parse_value("1 234,5 L", unit) == 1234.5
        with pytest.raises(ValueParseError):
            parse_value("1234.5 L", unit)

    def test_parse_error_is_a_value_error(self, kilogram):
        with pytest.raises(ValueError):
            parse_value("nope", kilogram)
