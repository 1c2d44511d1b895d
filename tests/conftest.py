"""
Pytest configuration and shared fixtures for measureworks tests.
"""
import pytest

from measureworks import create_app
from measureworks.models import ConversionFactor, MeasurementUnit, UnitType
from measureworks.seeders import seed_units
from measureworks.services.unit_conversion import ConversionEngine, UnitRegistry


@pytest.fixture(scope='function')
def app():
    """App with the system catalog seeded into a fresh registry."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'MEASUREMENT_SEED_SYSTEM_UNITS': True,
        'MEASUREMENT_STRICT_PRECISION': False,
        'LOG_LEVEL': 'WARNING',
    })
    yield app


@pytest.fixture
def client(app):
    """A test client for the app."""
    return app.test_client()


@pytest.fixture
def runner(app):
    """A test runner for the app's Click commands."""
    return app.test_cli_runner()


@pytest.fixture
def empty_registry():
    return UnitRegistry()


@pytest.fixture
def registry():
    """Registry holding the seeded system catalog."""
    registry = UnitRegistry()
    seed_units(registry)
    return registry


@pytest.fixture
def engine(registry):
    return ConversionEngine(registry)


@pytest.fixture
def make_unit():
    """Build a non-system unit with sensible defaults."""
    def _make(unit_id, unit_type=UnitType.WEIGHT, symbol=None, factors=None, **kwargs):
        conversion_factors = {
            target: ConversionFactor(target, *values) if isinstance(values, tuple) else ConversionFactor(target, values)
            for target, values in (factors or {}).items()
        }
        return MeasurementUnit(
            id=unit_id,
            name=kwargs.pop('name', unit_id),
            symbol=symbol or unit_id,
            unit_type=unit_type,
            conversion_factors=conversion_factors,
            **kwargs,
        )
    return _make
