from __future__ import annotations

from flask import Flask, current_app

from .services.unit_conversion import ConversionEngine, UnitRegistry

__all__ = [
    "init_unit_engine",
    "get_registry",
    "get_engine",
]

REGISTRY_KEY = "unit_registry"
ENGINE_KEY = "conversion_engine"


def init_unit_engine(app: Flask, registry: UnitRegistry | None = None) -> ConversionEngine:
    """Attach a registry and its conversion engine to the app."""
    registry = registry if registry is not None else UnitRegistry()
    engine = ConversionEngine(
        registry,
        strict_precision=bool(app.config.get("MEASUREMENT_STRICT_PRECISION", False)),
        max_precision=int(app.config.get("MEASUREMENT_MAX_PRECISION", 10)),
    )
    app.extensions[REGISTRY_KEY] = registry
    app.extensions[ENGINE_KEY] = engine
    return engine


def get_registry() -> UnitRegistry:
    return current_app.extensions[REGISTRY_KEY]


def get_engine() -> ConversionEngine:
    return current_app.extensions[ENGINE_KEY]
