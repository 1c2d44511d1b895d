import logging
from typing import Any

from flask import Flask, jsonify

from .config import ENV_DIAGNOSTICS
from .extensions import init_unit_engine
from .logging_config import configure_logging
from .services.unit_conversion import UnitRegistry

logger = logging.getLogger(__name__)


def create_app(config: dict[str, Any] | None = None, registry: UnitRegistry | None = None) -> Flask:
    app = Flask(__name__)

    _load_base_config(app, config)
    configure_logging(app)

    init_unit_engine(app, registry)
    if app.config.get("MEASUREMENT_SEED_SYSTEM_UNITS"):
        from .seeders import seed_units

        seed_units(app.extensions["unit_registry"])

    _register_blueprints(app)
    _add_core_routes(app)

    from .management import register_commands

    register_commands(app)
    return app


def _load_base_config(app: Flask, config: dict[str, Any] | None) -> None:
    app.config.from_object("measureworks.config.Config")
    if config:
        app.config.update(config)
    app.config["ENV_DIAGNOSTICS"] = ENV_DIAGNOSTICS
    for warning in ENV_DIAGNOSTICS.get("warnings", ()):
        logger.warning("Environment configuration warning: %s", warning)


def _register_blueprints(app: Flask) -> None:
    from .blueprints.api.unit_routes import unit_api_bp

    app.register_blueprint(unit_api_bp)


def _add_core_routes(app: Flask) -> None:
    @app.route("/health")
    def health():
        registry = app.extensions["unit_registry"]
        return jsonify({"status": "ok", "units": len(registry)})
