from __future__ import annotations

import logging
import re

from flask import Flask

PACKAGE_LOGGER = "measureworks"
VERBOSE_FORMAT = "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d: %(message)s"
COMPACT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

_EMAIL = re.compile(r"[A-Za-z0-9_.+-]+@[A-Za-z0-9-]+\.[A-Za-z0-9-.]+")
_CREDENTIAL = re.compile(
    r"(token|api[_-]?key|secret|password|passwd|authorization)\s*[:=]\s*([^\s,;]+)", re.IGNORECASE
)
_BEARER = re.compile(r"Bearer\s+[A-Za-z0-9\-_.=:+/]+", re.IGNORECASE)


class PiiRedactionFilter(logging.Filter):
    """Masks emails and credentials in the rendered message."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        message = _EMAIL.sub("[REDACTED_EMAIL]", message)
        message = _CREDENTIAL.sub(lambda m: f"{m.group(1)}=[REDACTED]", message)
        message = _BEARER.sub("Bearer [REDACTED]", message)
        record.msg, record.args = message, None
        return True


def configure_logging(app: Flask) -> None:
    """Apply LOG_LEVEL / LOG_REDACT_PII to the root, app and package loggers."""
    level = _coerce_level(app.config.get("LOG_LEVEL", "DEBUG" if app.debug else "INFO"))
    root = logging.getLogger()
    for logger in (root, app.logger, logging.getLogger(PACKAGE_LOGGER)):
        logger.setLevel(level)
    if level > logging.DEBUG:
        logging.getLogger("werkzeug").setLevel(logging.WARNING)

    compact = app.config.get("ENV") == "production" and not app.debug
    formatter = logging.Formatter(COMPACT_FORMAT if compact else VERBOSE_FORMAT)
    redact = bool(app.config.get("LOG_REDACT_PII", True))
    for handler in [*root.handlers, *app.logger.handlers]:
        handler.setFormatter(formatter)
        if redact and not any(isinstance(f, PiiRedactionFilter) for f in handler.filters):
            handler.addFilter(PiiRedactionFilter())


def _coerce_level(raw_level) -> int:
    if isinstance(raw_level, int):
        return raw_level
    if isinstance(raw_level, str):
        level = logging.getLevelName(raw_level.strip().upper())
        if isinstance(level, int):
            return level
    return logging.INFO
