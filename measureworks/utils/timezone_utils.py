from __future__ import annotations

from datetime import datetime, timezone


class TimezoneUtils:
    """UTC helpers shared by models and services."""

    @staticmethod
    def utc_now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def ensure_utc(value: datetime | None) -> datetime | None:
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @staticmethod
    def to_iso(value: datetime | None) -> str | None:
        value = TimezoneUtils.ensure_utc(value)
        return value.isoformat() if value else None
