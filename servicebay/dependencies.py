"""FastAPI dependency providers for settings, DB sessions and the clock."""

from __future__ import annotations

from servicebay.config import Settings, cached_settings
from servicebay.db.engine import get_db
from servicebay.services.timeutils import Clock, SystemClock

__all__ = ["get_db", "get_settings_dep", "get_clock"]


def get_settings_dep() -> Settings:
    return cached_settings()


def get_clock() -> Clock:
    return SystemClock()
