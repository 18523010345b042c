"""Lightweight configuration package exports."""

from __future__ import annotations

from .settings import (
    DEFAULT_PRIMITIVE_TYPES,
    AppSettings,
    LoggingSettings,
    SchemaSettings,
    SpecHintSettings,
    get_settings,
    load_settings,
)

__all__ = [
    "DEFAULT_PRIMITIVE_TYPES",
    "AppSettings",
    "LoggingSettings",
    "SchemaSettings",
    "SpecHintSettings",
    "get_settings",
    "load_settings",
]
