"""Core configuration, logging and workspace helpers."""

from docmerge.core.config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
