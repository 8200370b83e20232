"""Configuration module for vadmin."""

from .settings import Settings, load_secret, settings

__all__ = [
    "Settings",
    "load_secret",
    "settings",
]
