"""
vadmin Configuration Settings

This module contains the configuration defaults for admin connections.
Every value can be overridden through the environment or per connection.
"""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Settings:
    """Client configuration settings."""

    # Network settings
    HOST: str = os.environ.get("VADMIN_HOST", "127.0.0.1")
    PORT: int = int(os.environ.get("VADMIN_PORT", "6082"))
    CONNECT_TIMEOUT: float = float(os.environ.get("VADMIN_CONNECT_TIMEOUT", "5.0"))

    # Authentication settings
    SECRET_FILE: Optional[str] = os.environ.get("VADMIN_SECRET_FILE") or None

    # Keepalive settings
    KEEPALIVE_INTERVAL: float = float(os.environ.get("VADMIN_KEEPALIVE_INTERVAL", "30.0"))

    # Stream settings
    READ_BUFFER_SIZE: int = 65536  # Upper bound for a single header line

    # Logging settings
    DEBUG: bool = os.environ.get("VADMIN_DEBUG", "false").lower() == "true"
    LOG_LEVEL: str = os.environ.get("VADMIN_LOG_LEVEL", "INFO")


def load_secret(path: str) -> str:
    """
    Read a shared secret file.

    The file content is used verbatim, trailing newline included, since
    the server hashes the whole file when it checks a response.
    """
    with open(path, "rb") as fh:
        return fh.read().decode("utf-8")


# Global settings instance
settings = Settings()
