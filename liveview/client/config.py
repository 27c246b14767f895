"""
LiveView client configuration -- all environment variables in one place.

Read from environment at import time. Nothing is required; every value has a
default suitable for a local Phoenix dev server.
"""

from __future__ import annotations

import logging
import os


class Settings:
    """Client settings from environment variables."""

    # Phoenix socket protocol
    VSN: str = os.environ.get("LIVEVIEW_VSN", "2.0.0")
    SOCKET_PATH: str = os.environ.get("LIVEVIEW_SOCKET_PATH", "/live/websocket")

    # Engine
    MAX_REFERENCE_DEPTH: int = int(os.environ.get("LIVEVIEW_MAX_REFERENCE_DEPTH", "32"))

    # Logging
    LOG_LEVEL: str = os.environ.get("LIVEVIEW_LOG_LEVEL", "WARNING")


# Singleton instance
settings = Settings()


def configure_logging(level: str | None = None) -> None:
    """Attach a basic handler to the liveview loggers. Harnesses call this once at startup."""
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger("liveview").setLevel((level or settings.LOG_LEVEL).upper())
