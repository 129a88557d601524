"""
Logging utilities for the API surface and the console scripts.

Provides a consistent logging format and configuration.
"""

import logging
import sys


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging with the pipe-separated stdout format."""
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        stream=sys.stdout,
    )
    # httpx logs every request at INFO; the backend client logs its own.
    logging.getLogger("httpx").setLevel(logging.WARNING)


__all__ = ["configure_logging"]
