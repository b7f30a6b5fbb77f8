"""Logging setup shared by the API and the CLI."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install a single stream handler on the package logger."""
    package_logger = logging.getLogger("trip_settlement")
    package_logger.setLevel(level)

    if not any(getattr(h, "_trip_settlement", False) for h in package_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._trip_settlement = True  # type: ignore[attr-defined]
        package_logger.addHandler(handler)
