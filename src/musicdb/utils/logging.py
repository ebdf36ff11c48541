"""Logging helpers shared across musicdb modules."""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; handlers are configured once by the entrypoint."""
    return logging.getLogger(name)


def configure_logging(level: Optional[str] = None) -> None:
    """
    Configure root logging for CLI runs.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ...). Defaults to WARNING.
    """
    resolved = getattr(logging, (level or "WARNING").upper(), None)
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
