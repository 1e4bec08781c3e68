"""Logging helpers shared by all matchroom modules."""

import logging
from typing import Union

ROOT_LOGGER = "matchroom"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logger(name: str) -> logging.Logger:
    """Return a module logger under the matchroom namespace.

    The first call attaches a single stream handler to the package root
    logger; later calls reuse it.
    """
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        root.setLevel(logging.INFO)

    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def set_log_level(level: Union[str, int]) -> None:
    """Change the level of the package root logger."""
    if isinstance(level, str):
        level = level.upper()
    logging.getLogger(ROOT_LOGGER).setLevel(level)
