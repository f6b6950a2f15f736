from __future__ import annotations

import logging
import sys

ROOT_LOGGER = "analoglens"
LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """Attach a stdout handler to the ``analoglens`` logger.

    Safe to call more than once: later calls only change the level.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    if root.handlers:
        for handler in root.handlers:
            handler.setLevel(level)
        return root

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root.addHandler(handler)
    return root


def get_logger(name: str | None = None) -> logging.Logger:
    """``analoglens.<name>``, or the package root logger without a name."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)
