"""
ornasync/logging_config.py -- Logging setup for the command line.
"""

from __future__ import annotations

import logging


def setup_logging(level: str | int = logging.INFO) -> None:
    """Configure root logging for a command line run."""
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        force=True,
    )
    # One line per request is too chatty outside of debugging.
    for noisy in ("urllib3", "requests"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))
