"""Logging configuration for stock-signals."""

import logging
import os
import sys
from typing import Optional

_ROOT_NAME = "stock_signals"
_LEVEL_ENV = "STOCK_SIGNALS_LOG_LEVEL"


def setup_logger(name: str = _ROOT_NAME, level: Optional[str] = None) -> logging.Logger:
    """Create and configure a logger under the ``stock_signals`` namespace.

    *level* falls back to ``$STOCK_SIGNALS_LOG_LEVEL`` and then INFO.
    """
    if name != _ROOT_NAME and not name.startswith(_ROOT_NAME + "."):
        name = f"{_ROOT_NAME}.{name}"
    logger = logging.getLogger(name)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        fmt = logging.Formatter(
            "%(asctime)s | %(name)-32s | %(levelname)-7s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)
        logger.propagate = False
    level = level or os.getenv(_LEVEL_ENV) or "INFO"
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    return logger
