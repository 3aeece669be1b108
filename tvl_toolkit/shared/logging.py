"""
Logging setup for the TVL toolkit.

All toolkit loggers live under the ``tvl_toolkit`` namespace. The package
logger owns the only stream handler; module loggers just propagate to it, so
log lines are never duplicated however many modules ask for a logger.
"""

import logging
import os
from typing import Optional

PACKAGE_LOGGER = "tvl_toolkit"

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def _package_logger() -> logging.Logger:
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_DEFAULT_FORMAT))
        logger.addHandler(handler)
        logger.setLevel(
            getattr(
                logging,
                os.getenv("TVL_LOG_LEVEL", "INFO").upper(),
                logging.INFO,
            )
        )
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger under the tvl_toolkit namespace.

    ``get_logger(__name__)`` from inside the package returns the module
    logger unchanged; foreign names are nested under the package logger.
    The level comes from TVL_LOG_LEVEL (default INFO).
    """
    package = _package_logger()
    if not name or name == PACKAGE_LOGGER:
        return package
    if not name.startswith(PACKAGE_LOGGER + "."):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
