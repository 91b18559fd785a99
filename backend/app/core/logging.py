from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_HANDLER_NAME = "academy-planner"


def configure_logging(level: str = "INFO") -> logging.Logger:
    """Attach a single stdout handler to the ``app`` logger tree.

    Safe to call more than once; the handler is only installed the first time.
    """
    logger = logging.getLogger("app")
    logger.setLevel(level.upper())

    if not any(handler.get_name() == _HANDLER_NAME for handler in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.set_name(_HANDLER_NAME)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
        logger.addHandler(handler)
    return logger
