"""Logging setup for the command line.

Library modules only create module-level loggers; handlers are attached
here, by the CLI entry point.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NOISY_LOGGERS = [
    "sqlalchemy.engine",
    "sqlalchemy.pool",
]


class StderrHandler(logging.StreamHandler):
    """Stream handler bound to whatever ``sys.stderr`` is at emit time."""

    def __init__(self, level: int = logging.NOTSET):
        logging.Handler.__init__(self, level)

    @property
    def stream(self):
        return sys.stderr


def setup_logging(level: int = logging.WARNING) -> logging.Logger:
    """Configure the ``ledgercore`` logger with a single stderr handler.

    Calling it again replaces the previous handler.

    Args:
        level: Log level for ledgercore messages

    Returns:
        The configured ``ledgercore`` logger
    """
    logger = logging.getLogger("ledgercore")
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if isinstance(handler, StderrHandler):
            logger.removeHandler(handler)

    handler = StderrHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return logger
