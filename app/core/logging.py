"""
Logging setup - one stdlib logging configuration for the whole process.

Modules log through `logging.getLogger(__name__)`; uvicorn's own loggers
propagate to the same root handler.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger. Safe to call more than once."""
    root = logging.getLogger()
    root.setLevel(level.upper())

    if not any(getattr(h, "_careers_handler", False) for h in root.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._careers_handler = True
        root.addHandler(handler)

    # SQL echo is controlled by DEBUG, not by the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
