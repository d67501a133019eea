"""
Basic logging configuration for the application.

``setup_logging`` configures the root logger with a single console
handler. Log format includes the timestamp, logger name, level and
message. Modules log through ``logging.getLogger(__name__)``.
"""

from __future__ import annotations

import logging


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def setup_logging(level: str = "INFO") -> None:
    """
    Configure the root logger.

    If no handlers are attached yet, a console handler is added. The
    level is always applied, so a second app created with another config
    still gets its own verbosity.
    """
    logger = logging.getLogger()
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if logger.handlers:
        # create_app() runs repeatedly under tests; configure handlers once.
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)
