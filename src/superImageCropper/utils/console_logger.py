from __future__ import annotations

import logging
import sys

# Thread names matter here: quantisation runs on a worker pool.
DEBUG_FORMAT = "%(asctime)s [%(threadName)s] %(name)s: %(message)s"


def ensure_console_logger(
    logger: logging.Logger,
    handler_name: str,
    *,
    level: int = logging.DEBUG,
    fmt: str = DEBUG_FORMAT,
) -> logging.Handler:
    """Return the stdout handler *handler_name* on *logger*, installing it once.

    The logger level is only ever lowered so an application that already
    asked for more verbose output keeps it.
    """
    for handler in logger.handlers:
        if handler.get_name() == handler_name:
            return handler
    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(handler_name)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    if logger.level == logging.NOTSET or logger.level > level:
        logger.setLevel(level)
    return handler
