"""
Console logging for the root-node loops.

Every rootgen module logs through ``logging.getLogger(__name__)``, so all
records end up under the 'rootgen' logger. configure_logging attaches a
single console handler to it; calling it again only updates the level and
the target stream.
"""

import logging
import sys
from typing import Optional, TextIO, Union

from rootgen.config import config

LOGGER_NAME = "rootgen"


class _ConsoleHandler(logging.StreamHandler):
    """Marker subclass so configure_logging can find its own handler."""


def configure_logging(
    level: Optional[Union[int, str]] = None,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """
    Route the 'rootgen' logger to a stream.

    Args:
        level: Logging level (defaults to config.log_level)
        stream: Target stream (defaults to sys.stderr)

    Returns:
        The configured 'rootgen' logger
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level if level is not None else config.log_level)

    # Replace rather than retarget: the previous stream may already be closed
    reset_logging()

    handler = _ConsoleHandler(stream if stream is not None else sys.stderr)
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    return logger


def reset_logging() -> None:
    """Detach the console handler installed by configure_logging, if any."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        if isinstance(handler, _ConsoleHandler):
            logger.removeHandler(handler)
