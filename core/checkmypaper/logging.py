"""
Provides loggers with a consistent format for the review core.

Use :func:`getLogger` in place of :func:`logging.getLogger`; the returned
logger writes to stderr at the level given by the ``LOGLEVEL`` parameter.
"""

import logging
import sys

from .util import get_application_config

FORMAT = '%(asctime)s - %(name)s - %(levelname)s: "%(message)s"'
DATEFMT = '%d/%b/%Y:%H:%M:%S %z'


def getLogger(name: str) -> logging.Logger:
    """Get a logger with the review core formatting and level."""
    logger = logging.getLogger(name)
    if not any(getattr(h, '_checkmypaper', False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(fmt=FORMAT, datefmt=DATEFMT))
        setattr(handler, '_checkmypaper', True)
        logger.addHandler(handler)
        logger.propagate = False
    level = get_application_config().get('LOGLEVEL', logging.INFO)
    logger.setLevel(int(level))
    return logger
