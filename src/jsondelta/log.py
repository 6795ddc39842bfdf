from __future__ import annotations

import logging


def init_logging(level: int | None = logging.INFO) -> None:
    """Set up logging for applications embedding jsondelta.

    Sets the log level for the jsondelta logger to *level*, unless *level*
    is ``None``.  Library code never calls this.
    """
    fmt = "[%(levelname)1.1s %(module)s:%(lineno)d] %(message)s"
    logging.basicConfig(format=fmt)
    logging.captureWarnings(True)
    if level is not None:
        logger.setLevel(level)


def set_log_level(level: int) -> None:
    """Set a log level for jsondelta loggers."""
    logger.setLevel(level)


logger = logging.getLogger("jsondelta")
logger.addHandler(logging.NullHandler())

debug = logger.debug
info = logger.info
warning = logger.warning
