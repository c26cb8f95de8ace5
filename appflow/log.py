"""Logging setup for the ``appflow`` logger hierarchy."""

import logging

LOGGER_NAME = "appflow"

_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach one console handler to the ``appflow`` logger.

    Safe to call more than once; later calls only change the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if not any(getattr(h, "_appflow", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._appflow = True
        logger.addHandler(handler)
    return logger
