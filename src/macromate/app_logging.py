"""Logging configuration helpers."""

import logging

LOGGER_NAME = "macromate"


def configure_logging(level: int | str = logging.INFO) -> None:
    """Route package logging to a single stream handler.

    ``build_container`` calls this with ``Settings.log_level``. Repeated calls
    only update the level.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(levelname)s: %(name)s: %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
