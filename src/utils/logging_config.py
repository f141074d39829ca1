from __future__ import annotations

import logging
from typing import Union

ROOT_LOGGER = "airroutes"


def setup_logging(level: Union[int, str] = logging.INFO, name: str = ROOT_LOGGER) -> logging.Logger:
    """
    Create (or return) the console logger shared across the loader.

    Module loggers are children of it (``airroutes.<module>``), so one call in
    the entry point configures output for every phase.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False  # avoid duplicate logs if root logger is configured

    # Add handler only once
    handlers = [h for h in logger.handlers if isinstance(h, logging.StreamHandler)]
    if not handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)
        handlers = [handler]

    for h in handlers:
        h.setLevel(level)

    return logger


def get_logger(module: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{module}")
