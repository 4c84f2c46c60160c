from __future__ import annotations

import logging
from typing import Iterable

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
APP_LOGGERS = ("patchgraph",)


def configure_logging(debug: bool = False, loggers: Iterable[str] = APP_LOGGERS) -> int:
    """Set the root and application log levels; returns the level applied."""
    level = logging.DEBUG if debug else logging.INFO
    root_logger = logging.getLogger()

    # When served by uvicorn the root logger already has handlers; only levels change then.
    if not root_logger.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)

    root_logger.setLevel(level)
    for name in loggers:
        logging.getLogger(name).setLevel(level)
    return level
