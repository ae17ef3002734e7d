from __future__ import annotations

import logging
import os
from typing import Literal

import coloredlogs  # type: ignore[import]

LogLevel = Literal["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

LEVEL_ENV_VARS = ("DEVHUB_LOGLEVEL", "LOGLEVEL")
DEFAULT_LEVEL = "WARNING"

LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
DATE_FORMAT = "%H:%M:%S"

# third-party loggers that are noisy at the package's debug level
QUIET_LOGGERS = ("asyncio", "markdown_it")


def resolve_level(level: str | None = None) -> str:
    """Explicit level, then DEVHUB_LOGLEVEL, then LOGLEVEL, then WARNING.

    The CLI reports to the user through the status log, so diagnostic
    logging stays out of the way unless asked for.
    """
    if level:
        return level.upper()
    for name in LEVEL_ENV_VARS:
        value = os.environ.get(name)
        if value:
            return value.upper()
    return DEFAULT_LEVEL


def setup_logging(level: LogLevel | None = None) -> str:
    resolved = resolve_level(level)

    coloredlogs.install(
        level=resolved,
        fmt=LOG_FORMAT,
        datefmt=DATE_FORMAT,
    )

    logging.getLogger("devhub").setLevel(resolved)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    return resolved
