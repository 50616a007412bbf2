"""Logging setup shared by the CLI and scripts."""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.console import Console

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | {message}"


def configure_logging(
    level: str = "INFO",
    log_file: Optional[Path] = None,
    console: Optional[Console] = None,
) -> None:
    """Replace loguru's default sink.

    Messages at ``level`` and above go to ``console`` when given (rendered
    dim through rich), otherwise to stderr. ``log_file`` adds a DEBUG file
    sink rotated daily and kept for a week.
    """
    logger.remove()

    if console is not None:
        logger.add(
            lambda msg: console.print(msg, style="dim", end="", markup=False, highlight=False),
            level=level,
            format="{message}",
        )
    else:
        logger.add(sys.stderr, level=level, format=LOG_FORMAT)

    if log_file is not None:
        logger.add(
            str(log_file),
            rotation="1 day",
            retention="7 days",
            level="DEBUG",
            format=LOG_FORMAT,
        )
