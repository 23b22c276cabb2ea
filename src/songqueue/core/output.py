"""
Unified output system using Loguru and Rich.

User-facing messages are written to the log file and echoed on a shared
Rich console; library code only ever uses the loguru logger.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger
from rich.console import Console

LEVEL_STYLES = {
    "debug": "cyan",
    "info": None,
    "warning": "yellow",
    "error": "red",
}

_console: Optional[Console] = None


def get_console() -> Console:
    """Get or create the shared Rich console."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def setup_loguru(
    log_file: Path, level: str = "INFO", console_output: bool = False
) -> None:
    """
    Configure loguru file logging, optionally mirrored to stderr.

    Args:
        log_file: Path to log file
        level: Minimum level for file logging (DEBUG, INFO, WARNING, ERROR)
        console_output: Also write log records to stderr
    """
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation="10 MB",
        retention=5,  # Keep 5 backup files
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}",
        enqueue=False,
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to file AND prints to the console.

    Args:
        message: User-facing message
        level: Log level (debug, info, warning, error)
    """
    getattr(logger, level)(message)
    style = LEVEL_STYLES.get(level)
    if style:
        get_console().print(message, style=style, markup=False)
    else:
        get_console().print(message, markup=False)
