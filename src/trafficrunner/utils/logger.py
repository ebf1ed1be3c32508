"""
Logging helpers for TrafficRunner.

All modules obtain their logger through get_logger(__name__), which binds
the module name onto the shared loguru logger. configure_logging() installs
the single sink, rendered through rich on stderr.
"""

import traceback

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

from trafficrunner.models.enums import LogLevel

ROOT_LOGGER_NAME = "trafficrunner"

_LEVEL_MAP = {
    LogLevel.FULL: "TRACE",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARNING: "WARNING",
}

logger.configure(extra={"name": ROOT_LOGGER_NAME})


def get_logger(name: str):
    """Get the loguru logger bound to a module name."""
    return logger.bind(name=name)


def configure_logging(level: LogLevel = LogLevel.INFO) -> int:
    """
    Replace all loguru sinks with one rich sink at the given level.

    Safe to call more than once.

    Args:
        level: Verbosity. FULL also logs TRACE records and renders
            variable values in tracebacks.

    Returns:
        The id of the installed sink.
    """
    full = level == LogLevel.FULL
    logger.remove()
    return logger.add(
        RichHandler(
            console=Console(stderr=True),
            show_path=False,
            rich_tracebacks=True,
            tracebacks_show_locals=full,
            markup=False,
        ),
        level=_LEVEL_MAP[level],
        format="[{extra[name]}] {message}" if full else "{message}",
        backtrace=full,
        diagnose=full,
    )


def format_traceback(exc: BaseException) -> str:
    """Render an exception with its traceback as a string."""
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
