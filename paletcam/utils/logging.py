"""
Paletcam Structured Logging
Centralized loguru configuration plus component-scoped structured loggers.
"""
import sys
from typing import Any, Dict, Optional

from loguru import logger

from paletcam.config import config

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {extra[component]} | {message} | {extra}"

_configured = False


def configure_logging(level: Optional[str] = None, serialize: bool = False) -> None:
    """
    Replace loguru's default handler with the Paletcam stderr sink.

    Runs automatically on the first get_logger() call at Config.LOG_LEVEL;
    call it again to change the level or switch to JSON output.
    """
    global _configured
    logger.remove()
    logger.configure(extra={"component": "paletcam"})
    logger.add(
        sys.stderr,
        format=LOG_FORMAT,
        level=level or config.LOG_LEVEL,
        serialize=serialize
    )
    _configured = True


class StructuredLogger:
    """loguru logger bound to a component name, taking `extra` dicts per call."""

    def __init__(self, component: str = "paletcam", **context: Any):
        self.component = component
        self._logger = logger.bind(component=component, **context)

    def bind(self, **context: Any) -> "StructuredLogger":
        """Child logger carrying extra context, e.g. a capture session id."""
        child = StructuredLogger.__new__(StructuredLogger)
        child.component = self.component
        child._logger = self._logger.bind(**context)
        return child

    def _emit(self, level: str, message: str, extra: Optional[Dict[str, Any]]) -> None:
        target = self._logger.bind(**extra) if extra else self._logger
        target.log(level, message)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit("INFO", message, extra)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit("WARNING", message, extra)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit("ERROR", message, extra)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        self._emit("DEBUG", message, extra)


# One structured logger per component
_loggers: Dict[str, StructuredLogger] = {}


def get_logger(component: str = "paletcam") -> StructuredLogger:
    """Get or create the structured logger for a component."""
    if not _configured:
        configure_logging()
    if component not in _loggers:
        _loggers[component] = StructuredLogger(component)
    return _loggers[component]
