"""Bridge from the standard :mod:`logging` package into a Logite database."""

from __future__ import annotations

import logging
from typing import Optional, Union

from .levels import from_logging_level
from .logger import CallSite, Logite


_INTERNAL_LOGGER = "logite"


class LogiteHandler(logging.Handler):
    """Logging handler that writes each record through a :class:`Logite`."""

    def __init__(self, logite: Logite, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.logite = logite

    def emit(self, record: logging.LogRecord) -> None:  # noqa: D401 - standard emit signature
        # Records about the database logger itself would re-enter it
        if record.name == _INTERNAL_LOGGER or record.name.startswith(_INTERNAL_LOGGER + "."):
            return
        try:
            parts = [record.getMessage()]
            if record.exc_info:
                parts.append(self._formatter().formatException(record.exc_info))
            elif record.exc_text:
                parts.append(record.exc_text)
            if record.stack_info:
                parts.append(self._formatter().formatStack(record.stack_info))
            self.logite.log(
                from_logging_level(record.levelno),
                *parts,
                caller=CallSite(record.name, record.lineno),
            )
        except Exception:
            self.handleError(record)

    def _formatter(self) -> logging.Formatter:
        return self.formatter or logging.Formatter()


def _resolve_logger(target: Optional[Union[str, logging.Logger]]) -> logging.Logger:
    if isinstance(target, logging.Logger):
        return target
    return logging.getLogger(target)


def enable_database_logging(
    logite: Logite,
    logger: Optional[Union[str, logging.Logger]] = None,
    level: Optional[int] = None,
) -> LogiteHandler:
    """Attach a :class:`LogiteHandler` to ``logger`` (the root logger by default)."""
    target = _resolve_logger(logger)
    for handler in target.handlers:
        if isinstance(handler, LogiteHandler) and handler.logite is logite:
            # Already configured for this logger.
            return handler

    handler = LogiteHandler(logite)
    if level is not None:
        handler.setLevel(level)
        target.setLevel(min(target.level or level, level))
    target.addHandler(handler)
    return handler


def disable_database_logging(logger: Optional[Union[str, logging.Logger]] = None) -> None:
    """Detach every :class:`LogiteHandler` from ``logger``."""
    target = _resolve_logger(logger)
    for handler in list(target.handlers):
        if isinstance(handler, LogiteHandler):
            target.removeHandler(handler)
            handler.close()
