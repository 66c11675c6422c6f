"""Data models for Logite."""

from .log_record import LogRecord

__all__ = [
    "LogRecord",
]
