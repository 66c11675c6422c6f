"""Logite: leveled logging into a SQLite table."""

from .exceptions import (
    DatabaseConnectionError,
    InvalidArgument,
    LogiteError,
    ReadOnlyError,
    SchemaError,
    WriteError,
)
from .handler import LogiteHandler, disable_database_logging, enable_database_logging
from .levels import LEVELS, LevelFilter
from .logger import CallSite, Logite
from .models import LogRecord
from .schema import DEFAULT_NAMESPACE, LogSchema, ensure_schema, schema_definition

__version__ = "0.1.0"

__all__ = [
    "CallSite",
    "DEFAULT_NAMESPACE",
    "DatabaseConnectionError",
    "InvalidArgument",
    "LEVELS",
    "LevelFilter",
    "LogRecord",
    "LogSchema",
    "Logite",
    "LogiteError",
    "LogiteHandler",
    "ReadOnlyError",
    "SchemaError",
    "WriteError",
    "disable_database_logging",
    "enable_database_logging",
    "ensure_schema",
    "schema_definition",
]
