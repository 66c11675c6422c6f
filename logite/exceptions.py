"""Logite exception hierarchy."""

from __future__ import annotations


class LogiteError(Exception):
    """Base exception for all Logite errors."""


class InvalidArgument(LogiteError, ValueError):
    """Raised when an operation receives a malformed argument."""


class SchemaError(LogiteError):
    """Raised when the log table cannot be created or does not match the expected layout."""


class WriteError(LogiteError):
    """Raised when an insert, delete or maintenance statement fails."""


class ReadOnlyError(LogiteError):
    """Raised when a write is attempted on a logger opened read-only."""


class DatabaseConnectionError(LogiteError):
    """Raised when the backing database file cannot be opened or created."""
