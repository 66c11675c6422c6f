"""Database connection management for log files."""

import logging
from pathlib import Path
from typing import Union

from sqlalchemy import create_engine
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from .exceptions import DatabaseConnectionError


logger = logging.getLogger(__name__)

_COMPANION_SUFFIXES = ("-journal", "-wal", "-shm")


def database_url(path: Union[str, Path], readonly: bool = False) -> str:
    """Return the SQLAlchemy URL for a SQLite file, optionally opened read-only."""
    resolved = Path(path).expanduser().resolve()
    if readonly:
        return f"sqlite:///file:{resolved.as_posix()}?mode=ro&uri=true"
    return f"sqlite:///{resolved.as_posix()}"


def create_log_engine(path: Union[str, Path], readonly: bool = False) -> Engine:
    """Create a synchronous engine for the log database at ``path``."""
    return create_engine(
        database_url(path, readonly=readonly),
        future=True,
        poolclass=NullPool,  # One connection is held per logger anyway
    )


def open_connection(engine: Engine) -> Connection:
    """Open the connection a logger holds for its lifetime."""
    try:
        return engine.connect()
    except SQLAlchemyError as exc:
        raise DatabaseConnectionError(f"Cannot open log database {engine.url.database}: {exc}") from exc


def read_user_version(connection: Connection) -> int:
    """Return the database's ``PRAGMA user_version`` marker."""
    return int(connection.exec_driver_sql("PRAGMA user_version").scalar() or 0)


def write_user_version(connection: Connection, version: int) -> None:
    """Set the database's ``PRAGMA user_version`` marker."""
    # PRAGMA values cannot be bound as parameters
    connection.exec_driver_sql(f"PRAGMA user_version = {int(version)}")


def remove_database(path: Union[str, Path]) -> None:
    """Delete a database file together with its journal files."""
    database = Path(path)
    for candidate in [database] + [Path(f"{database}{suffix}") for suffix in _COMPANION_SUFFIXES]:
        try:
            candidate.unlink()
        except FileNotFoundError:
            continue
        logger.debug("Removed %s", candidate)
