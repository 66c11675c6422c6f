"""Leveled logger that writes every accepted call as a row in SQLite."""

from __future__ import annotations

import logging
import os
import sys
import time
import weakref
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Union

from sqlalchemy import delete, func, insert, select
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .database import (
    create_log_engine,
    open_connection,
    read_user_version,
    remove_database,
    write_user_version,
)
from .exceptions import InvalidArgument, ReadOnlyError, SchemaError, WriteError
from .levels import LevelFilter, normalize_level
from .models.log_record import LogRecord
from .schema import LogSchema


logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400

# Smallest value SQLite can store in an INTEGER column
_MIN_TIMESTAMP = -(2 ** 63)


@dataclass(frozen=True)
class CallSite:
    """Module name and source line a log call originated from."""

    package: Optional[str]
    line: Optional[int]

    @classmethod
    def capture(cls, depth: int = 1) -> "CallSite":
        """Return the call site ``depth`` frames above the caller of this method."""
        try:
            frame = sys._getframe(depth + 1)
        except ValueError:
            return cls(None, None)
        return cls(frame.f_globals.get("__name__"), frame.f_lineno)


def _join_parts(parts: Iterable[Any]) -> str:
    fragments = []
    for part in parts:
        if isinstance(part, (bytes, bytearray)):
            part = bytes(part).decode("utf-8", errors="replace")
        elif not isinstance(part, str):
            part = str(part)
        fragments.append(part)
    return "\n".join(fragments)


def _release(connection: Connection, engine: Engine, ephemeral_path: Optional[Path]) -> None:
    connection.close()
    engine.dispose()
    if ephemeral_path is not None:
        remove_database(ephemeral_path)
        logger.debug("Removed ephemeral log database %s", ephemeral_path)


def _parse_days(num_days: Any) -> int:
    if isinstance(num_days, bool):
        raise InvalidArgument(f"Not a valid number of days {num_days!r}")
    if isinstance(num_days, int):
        days = num_days
    elif isinstance(num_days, str) and num_days.isascii() and num_days.isdigit():
        days = int(num_days)
    else:
        raise InvalidArgument(f"Not a valid number of days {num_days!r}")
    if days < 0:
        raise InvalidArgument(f"Not a valid number of days {num_days!r}")
    return days


class Logite:
    """Persist leveled log calls into a table of a SQLite database.

    Options not given explicitly fall back to :data:`logite.config.settings`.
    The logger holds one connection from construction until :meth:`close`.

    Example::

        log = Logite(path="log/app.db", level="warn", namespace="myapp")
        log.warn("disk almost full").error("disk full")
        log.clear(7)
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        level: Optional[str] = None,
        namespace: Optional[str] = None,
        ephemeral: Optional[bool] = None,
        schema_version: Optional[int] = None,
        generated_code_cache_dir: Optional[Union[str, Path]] = None,
        readonly: Optional[bool] = None,
        level_filter: Optional[LevelFilter] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.path = Path(path if path is not None else settings.path)
        self.namespace = namespace if namespace is not None else settings.namespace
        self.ephemeral = settings.ephemeral if ephemeral is None else ephemeral
        self.readonly = settings.readonly if readonly is None else readonly
        if self.ephemeral and self.readonly:
            raise InvalidArgument("A read-only logger cannot be ephemeral: it would delete a file it does not own")
        self.schema_version = schema_version if schema_version is not None else settings.schema_version
        self.generated_code_cache_dir = (
            generated_code_cache_dir
            if generated_code_cache_dir is not None
            else settings.generated_code_cache_dir
        )
        if level_filter is None:
            level_filter = LevelFilter(level if level is not None else settings.level)
        elif level is not None:
            level_filter.minimum = level
        self.level_filter = level_filter
        self.clock = clock

        self.schema = LogSchema(self.namespace)
        if self.generated_code_cache_dir:
            self.schema.check_cache(self.generated_code_cache_dir, self.schema_version)

        self._engine: Engine = create_log_engine(self.path, readonly=self.readonly)
        try:
            self._connection: Optional[Connection] = open_connection(self._engine)
        except Exception:
            self._engine.dispose()
            raise
        self._closed = False
        # Runs on close(), on garbage collection or at interpreter exit, whichever comes first
        self._finalizer = weakref.finalize(
            self,
            _release,
            self._connection,
            self._engine,
            self.path if self.ephemeral else None,
        )

        try:
            self._prepare()
        except Exception:
            self.close()
            raise

    def _prepare(self) -> None:
        connection = self.connection
        with connection.begin():
            if self.readonly:
                self.schema.check(connection)
            else:
                self.schema.ensure(connection)

            if self.schema_version is None:
                return
            try:
                current = read_user_version(connection)
                if current == 0 and not self.readonly:
                    write_user_version(connection, self.schema_version)
                    current = self.schema_version
            except SQLAlchemyError as exc:
                raise SchemaError(f"Could not read schema version of {self.path}: {exc}") from exc
            if current != self.schema_version:
                raise SchemaError(
                    f"Log database {self.path} has schema version {current}, "
                    f"expected {self.schema_version}"
                )

    # ------------------------------------------------------------------
    # Handles
    # ------------------------------------------------------------------

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def connection(self) -> Connection:
        if self._connection is None:
            raise WriteError(f"Logger for {self.path} is closed")
        return self._connection

    @property
    def table(self):
        """The SQLAlchemy ``Table`` backing this logger."""
        return self.schema.table

    @property
    def level(self) -> str:
        return self.level_filter.minimum

    @level.setter
    def level(self, value: str) -> None:
        self.level_filter.minimum = value

    def schema_definition(self) -> str:
        """Return the DDL text for this logger's table."""
        return self.schema.definition()

    def is_level(self, level: str) -> bool:
        return self.level_filter.is_level(level)

    def _require_writable(self, operation: str) -> None:
        if self.readonly:
            raise ReadOnlyError(f"Cannot {operation} on read-only log database {self.path}")

    def _begin(self):
        """Start a transaction, ending one left open by raw use of :attr:`connection`."""
        connection = self.connection
        if connection.in_transaction():
            connection.commit()
        return connection.begin()

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def log(self, level: str, *parts: Any, caller: Optional[CallSite] = None) -> "Logite":
        """Store one row for ``level`` if it passes the minimum severity.

        Message fragments are joined with newlines. ``caller`` overrides
        the recorded call site, which otherwise is the caller of this
        method.
        """
        level = normalize_level(level)
        if not level or not self.level_filter.is_level(level):
            return self
        self._require_writable("log")

        if caller is None:
            caller = CallSite.capture(1)
        values = {
            "caller_package": caller.package,
            "caller_line": str(caller.line) if caller.line is not None else None,
            "message": _join_parts(parts),
            "timestamp": int(self.clock()),
            "level": level,
            "context": str(os.getpid()),
        }

        connection = self.connection
        try:
            with self._begin():
                connection.execute(insert(self.table).values(**values))
        except SQLAlchemyError as exc:
            raise WriteError(f"Could not write log entry to {self.path}: {exc}") from exc
        return self

    def debug(self, *parts: Any) -> "Logite":
        return self.log("debug", *parts, caller=CallSite.capture(1))

    def info(self, *parts: Any) -> "Logite":
        return self.log("info", *parts, caller=CallSite.capture(1))

    def warn(self, *parts: Any) -> "Logite":
        return self.log("warn", *parts, caller=CallSite.capture(1))

    def warning(self, *parts: Any) -> "Logite":
        return self.log("warn", *parts, caller=CallSite.capture(1))

    def error(self, *parts: Any) -> "Logite":
        return self.log("error", *parts, caller=CallSite.capture(1))

    def fatal(self, *parts: Any) -> "Logite":
        return self.log("fatal", *parts, caller=CallSite.capture(1))

    def critical(self, *parts: Any) -> "Logite":
        return self.log("fatal", *parts, caller=CallSite.capture(1))

    # ------------------------------------------------------------------
    # Retention
    # ------------------------------------------------------------------

    def clear(self, num_days: Union[int, str]) -> "Logite":
        """Delete entries older than ``num_days`` days, or every entry for 0.

        Entries logged exactly ``num_days`` days ago or later are kept.
        """
        days = _parse_days(num_days)
        self._require_writable("clear")

        statement = delete(self.table)
        if days > 0:
            cutoff = max(int(self.clock()) - days * SECONDS_PER_DAY, _MIN_TIMESTAMP)
            statement = statement.where(self.table.c.timestamp < cutoff)

        connection = self.connection
        try:
            with self._begin():
                result = connection.execute(statement)
        except SQLAlchemyError as exc:
            raise WriteError(f"Could not clear log entries in {self.path}: {exc}") from exc

        if days == 0:
            logger.debug("Truncated %s (%s rows)", self.schema.table_name, result.rowcount)
        else:
            logger.debug(
                "Removed %s rows older than %s days from %s",
                result.rowcount,
                days,
                self.schema.table_name,
            )
        return self

    def vacuum(self) -> "Logite":
        """Rebuild the database file to reclaim space freed by purges."""
        self._require_writable("vacuum")
        connection = self.connection
        if connection.in_transaction():
            connection.commit()
        try:
            # VACUUM cannot run inside a transaction
            connection.exec_driver_sql("VACUUM")
            connection.commit()
        except SQLAlchemyError as exc:
            connection.rollback()
            raise WriteError(f"Could not vacuum {self.path}: {exc}") from exc
        return self

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def records(self, *criteria: Any, limit: Optional[int] = None) -> List[LogRecord]:
        """Return stored entries in insertion order.

        ``criteria`` are SQLAlchemy expressions on :attr:`table` columns,
        e.g. ``log.records(log.table.c.level == "error")``.
        """
        statement = select(self.table).order_by(self.table.c.id)
        if criteria:
            statement = statement.where(*criteria)
        if limit is not None:
            statement = statement.limit(limit)
        connection = self.connection
        with self._begin():
            rows = connection.execute(statement).all()
        return [LogRecord.from_row(row) for row in rows]

    def iterate(self, callback: Callable[[LogRecord], Any]) -> "Logite":
        """Call ``callback`` with every stored entry in insertion order."""
        for record in self.records():
            callback(record)
        return self

    def count(self, *criteria: Any) -> int:
        statement = select(func.count()).select_from(self.table)
        if criteria:
            statement = statement.where(*criteria)
        connection = self.connection
        with self._begin():
            return int(connection.execute(statement).scalar() or 0)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release the connection and remove the file of an ephemeral logger."""
        if self._closed:
            return
        self._closed = True
        self._connection = None
        self._finalizer()

    def __enter__(self) -> "Logite":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"Logite(path={str(self.path)!r}, namespace={self.namespace!r}, level={self.level!r})"
