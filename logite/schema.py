"""Log table definition and schema provisioning.

The table layout is fixed; only its name changes with the namespace, so
several independent log streams can share one database file alongside
unrelated application tables.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple, Union

from sqlalchemy import Column, Index, Integer, MetaData, String, Table, Text, inspect
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import InvalidArgument, SchemaError


logger = logging.getLogger(__name__)

DEFAULT_NAMESPACE = "logite"

COLUMNS: Tuple[str, ...] = (
    "id",
    "caller_package",
    "caller_line",
    "message",
    "timestamp",
    "level",
    "context",
)

_TABLE_TEMPLATE = """CREATE TABLE {table} (
    id             INTEGER PRIMARY KEY AUTOINCREMENT,
    caller_package VARCHAR(255) DEFAULT NULL,
    caller_line    VARCHAR(255) DEFAULT NULL,
    message        TEXT DEFAULT NULL,
    timestamp      INTEGER NOT NULL,
    level          VARCHAR(10) DEFAULT NULL,
    context        TEXT DEFAULT NULL
)"""
_TIMESTAMP_INDEX_TEMPLATE = "CREATE INDEX IF NOT EXISTS {index} ON {table} (timestamp)"
_LEVEL_INDEX_TEMPLATE = "CREATE INDEX IF NOT EXISTS {index} ON {table} (level, caller_package)"

_NON_IDENTIFIER = re.compile(r"[^0-9a-z]+")


def table_name_for(namespace: str) -> str:
    """Return the log table name for ``namespace`` (``MyApp::Logite`` -> ``myapp_logite_log``)."""
    ident = _NON_IDENTIFIER.sub("_", str(namespace).lower()).strip("_")
    if not ident or ident[0].isdigit():
        raise InvalidArgument(f"Namespace {namespace!r} does not yield a valid table name")
    return f"{ident}_log"


class LogSchema:
    """Table, indexes and DDL for one log namespace."""

    def __init__(self, namespace: str = DEFAULT_NAMESPACE) -> None:
        self.namespace = namespace
        self.table_name = table_name_for(namespace)
        self.timestamp_index = f"{self.table_name}_timestamp_idx"
        self.level_index = f"{self.table_name}_level_caller_idx"

        self.metadata = MetaData()
        self.table = Table(
            self.table_name,
            self.metadata,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("caller_package", String(255), nullable=True),
            Column("caller_line", String(255), nullable=True),
            Column("message", Text, nullable=True),
            Column("timestamp", Integer, nullable=False),
            Column("level", String(10), nullable=True),
            Column("context", Text, nullable=True),
            sqlite_autoincrement=True,
        )
        Index(self.timestamp_index, self.table.c.timestamp)
        Index(self.level_index, self.table.c.level, self.table.c.caller_package)

    @property
    def table_statement(self) -> str:
        return _TABLE_TEMPLATE.format(table=self.table_name)

    @property
    def index_statements(self) -> Tuple[str, str]:
        return (
            _TIMESTAMP_INDEX_TEMPLATE.format(index=self.timestamp_index, table=self.table_name),
            _LEVEL_INDEX_TEMPLATE.format(index=self.level_index, table=self.table_name),
        )

    @property
    def statements(self) -> Tuple[str, ...]:
        return (self.table_statement,) + self.index_statements

    def definition(self) -> str:
        """Return the exact DDL text used to create the table and its indexes.

        Host applications can run it ahead of time to pre-provision the
        log table in a shared database file.
        """
        return "".join(f"{statement};\n" for statement in self.statements)

    def columns(self, connection: Connection) -> List[str]:
        """Return the column names of the existing table, in table order."""
        return [column["name"] for column in inspect(connection).get_columns(self.table_name)]

    def exists(self, connection: Connection) -> bool:
        return inspect(connection).has_table(self.table_name)

    def _verify_columns(self, connection: Connection) -> None:
        existing = self.columns(connection)
        if set(existing) != set(COLUMNS):
            raise SchemaError(
                f"Table {self.table_name!r} exists with incompatible columns: {', '.join(existing)}"
            )

    def ensure(self, connection: Connection) -> bool:
        """Create the table and indexes if absent.

        Returns True when the table was created by this call. Must run
        inside a transaction on ``connection``.
        """
        try:
            created = False
            if self.exists(connection):
                self._verify_columns(connection)
            else:
                connection.exec_driver_sql(self.table_statement)
                created = True
            for statement in self.index_statements:
                connection.exec_driver_sql(statement)
        except SQLAlchemyError as exc:
            raise SchemaError(f"Could not provision log table {self.table_name!r}: {exc}") from exc

        if created:
            logger.info("Created log table %s", self.table_name)
        return created

    def check(self, connection: Connection) -> None:
        """Verify the table exists with the expected columns without writing anything."""
        try:
            if not self.exists(connection):
                raise SchemaError(f"Log table {self.table_name!r} does not exist")
            self._verify_columns(connection)
        except SQLAlchemyError as exc:
            raise SchemaError(f"Could not inspect log table {self.table_name!r}: {exc}") from exc

    def check_cache(self, cache_dir: Union[str, Path], schema_version: Optional[int] = None) -> Path:
        """Store a DDL snapshot for this version, rejecting a mismatched existing one."""
        directory = Path(cache_dir)
        version = schema_version if schema_version is not None else 0
        snapshot = directory / f"{self.table_name}.v{version}.sql"
        definition = self.definition()
        try:
            if snapshot.exists():
                cached = snapshot.read_text(encoding="utf-8")
                if cached != definition:
                    raise SchemaError(
                        f"Cached schema {snapshot} does not match table {self.table_name!r} "
                        f"for version {version}"
                    )
                return snapshot
            directory.mkdir(parents=True, exist_ok=True)
            snapshot.write_text(definition, encoding="utf-8")
        except OSError as exc:
            raise SchemaError(f"Could not use schema cache {directory}: {exc}") from exc
        logger.debug("Wrote schema snapshot %s", snapshot)
        return snapshot


def schema_definition(namespace: str = DEFAULT_NAMESPACE) -> str:
    """Return the DDL text for the log table of ``namespace``."""
    return LogSchema(namespace).definition()


def ensure_schema(connection: Connection, namespace: str = DEFAULT_NAMESPACE) -> LogSchema:
    """Idempotently provision the log table of ``namespace`` on ``connection``."""
    schema = LogSchema(namespace)
    if connection.in_transaction():
        schema.ensure(connection)
    else:
        with connection.begin():
            schema.ensure(connection)
    return schema
