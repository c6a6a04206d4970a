##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
SQL dialects supported by GDA.

A dialect produces the SQL fragments that differ between database systems,
knows the parameter style of its driver and how to open a driver connection.
The SQLite driver ships with Python; the MySQL and PostgreSQL drivers are
optional dependencies that are only imported when a connection is opened.
"""
import importlib
import logging
import sqlite3
import sys
from abc import ABC, abstractmethod
from datetime import date, datetime
from types import SimpleNamespace
from typing import Any, List, Optional, Type
from uuid import UUID

from gda.entities.field_definition import FieldDefinition, SqlFieldType
from gda.exceptions import ConfigurationError


LOG = logging.getLogger(__name__)


class SqlDialect(ABC):
    """
    Base class of all SQL dialects.

    Attributes:
        name (str): Canonical name of the dialect.
        paramstyle (str): DB-API parameter style of the driver, "named" or "pyformat".
        default_port (Optional[int]): Port used when the configuration names none.
        driver_error (Type[Exception]): Base class of the errors raised by the driver.
    """

    name: str = None
    paramstyle: str = "named"
    default_port: Optional[int] = None
    driver_error: Type[Exception] = Exception

    @abstractmethod
    def connect(self, settings: SimpleNamespace) -> Any:
        """
        Open a driver connection in autocommit mode; transactions are issued
        explicitly by the caller.

        Args:
            settings: The `sql` section of the configuration.

        Returns:
            A DB-API connection.
        """
        raise NotImplementedError("Subclasses of `SqlDialect` must implement a `connect` method.")

    def prepare_connection(self, conn: Any):
        """
        Hook run once on every new driver connection. Does nothing by default.

        Args:
            conn: The DB-API connection.
        """

    @abstractmethod
    def last_id_query(self, table_name: str) -> str:
        """
        Build the query returning the last surrogate key generated for a table.

        Args:
            table_name: The prefixed table name.

        Returns:
            A query returning one row with one column.
        """
        raise NotImplementedError("Subclasses of `SqlDialect` must implement a `last_id_query` method.")

    @abstractmethod
    def nvl(self, value: str, instead_of: str) -> str:
        """Expression yielding `instead_of` where `value` is NULL."""
        raise NotImplementedError("Subclasses of `SqlDialect` must implement an `nvl` method.")

    def concat(self, values: List[str]) -> str:
        """Expression concatenating strings."""
        return " || ".join(values)

    def timestamp(self) -> str:
        """Expression for the current timestamp."""
        return "CURRENT_TIMESTAMP"

    def current_date(self) -> str:
        """Expression for the current date."""
        return "CURRENT_DATE"

    @abstractmethod
    def to_date(self, value: str) -> str:
        """Expression parsing a `YYYY-MM-DD` string into a date."""
        raise NotImplementedError("Subclasses of `SqlDialect` must implement a `to_date` method.")

    @abstractmethod
    def to_char(self, value: str) -> str:
        """Expression formatting a date as `YYYY-MM-DD`."""
        raise NotImplementedError("Subclasses of `SqlDialect` must implement a `to_char` method.")

    @abstractmethod
    def date_add(self, value: str, days: Any) -> str:
        """Expression adding a number of days to a date."""
        raise NotImplementedError("Subclasses of `SqlDialect` must implement a `date_add` method.")

    @abstractmethod
    def date_diff(self, end: str, start: str) -> str:
        """Expression for the number of days between `start` and `end`."""
        raise NotImplementedError("Subclasses of `SqlDialect` must implement a `date_diff` method.")

    @abstractmethod
    def unixtime_year(self, unixtime: str) -> str:
        """Expression for the year of a unix timestamp."""
        raise NotImplementedError("Subclasses of `SqlDialect` must implement an `unixtime_year` method.")

    def substring(self, value: str, pos: int = 1, length: Optional[int] = None) -> str:
        """Expression for a substring starting at the 1-based position `pos`."""
        if length is None:
            return f"SUBSTRING({value} FROM {pos})"
        return f"SUBSTRING({value} FROM {pos} FOR {length})"

    def bit_or_agg(self, value: str) -> str:
        """Aggregate expression for the bitwise or over a grouped column."""
        return f"BIT_OR({value})"

    def adjust_value_for_db(self, field_def: FieldDefinition, value: Any) -> Any:
        """
        Convert an entity value into a driver parameter.

        Args:
            field_def: The definition of the field the value belongs to.
            value: The entity value.

        Returns:
            The parameter value.
        """
        if isinstance(value, UUID):
            return str(value)
        if field_def.type == SqlFieldType.BOOLEAN and isinstance(value, bool):
            return int(value)
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        if isinstance(value, date):
            return value.isoformat()
        return value

    def adjust_value_for_entity(self, field_def: FieldDefinition, value: Any) -> Any:
        """
        Convert a value read from the driver into an entity value. Dates and
        timestamps are handed to entities as ISO formatted strings.

        Args:
            field_def: The definition of the field the value belongs to.
            value: The driver value.

        Returns:
            The entity value.
        """
        if isinstance(value, datetime):
            return value.isoformat(sep=" ")
        if isinstance(value, date):
            return value.isoformat()
        return value


class BitOr:
    """Aggregate computing the bitwise or of integers, registered with SQLite as `bit_or`."""

    def __init__(self):
        self.result = 0

    def step(self, value):
        if value is not None:
            self.result |= int(value)

    def finalize(self):
        return self.result


class SQLiteDialect(SqlDialect):
    """
    Dialect of SQLite. The `database` setting is the path of the database file,
    `:memory:` by default.
    """

    name = "sqlite"
    paramstyle = "named"
    driver_error = sqlite3.Error

    def connect(self, settings: SimpleNamespace) -> sqlite3.Connection:
        database = getattr(settings, "database", None) or ":memory:"
        connection_kwargs = {"check_same_thread": False}
        if sys.version_info < (3, 12):  # Autocommit wasn't added until python 3.12
            connection_kwargs["isolation_level"] = None
        else:
            connection_kwargs["autocommit"] = True
        return sqlite3.connect(database, **connection_kwargs)

    def prepare_connection(self, conn: sqlite3.Connection):
        conn.execute("PRAGMA foreign_keys=ON")
        conn.create_aggregate("bit_or", 1, BitOr)

    def last_id_query(self, table_name: str) -> str:
        return "SELECT last_insert_rowid()"

    def nvl(self, value: str, instead_of: str) -> str:
        return f"IFNULL({value}, {instead_of})"

    def to_date(self, value: str) -> str:
        return f"date({value})"

    def to_char(self, value: str) -> str:
        return f"strftime('%Y-%m-%d', {value})"

    def date_add(self, value: str, days: Any) -> str:
        return f"date(julianday({value}) + ({days}))"

    def date_diff(self, end: str, start: str) -> str:
        return f"CAST(julianday({end}) - julianday({start}) AS INTEGER)"

    def unixtime_year(self, unixtime: str) -> str:
        return f"strftime('%Y', {unixtime}, 'unixepoch')"

    def substring(self, value: str, pos: int = 1, length: Optional[int] = None) -> str:
        if length is None:
            return f"substr({value}, {pos})"
        return f"substr({value}, {pos}, {length})"

    def bit_or_agg(self, value: str) -> str:
        return f"bit_or({value})"


def _import_driver(module_name: str, extra: str) -> Any:
    try:
        return importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(
            f"The '{module_name}' driver is not installed. Install GDA with the '{extra}' extra."
        ) from exc


class MySqlDialect(SqlDialect):
    """Dialect of MySQL and MariaDB, connected through PyMySQL."""

    name = "mysql"
    paramstyle = "pyformat"
    default_port = 3306

    def connect(self, settings: SimpleNamespace) -> Any:
        pymysql = _import_driver("pymysql", "mysql")
        self.driver_error = pymysql.Error
        return pymysql.connect(
            host=getattr(settings, "host", "localhost"),
            port=int(getattr(settings, "port", None) or self.default_port),
            user=getattr(settings, "user", None),
            password=getattr(settings, "password", None) or "",
            database=getattr(settings, "database", None),
            charset=getattr(settings, "encoding", None) or "utf8mb4",
            autocommit=True,
        )

    def last_id_query(self, table_name: str) -> str:
        return "SELECT LAST_INSERT_ID()"

    def nvl(self, value: str, instead_of: str) -> str:
        return f"IFNULL({value}, {instead_of})"

    def concat(self, values: List[str]) -> str:
        return f"CONCAT({', '.join(values)})"

    def current_date(self) -> str:
        return "CURDATE()"

    def to_date(self, value: str) -> str:
        return f"STR_TO_DATE({value}, '%Y-%m-%d')"

    def to_char(self, value: str) -> str:
        return f"DATE_FORMAT({value}, '%Y-%m-%d')"

    def date_add(self, value: str, days: Any) -> str:
        return f"ADDDATE({value}, {days})"

    def date_diff(self, end: str, start: str) -> str:
        return f"DATEDIFF({end}, {start})"

    def unixtime_year(self, unixtime: str) -> str:
        return f"FROM_UNIXTIME({unixtime}, '%Y')"


class PostgreSqlDialect(SqlDialect):
    """
    Dialect of PostgreSQL, connected through psycopg2. Surrogate keys are read
    from the sequence named `<table>_seq`.
    """

    name = "postgresql"
    paramstyle = "pyformat"
    default_port = 5432

    def connect(self, settings: SimpleNamespace) -> Any:
        psycopg2 = _import_driver("psycopg2", "postgresql")
        self.driver_error = psycopg2.Error
        conn = psycopg2.connect(
            host=getattr(settings, "host", "localhost"),
            port=int(getattr(settings, "port", None) or self.default_port),
            user=getattr(settings, "user", None),
            password=getattr(settings, "password", None),
            dbname=getattr(settings, "database", None),
            client_encoding=getattr(settings, "encoding", None) or "UTF8",
        )
        conn.autocommit = True
        return conn

    def last_id_query(self, table_name: str) -> str:
        return f"SELECT currval('{table_name}_seq')"

    def nvl(self, value: str, instead_of: str) -> str:
        return f"COALESCE({value}, {instead_of})"

    def to_date(self, value: str) -> str:
        return f"to_date({value}, 'YYYY-MM-DD')"

    def to_char(self, value: str) -> str:
        return f"to_char({value}, 'YYYY-MM-DD')"

    def date_add(self, value: str, days: Any) -> str:
        return f"{value} + CAST({days} AS INTEGER)"

    def date_diff(self, end: str, start: str) -> str:
        return f"{end} - {start}"

    def unixtime_year(self, unixtime: str) -> str:
        return f"to_char(to_timestamp({unixtime}), 'YYYY')"

    def bit_or_agg(self, value: str) -> str:
        return f"BIT_OR(CAST({value} AS bigint))"
