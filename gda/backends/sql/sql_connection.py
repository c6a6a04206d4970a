##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Connection wrapper giving SQL accessors nested transactions and a statement cache.

This module defines the `SqlConnection` class. It owns one DB-API connection
opened in autocommit mode and issues `BEGIN`, `COMMIT` and `ROLLBACK` itself,
counting nested transaction scopes so that only the outermost scope reaches the
database. Statements are written with `:name` placeholders and compiled once
per statement text into the parameter style of the driver.
"""

import logging
import re
from types import SimpleNamespace, TracebackType
from typing import Any, Dict, List, Optional, Type, Union

from gda.backends.sql.dialect_factory import dialect_factory
from gda.backends.sql.sql_dialects import SqlDialect, SQLiteDialect
from gda.backends.sql.sql_entity import SqlEntity
from gda.exceptions import ConfigurationError, SqlError, TransactionStateError


LOG = logging.getLogger(__name__)

TABLE_PREFIX_PATTERN = re.compile(r"[A-Za-z0-9_]*")
NULL_STRINGS = ("", "''", "'NULL'")

# Quoted literals are matched first so that placeholders inside them are left alone
_STATEMENT_TOKENS = re.compile(r"'(?:[^']|'')*'|::|:([A-Za-z_]\w*)|%")

Statement = Union[str, List[str]]


def compile_statement(statement: str, paramstyle: str) -> str:
    """
    Translate `:name` placeholders into the parameter style of a driver.

    Args:
        statement: The statement with `:name` placeholders.
        paramstyle: "named" or "pyformat".

    Returns:
        The statement the driver understands.
    """
    if paramstyle == "named":
        return statement
    if paramstyle != "pyformat":
        raise ConfigurationError(f"Unsupported parameter style: {paramstyle}")

    def replace(match: re.Match) -> str:
        token = match.group(0)
        if match.group(1):
            return f"%({match.group(1)})s"
        if token == "%":
            return "%%"
        return token.replace("%", "%%")

    return _STATEMENT_TOKENS.sub(replace, statement)


def _error_code(exc: Exception) -> Optional[Any]:
    for attr in ("sqlite_errorcode", "pgcode"):
        code = getattr(exc, attr, None)
        if code is not None:
            return code
    if exc.args and isinstance(exc.args[0], int):
        return exc.args[0]
    return None


class SqlConnection:
    """
    DB-API connection with nested transactions and a statement cache.

    Attributes:
        conn: The DB-API connection.
        dialect (SqlDialect): The dialect of the database.
        prefix (str): Prefix prepended to every table name.
        transaction_level (Optional[int]): Number of open transaction scopes, or
            None when the database cannot run transactions.

    Methods:
        from_config: Open a connection from the `sql` configuration section.
        begin_transaction: Open a (nested) transaction scope.
        commit: Close the innermost transaction scope.
        rollback: Roll back the whole unit of work.
        query_data: Run a query and fetch its rows.
        manipulate_data: Run a data manipulation statement.
        escape_params: Normalize string parameters.
        get_last_id: Get the last generated surrogate key of a table.
        close: Release the connection, rolling back an open transaction.
    """

    def __init__(self, conn: Any, dialect: SqlDialect = None, table_prefix: str = ""):
        """
        Wrap a DB-API connection and probe its transaction support.

        Args:
            conn: A DB-API connection in autocommit mode.
            dialect: The dialect of the database. SQLite if not given.
            table_prefix: Prefix prepended to every table name.

        Raises:
            ConfigurationError: If the table prefix contains invalid characters.
        """
        table_prefix = table_prefix or ""
        if not TABLE_PREFIX_PATTERN.fullmatch(table_prefix):
            raise ConfigurationError("The table prefix contains invalid characters!")

        self.conn = conn
        self.dialect: SqlDialect = dialect or SQLiteDialect()
        self.prefix: str = table_prefix
        self._statement_cache: Dict[str, str] = {}
        self.dialect.prepare_connection(conn)
        self.transaction_level: Optional[int] = self._probe_transactions()

    @classmethod
    def from_config(cls, settings: SimpleNamespace) -> "SqlConnection":
        """
        Open a connection from the `sql` configuration section.

        Args:
            settings: The section, holding `dialect`, the connection settings of the
                dialect and an optional `table_prefix`.

        Returns:
            The connection.
        """
        dialect = dialect_factory.create(getattr(settings, "dialect", None) or "sqlite")
        LOG.debug(f"Connecting to {dialect.name} database '{getattr(settings, 'database', None)}'.")
        return cls(dialect.connect(settings), dialect, getattr(settings, "table_prefix", None) or "")

    def __enter__(self) -> "SqlConnection":
        return self

    def __exit__(self, exc_type: Type[Exception], exc_value: Exception, traceback: TracebackType):
        self.close()

    def _probe_transactions(self) -> Optional[int]:
        try:
            self._execute_physical("BEGIN")
            self._execute_physical("ROLLBACK")
        except Exception as exc:  # pylint: disable=broad-exception-caught
            LOG.warning(f"Transactions are disabled, the database refused them: {exc}")
            return None
        return 0

    def _execute_physical(self, statement: str):
        cursor = self.conn.cursor()
        try:
            cursor.execute(statement)
        finally:
            cursor.close()

    @property
    def transactions_enabled(self) -> bool:
        """Whether the database supports transactions."""
        return self.transaction_level is not None

    def begin_transaction(self):
        """
        Open a transaction scope. `BEGIN` is only issued for the outermost scope.
        """
        if self.transaction_level is None:
            return
        if self.transaction_level == 0:
            self._execute_physical("BEGIN")
        self.transaction_level += 1

    def commit(self):
        """
        Close the innermost transaction scope. `COMMIT` is only issued when the
        outermost scope closes.

        Raises:
            TransactionStateError: If there was no open scope. The counter is
                reset and the unit of work rolled back.
        """
        if self.transaction_level is None:
            return
        self.transaction_level -= 1
        if self.transaction_level == 0:
            self._execute_physical("COMMIT")
        elif self.transaction_level < 0:
            level = self.transaction_level
            self.transaction_level = 0
            self.rollback()
            raise TransactionStateError(f"Transaction status is in an undefined condition: {level}")

    def rollback(self):
        """
        Roll back the whole unit of work, whatever the nesting depth, and reset
        the counter. Nothing happens when no scope is open.
        """
        if not self.transaction_level:
            return
        try:
            self._execute_physical("ROLLBACK")
        finally:
            self.transaction_level = 0

    def escape_params(self, params: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Trim string parameters and turn empty strings into NULL.

        Args:
            params: The statement parameters.

        Returns:
            A new dictionary of normalized parameters.
        """
        result = {}
        for name, value in (params or {}).items():
            if isinstance(value, str):
                value = value.strip()
                if value.upper() in NULL_STRINGS:
                    value = None
            result[name] = value
        return result

    def _get_statement(self, statement: Statement) -> str:
        if isinstance(statement, (list, tuple)):
            statement = "\n".join(statement)
        if not isinstance(statement, str):
            raise SqlError("Statement is neither list nor string!")
        statement = statement.strip()
        compiled = self._statement_cache.get(statement)
        if compiled is None:
            compiled = compile_statement(statement, self.dialect.paramstyle)
            self._statement_cache[statement] = compiled
        return compiled

    def _execute(self, statement: Statement, params: Optional[Dict[str, Any]]):
        compiled = self._get_statement(statement)
        cursor = self.conn.cursor()
        LOG.debug(f"Executing: {compiled}")
        try:
            cursor.execute(compiled, self.escape_params(params))
        except Exception as exc:
            cursor.close()
            if not isinstance(exc, self.dialect.driver_error):
                raise
            raise SqlError(f"Statement failed: {exc}", code=_error_code(exc), native_message=str(exc)) from exc
        return cursor

    def query_data(
        self, statement: Statement, params: Optional[Dict[str, Any]] = None, result_class: Type[SqlEntity] = None
    ) -> List[Any]:
        """
        Run a query and fetch all its rows.

        Args:
            statement: The statement, or its lines.
            params: Values of the `:name` placeholders.
            result_class: If given, every row is turned into a clean instance of this
                entity class. Columns are matched to fields by name.

        Returns:
            The rows as tuples, or the entities.
        """
        if result_class is not None and not (isinstance(result_class, type) and issubclass(result_class, SqlEntity)):
            raise ConfigurationError(f"Result class {result_class} is not an SqlEntity!")

        cursor = self._execute(statement, params)
        try:
            rows = cursor.fetchall()
            columns = [column[0] for column in cursor.description or []]
        finally:
            cursor.close()

        if result_class is None:
            return [tuple(row) for row in rows]

        entities = []
        for row in rows:
            values = {}
            for column, value in zip(columns, row):
                field_def = result_class.get_field_definition(column)
                values[field_def.name] = self.dialect.adjust_value_for_entity(field_def, value)
            entities.append(result_class(**values))
        return entities

    def manipulate_data(self, statement: Statement, params: Optional[Dict[str, Any]] = None) -> int:
        """
        Run an `INSERT`, `UPDATE` or `DELETE` statement.

        Args:
            statement: The statement, or its lines.
            params: Values of the `:name` placeholders.

        Returns:
            The number of affected rows.
        """
        cursor = self._execute(statement, params)
        try:
            return cursor.rowcount
        finally:
            cursor.close()

    def get_last_id(self, table_name: str) -> Any:
        """
        Get the surrogate key generated by the last insert into a table.

        Args:
            table_name: The prefixed table name.

        Returns:
            The generated key.
        """
        return self.query_data(self.dialect.last_id_query(table_name))[0][0]

    def close(self):
        """
        Release the driver connection. A transaction still open at this point is
        rolled back and reported.
        """
        if self.conn is None:
            return
        if self.transaction_level:
            LOG.error(
                "There was still a transaction running while disconnecting - rolling back: "
                f"{self.transaction_level}"
            )
            try:
                self.rollback()
            except Exception as exc:  # pylint: disable=broad-exception-caught
                LOG.error(f"While rolling back: {exc}")
        self.conn.close()
        self.conn = None
