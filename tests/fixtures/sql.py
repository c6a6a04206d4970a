##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Fixtures for the modules in the `backends/sql` folder. Every test gets its own
in-memory SQLite database holding the schema of `tests.entity_classes`.
"""

from types import SimpleNamespace

import pytest

from gda.backends.sql.sql_accessor import GenericSqlDataAccess
from gda.backends.sql.sql_connection import SqlConnection
from gda.backends.sql.sql_dialects import SQLiteDialect
from tests.entity_classes import SQL_SCHEMA, SqlDepartment
from tests.fixture_types import FixtureList, FixtureSqlAccess, FixtureSqlConnection


# pylint: disable=redefined-outer-name


@pytest.fixture
def sql_connection() -> FixtureSqlConnection:
    """
    A connection to a fresh in-memory SQLite database with the test schema.

    Yields:
        The connection; it is closed after the test.
    """
    dialect = SQLiteDialect()
    connection = SqlConnection(dialect.connect(SimpleNamespace(database=":memory:")), dialect)
    for statement in SQL_SCHEMA:
        connection.manipulate_data(statement)
    yield connection
    connection.close()


@pytest.fixture
def sql_access(sql_connection: FixtureSqlConnection) -> FixtureSqlAccess:
    """
    A SQL accessor working on the `sql_connection` fixture.

    Args:
        sql_connection: A connection to a fresh in-memory SQLite database.

    Returns:
        The accessor.
    """
    return GenericSqlDataAccess(sql_connection)


@pytest.fixture
def executed_statements(sql_connection: FixtureSqlConnection) -> FixtureList[str]:
    """
    Record every statement SQLite executes from now on.

    Args:
        sql_connection: A connection to a fresh in-memory SQLite database.

    Returns:
        The list the statements are appended to.
    """
    statements = []
    sql_connection.conn.set_trace_callback(statements.append)
    yield statements
    if sql_connection.conn is not None:
        sql_connection.conn.set_trace_callback(None)


@pytest.fixture
def department(sql_access: FixtureSqlAccess) -> SqlDepartment:
    """
    A department stored in the database.

    Args:
        sql_access: A SQL accessor working on a fresh database.

    Returns:
        The stored department.
    """
    return sql_access.insert(SqlDepartment.template(code="IT", name="Information Technology"))
