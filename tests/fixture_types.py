##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
It's hard to type hint pytest fixtures in a way that makes it clear
that the variable being used is a fixture. This module will created
aliases for these fixtures in order to make it easier to track what's
happening.

The types here will be defined as such:
- `FixtureAccessorMap`: A fixture that returns an `AccessorMap`
- `FixtureCallable`: A fixture that returns a function
- `FixtureDict`: A fixture that returns a dictionary
- `FixtureLdapAccess`: A fixture that returns a `GenericLdapDataAccess`
- `FixtureLdapConnection`: A fixture that returns a mocked ldap3 directory connection
- `FixtureList`: A fixture that returns a list
- `FixtureModification`: A fixture that modifies something but never actually
                         returns/yields a value to be used in the test.
- `FixturePolyglotAccess`: A fixture that returns a `GenericPolyglotDataAccess`
- `FixtureSqlAccess`: A fixture that returns a `GenericSqlDataAccess`
- `FixtureSqlConnection`: A fixture that returns a `SqlConnection` to in-memory SQLite
- `FixtureStr`: A fixture that returns a string
"""

from collections.abc import Callable
from typing import Annotated, Any, Dict, List, TypeVar

import pytest

from gda.backends.accessor_map import AccessorMap
from gda.backends.ldap.ldap_accessor import GenericLdapDataAccess
from gda.backends.ldap.ldap_connection import LdapConnection
from gda.backends.sql.sql_accessor import GenericSqlDataAccess
from gda.backends.sql.sql_connection import SqlConnection
from gda.polyglot.polyglot_accessor import GenericPolyglotDataAccess


K = TypeVar("K")
V = TypeVar("V")

FixtureAccessorMap = Annotated[AccessorMap, pytest.fixture]
FixtureCallable = Annotated[Callable, pytest.fixture]
FixtureDict = Annotated[Dict[K, V], pytest.fixture]
FixtureLdapAccess = Annotated[GenericLdapDataAccess, pytest.fixture]
FixtureLdapConnection = Annotated[LdapConnection, pytest.fixture]
FixtureList = Annotated[List[K], pytest.fixture]
FixtureModification = Annotated[Any, pytest.fixture]
FixturePolyglotAccess = Annotated[GenericPolyglotDataAccess, pytest.fixture]
FixtureSqlAccess = Annotated[GenericSqlDataAccess, pytest.fixture]
FixtureSqlConnection = Annotated[SqlConnection, pytest.fixture]
FixtureStr = Annotated[str, pytest.fixture]
