##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Fixtures for the modules in the `polyglot` folder. They combine the SQL and
LDAP fixtures into one accessor map.
"""

import pytest

from gda.backends.accessor_map import AccessorMap
from gda.polyglot.polyglot_accessor import GenericPolyglotDataAccess
from tests.entity_classes import Account
from tests.fixture_types import FixtureAccessorMap, FixtureLdapAccess, FixturePolyglotAccess, FixtureSqlAccess


# pylint: disable=redefined-outer-name


@pytest.fixture
def accessor_map(sql_access: FixtureSqlAccess, ldap_access: FixtureLdapAccess) -> FixtureAccessorMap:
    """
    An accessor map routing SQL entities to `sql_access` and LDAP entities to `ldap_access`.

    Args:
        sql_access: A SQL accessor working on a fresh database.
        ldap_access: An LDAP accessor working on a mocked directory.

    Returns:
        The accessor map.
    """
    accessors = AccessorMap()
    accessors.register(sql_access)
    accessors.register(ldap_access)
    return accessors


@pytest.fixture
def polyglot_access(accessor_map: FixtureAccessorMap) -> FixturePolyglotAccess:
    """
    A polyglot accessor for `Account` entities.

    Args:
        accessor_map: An accessor map holding the SQL and LDAP accessors.

    Returns:
        The polyglot accessor.
    """
    return GenericPolyglotDataAccess(accessor_map, [Account])
