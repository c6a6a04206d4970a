##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Tests for the `accessor_map.py` module.
"""

from unittest.mock import MagicMock

import pytest

from gda.backends.accessor_map import AccessorMap
from gda.backends.data_accessor import DataAccessor
from gda.backends.ldap.ldap_accessor import GenericLdapDataAccess
from gda.backends.sql.sql_accessor import GenericSqlDataAccess
from gda.backends.sql.sql_entity import SqlEntity
from gda.exceptions import AccessorNotFoundError, InvalidAccessorTypeError
from tests.entity_classes import LdapAccount, LdapStaffAccount, SqlDepartment, SqlProfile


def make_accessor(spec, handling_unit):
    accessor = MagicMock(spec=spec)
    accessor.get_handling_unit.return_value = handling_unit
    return accessor


class TestAccessorMap:
    """
    Tests for registering and resolving accessors.
    """

    def test_resolve_by_parent_chain(self):
        """
        Test that entity classes resolve to the accessor of their closest registered ancestor.
        """
        sql_accessor = make_accessor(GenericSqlDataAccess, SqlEntity)
        ldap_accessor = make_accessor(GenericLdapDataAccess, LdapAccount)
        accessors = AccessorMap()
        accessors.register(sql_accessor)
        accessors.register(ldap_accessor)

        assert accessors.resolve(SqlProfile) is sql_accessor
        assert accessors.resolve(SqlDepartment()) is sql_accessor
        assert accessors.resolve(LdapStaffAccount) is ldap_accessor

    def test_most_specific_registration_wins(self):
        """
        Test that a registration for a subclass takes precedence over its parent.
        """
        general = make_accessor(GenericLdapDataAccess, LdapAccount)
        special = make_accessor(GenericLdapDataAccess, LdapStaffAccount)
        accessors = AccessorMap()
        accessors.register(general)
        accessors.register(special)

        assert accessors.resolve(LdapStaffAccount) is special
        assert accessors.resolve(LdapAccount) is general

    def test_not_found(self):
        """
        Test that resolving a class without accessor raises.
        """
        with pytest.raises(AccessorNotFoundError, match="SqlProfile"):
            AccessorMap().resolve(SqlProfile)

    def test_unregister(self):
        """
        Test that an unregistered accessor is no longer resolved.
        """
        accessor = make_accessor(GenericLdapDataAccess, LdapAccount)
        accessors = AccessorMap()
        accessors.register(accessor)
        accessors.unregister(LdapAccount)

        assert accessors.get_accessors() == {}

    def test_invalid_interface(self):
        """
        Test that the accessor family of a map must be a data accessor class.
        """
        with pytest.raises(InvalidAccessorTypeError):
            AccessorMap(dict)

    def test_handling_unit_must_be_entity(self):
        """
        Test that accessors handling something else than entities are refused.
        """
        with pytest.raises(InvalidAccessorTypeError, match="subtype of Entity class"):
            AccessorMap().register(make_accessor(DataAccessor, dict))

    def test_accessor_must_match_interface(self):
        """
        Test that a map restricted to an accessor family refuses other accessors.
        """
        accessors = AccessorMap(GenericSqlDataAccess)
        with pytest.raises(InvalidAccessorTypeError, match="is not a subclass of GenericSqlDataAccess"):
            accessors.register(make_accessor(GenericLdapDataAccess, LdapAccount))
