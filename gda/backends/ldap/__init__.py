##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
The `ldap` package contains the LDAP directory backend of GDA.

Modules:
    ldap_entity.py: `LdapEntity`, the base class of entities stored as entries.
    ldap_connection.py: `LdapConnection`, the directory primitives over ldap3.
    ldap_action.py: Compensating actions.
    ldap_accessor.py: `GenericLdapDataAccess`, the LDAP data accessor.
"""

from gda.backends.ldap.ldap_accessor import GenericLdapDataAccess
from gda.backends.ldap.ldap_action import LdapAction, LdapActionType
from gda.backends.ldap.ldap_connection import LdapConnection
from gda.backends.ldap.ldap_entity import LdapEntity


__all__ = ["GenericLdapDataAccess", "LdapAction", "LdapActionType", "LdapConnection", "LdapEntity"]
