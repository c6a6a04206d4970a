##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
The `backends` package contains the accessor contract, the accessor registry and
the backend implementations of GDA.

Modules:
    data_accessor.py: `DataAccessor`, the CRUD and transaction contract.
    accessor_map.py: `AccessorMap`, routing entity classes to accessors.
    routing_access.py: `RoutingDataAccess`, one accessor for all registered ones.

Subpackages:
    sql: The relational database backend.
    ldap: The LDAP directory backend.
"""

from gda.backends.accessor_map import AccessorMap
from gda.backends.data_accessor import DataAccessor
from gda.backends.routing_access import RoutingDataAccess


__all__ = ["AccessorMap", "DataAccessor", "RoutingDataAccess"]
