##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
The `sql` package contains the relational database backend of GDA.

Modules:
    sql_entity.py: `SqlEntity`, the base class of entities stored in tables.
    sql_dialects.py: SQL fragments and driver connections per database system.
    dialect_factory.py: Selection of a dialect by name.
    sql_connection.py: `SqlConnection`, nested transactions and statement cache.
    sql_accessor.py: `GenericSqlDataAccess`, the SQL data accessor.
"""

from gda.backends.sql.sql_accessor import GenericSqlDataAccess
from gda.backends.sql.sql_connection import SqlConnection
from gda.backends.sql.sql_entity import ForeignKey, OnDelete, SqlEntity


__all__ = ["ForeignKey", "GenericSqlDataAccess", "OnDelete", "SqlConnection", "SqlEntity"]
