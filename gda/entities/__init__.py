##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
The `entities` package contains the change-tracking entity model shared by every
backend.

Modules:
    entity.py: The `Entity` base class.
    field_definition.py: Field definition types and the per-class registry.
    ordering.py: In-memory ordering of entities.
"""

from gda.entities.entity import Entity
from gda.entities.field_definition import (
    FieldDefinition,
    LdapFieldDefinition,
    LdapFieldType,
    PolyglotFieldType,
    SqlDefault,
    SqlFieldDefinition,
    SqlFieldType,
)
from gda.entities.ordering import sort_entities


__all__ = [
    "Entity",
    "FieldDefinition",
    "LdapFieldDefinition",
    "LdapFieldType",
    "PolyglotFieldType",
    "SqlDefault",
    "SqlFieldDefinition",
    "SqlFieldType",
    "sort_entities",
]
