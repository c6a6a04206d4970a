##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Compensating actions recorded by the LDAP accessor while a transaction is open.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from gda.exceptions import LdapError


class LdapActionType(Enum):
    """Mutating primitives of the directory."""

    ENTRY_INSERT = "entryInsert"
    ENTRY_UPDATE = "entryUpdate"
    ENTRY_DELETE = "entryDelete"
    ATTRIBUTE_ADD = "attributeAdd"
    ATTRIBUTE_DELETE = "attributeDelete"
    ATTRIBUTE_REPLACE = "attributeReplace"


@dataclass(frozen=True)
class LdapAction:
    """
    A successful mutating primitive and the data needed to undo it.

    Attributes:
        type: The primitive that was applied.
        dn: The DN of the entry it was applied to.
        entry: Attribute name to values needed to undo the primitive: the pre-image
            for updates, deletes and replaces, the added values for adds. Not
            needed for entry inserts.
    """

    type: LdapActionType
    dn: str
    entry: Optional[Dict[str, List]] = None

    def __post_init__(self):
        if self.type != LdapActionType.ENTRY_INSERT and self.entry is None:
            raise LdapError(f"Entry missing for type {self.type.value}!")

    def __str__(self) -> str:
        return f"LdapAction[type: {self.type.value}; dn: {self.dn}; entry: {self.entry}]"
