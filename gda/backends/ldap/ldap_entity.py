##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Base class for entities stored as entries of an LDAP directory.

Besides the `FD_*` field definitions, LDAP entities declare:

- `RDN_FIELD`: the field forming the relative distinguished name; the single key field.
- `BASE_DN`: the location of the entries relative to the base DN of the accessor.
- `OBJECT_CLASSES`: the object classes of the entries; also used to find them.
- `MEMBER_OF`: DNs of groups every entry is a member of.
"""
import logging
from typing import Optional, Tuple

from gda.entities.entity import Entity
from gda.entities.field_definition import LdapFieldDefinition, LdapFieldType
from gda.exceptions import ConfigurationError


LOG = logging.getLogger(__name__)

DN_ATTR = "dn"


class LdapEntity(Entity):
    """
    Entity persisted as one entry of an LDAP directory. Every LDAP entity has the
    field `dn` holding its distinguished name once it is known.

    Attributes:
        RDN_FIELD (str): Name of the key field.
        BASE_DN (Optional[str]): Location of the entries relative to the accessor base DN.
        OBJECT_CLASSES (Tuple[str, ...]): Object classes of the entries.
        MEMBER_OF (Tuple[str, ...]): DNs of the groups the entries belong to.
    """

    FD_DN = LdapFieldDefinition(DN_ATTR, True, LdapFieldType.DN, attribute=DN_ATTR)

    RDN_FIELD: str = None
    BASE_DN: Optional[str] = None
    OBJECT_CLASSES: Tuple[str, ...] = ()
    MEMBER_OF: Tuple[str, ...] = ()

    @classmethod
    def get_key_fields(cls) -> Tuple[str, ...]:
        """
        Get the key field, the field forming the relative distinguished name.

        Returns:
            A tuple holding the name of `RDN_FIELD`.

        Raises:
            ConfigurationError: If `RDN_FIELD` is missing or names no declared field.
        """
        if not isinstance(cls.RDN_FIELD, str) or not cls.has_field(cls.RDN_FIELD):
            raise ConfigurationError(f"LdapEntity '{cls.__name__}' incorrectly configured - no field found: RDN_FIELD")
        return (cls.get_field_definition(cls.RDN_FIELD).name,)

    @classmethod
    def get_base_dn(cls) -> Optional[str]:
        """
        Returns:
            The base DN relative to the accessor base DN, or None.
        """
        return cls.BASE_DN or None

    @classmethod
    def get_object_classes(cls) -> Tuple[str, ...]:
        """
        Returns:
            The object classes of the entries.

        Raises:
            ConfigurationError: If no object class is declared.
        """
        if not cls.OBJECT_CLASSES or isinstance(cls.OBJECT_CLASSES, str):
            raise ConfigurationError(
                f"LdapEntity '{cls.__name__}' incorrectly configured - no field found: OBJECT_CLASSES"
            )
        return tuple(cls.OBJECT_CLASSES)

    @classmethod
    def get_memberships(cls) -> Tuple[str, ...]:
        """
        Returns:
            The DNs of the groups the entries belong to, possibly none.
        """
        if isinstance(cls.MEMBER_OF, str):
            raise ConfigurationError(f"LdapEntity '{cls.__name__}' incorrectly configured - MEMBER_OF is no list")
        return tuple(cls.MEMBER_OF or ())
