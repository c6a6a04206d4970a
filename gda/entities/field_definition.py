##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Static metadata describing the persisted fields of an entity class.

Entity classes declare one class attribute per persisted field. The attribute is
named `FD_<FIELD NAME IN UPPER CASE>` and holds a `FieldDefinition` (or one of
its backend specific subclasses):

```python
class Profile(SqlEntity):
    FD_ID = SqlFieldDefinition("id", False, SqlFieldType.INTEGER, default=SqlDefault.SEQUENCE)
    FD_DISPLAY_NAME = SqlFieldDefinition("display_name", True, SqlFieldType.VARCHAR, length=128)
```

The registry of a class is built once, when the class is created, by
`collect_field_definitions`. Lookups afterwards are plain dictionary accesses.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Type


FIELD_DEFINITION_PREFIX = "FD_"


class SqlFieldType(Enum):
    """Semantic types of fields stored in a relational database."""

    VARCHAR = "varchar"
    CHAR = "char"
    URL = "url"
    TEL = "tel"
    EMAIL = "email"
    PASSWORD = "password"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    DATE = "date"
    TIMESTAMP = "timestamp"
    INTEGER = "integer"
    UUID = "uuid"


class SqlDefault(Enum):
    """
    Values the database provides for a column on its own.

    Attributes:
        SEQUENCE: Sequence backed surrogate key.
        AUTO_TIMESTAMP: Timestamp set by the store on every write.
        DEFAULT_TIMESTAMP: Timestamp set by the store on insert only.
    """

    SEQUENCE = "sequence"
    AUTO_TIMESTAMP = "auto_timestamp"
    DEFAULT_TIMESTAMP = "default_timestamp"


class LdapFieldType(Enum):
    """Semantic types of attributes stored in an LDAP directory."""

    STRING = "string"
    URL = "url"
    TEL = "tel"
    EMAIL = "email"
    INTEGER = "integer"
    NUMERIC = "numeric"
    OCTET = "octet"
    BOOLEAN = "boolean"
    DATE = "date"
    TIMESTAMP = "timestamp"
    UUID = "uuid"
    JPEG = "jpeg"
    DN = "dn"
    REFERENCE_DN = "reference_dn"
    PASSWORD = "password"


class PolyglotFieldType(Enum):
    """Semantic types of the logical fields of a polyglot entity."""

    STRING = "string"
    INTEGER = "integer"
    NUMERIC = "numeric"
    BOOLEAN = "boolean"
    DATE = "date"
    TIMESTAMP = "timestamp"
    UUID = "uuid"
    LIST = "list"
    BINARY = "binary"


@dataclass(frozen=True)
class FieldDefinition:
    """
    Description of one persisted field.

    Attributes:
        name: The name of the field on the entity.
        optional: Whether the field may be left empty.
        type: The semantic type of the field.
    """

    name: str
    optional: bool
    type: Enum


@dataclass(frozen=True)
class SqlFieldDefinition(FieldDefinition):
    """
    Field stored in a column of a relational table. The column is named like the field.

    Attributes:
        length: Maximum length or number of digits of the column, if any.
        default: What the database fills in on its own, if anything.
    """

    length: Optional[int] = None
    default: Optional[SqlDefault] = None


@dataclass(frozen=True)
class LdapFieldDefinition(FieldDefinition):
    """
    Field stored in an attribute of a directory entry.

    Attributes:
        attribute: Name of the LDAP attribute. Defaults to the field name.
        is_list: Whether the attribute is multi-valued.
        list_delimiter: If set, the values of a multi-valued attribute are handed
            to the entity as a single string joined with this delimiter.
        ref_entity: For `REFERENCE_DN` fields, the entity class the DN points at.
    """

    attribute: Optional[str] = None
    is_list: bool = False
    list_delimiter: Optional[str] = None
    ref_entity: Optional[Type] = None

    def __post_init__(self):
        if self.attribute is None:
            object.__setattr__(self, "attribute", self.name)


def field_definition_key(field_name: str) -> str:
    """
    Compose the class attribute name holding the definition of a field.

    Args:
        field_name: The field name, in any case.

    Returns:
        The attribute name, e.g. `FD_DISPLAY_NAME` for `display_name`.
    """
    return FIELD_DEFINITION_PREFIX + field_name.upper()


def collect_field_definitions(cls: Type[Any]) -> Dict[str, FieldDefinition]:
    """
    Build the field definition registry of a class from its own `FD_*` attributes
    and those of its bases. Bases come first, then each class in declaration order.
    A redefinition in a subclass replaces the inherited definition.

    Args:
        cls: The class to collect field definitions for.

    Returns:
        An ordered mapping of attribute name to field definition.
    """
    registry: Dict[str, FieldDefinition] = {}
    for klass in reversed(cls.__mro__):
        for attr_name, value in vars(klass).items():
            if attr_name.startswith(FIELD_DEFINITION_PREFIX) and isinstance(value, FieldDefinition):
                registry[attr_name] = value
    return registry
