##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Base class for entities stored as rows of a relational table.

Besides the `FD_*` field definitions, SQL entities declare their constraints as
class attributes:

- `CO_PK_<NAME>`: the primary key, a tuple of one or more column names. Exactly
  one primary key must be declared.
- `CO_FK_<NAME>`: foreign keys, as `ForeignKey` objects.
- `TABLE_NAME`: the table name; defaults to the class name.
- `DEFAULT_ORDERING`: column name mapped to True (ascending) or False (descending).
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional, Tuple, Type
from uuid import UUID

from gda.entities.entity import Entity
from gda.entities.field_definition import SqlDefault, SqlFieldType
from gda.exceptions import ConfigurationError


LOG = logging.getLogger(__name__)

PRIMARY_KEY_PREFIX = "CO_PK_"
FOREIGN_KEY_PREFIX = "CO_FK_"
MAX_SEQUENCE_VALUE = 9999999999


class OnDelete(Enum):
    """Referential actions of foreign keys."""

    CASCADE = "CASCADE"
    SET_NULL = "SET NULL"


@dataclass(frozen=True)
class ForeignKey:
    """
    Foreign key constraint of a table.

    Attributes:
        columns: The referencing columns.
        referenced_table: The referenced table.
        referenced_columns: The referenced columns.
        on_delete: What the database does when the referenced row is deleted.
    """

    columns: Tuple[str, ...]
    referenced_table: str
    referenced_columns: Tuple[str, ...]
    on_delete: Optional[OnDelete] = None


class SqlEntity(Entity):
    """
    Entity persisted as one row of a relational table.

    Attributes:
        TABLE_NAME (Optional[str]): Name of the table without prefix.
        DEFAULT_ORDERING (Optional[Dict[str, bool]]): Ordering used when a query
            requests none.
    """

    TABLE_NAME: Optional[str] = None
    DEFAULT_ORDERING: Optional[Dict[str, bool]] = None

    def adjust_field_values(self):
        """
        Coerce stored representations of booleans and UUIDs into `bool` and `UUID`.
        """
        for field_def in self.get_field_definitions():
            value = getattr(self, field_def.name)
            if value is None:
                continue
            if field_def.type == SqlFieldType.BOOLEAN and not isinstance(value, bool):
                if isinstance(value, str):
                    value = value.strip().lower() in ("1", "true")
                else:
                    value = int(value) == 1
                setattr(self, field_def.name, value)
            elif field_def.type == SqlFieldType.UUID and isinstance(value, str):
                setattr(self, field_def.name, UUID(value))

    @classmethod
    def get_table_name(cls) -> str:
        """
        Get the table name of the entity class, without any connection prefix.

        Returns:
            `TABLE_NAME` if declared, else the class name.
        """
        return cls.TABLE_NAME or cls.__name__

    @classmethod
    def get_key_fields(cls) -> Tuple[str, ...]:
        """
        Get the primary key columns from the single `CO_PK_*` declaration.

        Returns:
            The primary key column names.

        Raises:
            ConfigurationError: If not exactly one primary key is declared.
        """
        primary_keys = [name for name in dir(cls) if name.startswith(PRIMARY_KEY_PREFIX)]
        if len(primary_keys) != 1:
            raise ConfigurationError(
                f"More or less than one primary key defined in '{cls.__name__}': {len(primary_keys)}"
            )
        columns = getattr(cls, primary_keys[0])
        if isinstance(columns, str):
            columns = (columns,)
        if not columns:
            raise ConfigurationError(f"Primary key '{primary_keys[0]}' of '{cls.__name__}' names no column")
        return tuple(columns)

    @classmethod
    def get_foreign_key_definitions(cls) -> Dict[str, ForeignKey]:
        """
        Get the foreign keys declared by the entity class.

        Returns:
            The `CO_FK_*` declarations keyed by attribute name.
        """
        return {
            name: getattr(cls, name)
            for name in dir(cls)
            if name.startswith(FOREIGN_KEY_PREFIX) and isinstance(getattr(cls, name), ForeignKey)
        }

    @classmethod
    def get_referenced_tables(cls) -> List[str]:
        """
        Get the other tables referenced by foreign keys of this entity class.

        Returns:
            The referenced table names, each once, excluding the own table.
        """
        result = []
        for foreign_key in cls.get_foreign_key_definitions().values():
            table = foreign_key.referenced_table
            if table != cls.get_table_name() and table not in result:
                result.append(table)
        return result

    @classmethod
    def get_default_ordering(cls) -> Optional[Dict[str, bool]]:
        """
        Get the ordering used when a query requests none.

        Returns:
            The default ordering or None.

        Raises:
            ConfigurationError: If `DEFAULT_ORDERING` is not a mapping.
        """
        if not cls.DEFAULT_ORDERING:
            return None
        if not isinstance(cls.DEFAULT_ORDERING, dict):
            raise ConfigurationError(f"Entity '{cls.__name__}' has a malformed DEFAULT_ORDERING")
        return dict(cls.DEFAULT_ORDERING)


def get_sequences(entity_classes: Iterable[Type[SqlEntity]]) -> Dict[str, int]:
    """
    Collect the sequences backing surrogate keys of the given entity classes, e.g.
    to create them in a fresh database.

    Args:
        entity_classes: The SQL entity classes to inspect.

    Returns:
        Table name mapped to the largest value its sequence may produce.
    """
    sequences = {}
    for entity_class in entity_classes:
        for field_def in entity_class.get_field_definitions():
            if getattr(field_def, "default", None) == SqlDefault.SEQUENCE:
                length = getattr(field_def, "length", None)
                sequences[entity_class.get_table_name()] = MAX_SEQUENCE_VALUE if length is None else 10**length - 1
    return sequences
