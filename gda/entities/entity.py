##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Module containing the base class of every record handled by GDA.

An entity keeps a deep copy of its field values, the *original*, that is captured
right after construction. Change tracking is done by comparing the live field
values against that snapshot, field by field, restricted to the fields declared
in the field definition registry of the entity class.
"""
import logging
from abc import ABC, abstractmethod
from copy import deepcopy
from typing import Any, Dict, List, Tuple

from gda.entities.field_definition import (
    FieldDefinition,
    collect_field_definitions,
    field_definition_key,
)
from gda.exceptions import FieldDefinitionNotFoundError
from gda.utils import loosely_equal


LOG = logging.getLogger(__name__)


class Entity(ABC):
    """
    Base class for typed records with change-tracked field values.

    Subclasses declare their persisted fields as `FD_<NAME>` class attributes holding
    `FieldDefinition` objects and name their key fields in `get_key_fields`.

    Attributes:
        _field_definitions (Dict[str, FieldDefinition]): Class level registry of field
            definitions keyed by the declaring attribute name.
        _original (Dict[str, Any]): Snapshot of the field values taken at construction.

    Methods:
        template: Create an instance whose given values count as modifications.
        refresh_original: Normalize the field values and capture a new snapshot.
        adjust_field_values: Backend specific normalization hook.
        validate_values: Validation hook run before modifications or keys are read.
        get_modifications: Get the fields that differ from the snapshot.
        get_key_fields: Get the names of the key fields.
        get_key_values: Get the set key values of the live entity.
        get_original_key_values: Get the set key values of the snapshot.
        get_original: Get a new instance built from the snapshot.
        get_values: Get all field values.
        get_value: Read a declared field.
        set_value: Write a declared field.
        has_field: Check whether a field is declared.
        get_field_definitions: Enumerate the field definitions.
        get_field_definition: Look up the definition of a field.
    """

    _field_definitions: Dict[str, FieldDefinition] = {}

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        cls._field_definitions = collect_field_definitions(cls)

    def __init__(self, **values: Any):
        """
        Initialize every declared field to `None`, assign `values` and capture the
        snapshot. A new entity therefore has no modifications.

        Args:
            values: Initial field values keyed by field name.

        Raises:
            FieldDefinitionNotFoundError: If a value is given for an undeclared field.
        """
        for field_def in self.get_field_definitions():
            setattr(self, field_def.name, None)
        for name, value in values.items():
            self.set_value(name, value)
        self._original: Dict[str, Any] = {}
        self.refresh_original()

    def __repr__(self) -> str:
        values = ", ".join(f"{name}={value!r}" for name, value in self.get_values().items())
        return f"{self.__class__.__name__}({values})"

    @classmethod
    def template(cls, **criteria: Any) -> "Entity":
        """
        Create an empty instance and assign `criteria` afterwards, so that they are
        reported by `get_modifications` and act as search predicates or insert values.

        Args:
            criteria: Field values keyed by field name.

        Returns:
            The new entity.
        """
        entity = cls()
        for name, value in criteria.items():
            entity.set_value(name, value)
        return entity

    def refresh_original(self):
        """
        Normalize the field values and capture them as the new snapshot. Called at
        construction and whenever an entity has been loaded from a backend.
        """
        self.adjust_field_values()
        self._original = {
            field_def.name: deepcopy(getattr(self, field_def.name)) for field_def in self.get_field_definitions()
        }

    def adjust_field_values(self):
        """
        Normalize field values after construction, e.g. coerce stored scalars into
        richer types. Must be idempotent. Does nothing by default.
        """

    def validate_values(self):
        """
        Validate the field values. Does nothing by default; subclasses raise
        `EntityValidationError` to abort reads of modifications or keys.
        """

    def get_modifications(self) -> Dict[str, Any]:
        """
        Get the declared fields whose current value is not loosely equal to the
        snapshot value.

        Returns:
            A mapping of field name to current value.
        """
        self.validate_values()
        modifications = {}
        for field_def in self.get_field_definitions():
            current = getattr(self, field_def.name)
            if not loosely_equal(current, self._original.get(field_def.name)):
                modifications[field_def.name] = current
        return modifications

    @classmethod
    @abstractmethod
    def get_key_fields(cls) -> Tuple[str, ...]:
        """
        Get the field names that identify an entity.

        Returns:
            The names of the key fields.
        """
        raise NotImplementedError("Subclasses of `Entity` must implement a `get_key_fields` method.")

    def get_key_values(self) -> Dict[str, Any]:
        """
        Get the values of the key fields that are set on the live entity.

        Returns:
            A mapping of key field name to value, omitting unset key fields.
        """
        self.validate_values()
        result = {}
        for key_field in self.get_key_fields():
            value = getattr(self, key_field)
            if value is not None:
                result[key_field] = value
        return result

    def get_original_key_values(self) -> Dict[str, Any]:
        """
        Get the values of the key fields that are set in the snapshot, i.e. the
        identity the entity had when it was loaded.

        Returns:
            A mapping of key field name to value, omitting unset key fields.
        """
        result = {}
        for key_field in self.get_key_fields():
            value = self._original.get(key_field)
            if value is not None:
                result[key_field] = deepcopy(value)
        return result

    def get_original(self) -> "Entity":
        """
        Build a new instance from a copy of the snapshot.

        Returns:
            An entity of the same class holding the original values.
        """
        return self.__class__(**deepcopy(self._original))

    def get_values(self) -> Dict[str, Any]:
        """
        Get the current values of all declared fields.

        Returns:
            A mapping of field name to value in declaration order.
        """
        return {field_def.name: getattr(self, field_def.name) for field_def in self.get_field_definitions()}

    def get_value(self, name: str) -> Any:
        """
        Read a declared field.

        Args:
            name: The field name.

        Returns:
            The current value of the field.
        """
        return getattr(self, self.get_field_definition(name).name)

    def set_value(self, name: str, value: Any):
        """
        Write a declared field.

        Args:
            name: The field name.
            value: The new value.
        """
        setattr(self, self.get_field_definition(name).name, value)

    @classmethod
    def has_field(cls, name: str) -> bool:
        """
        Check whether the entity class declares a field.

        Args:
            name: The field name.

        Returns:
            True if a field definition exists for `name`.
        """
        return field_definition_key(name) in cls._field_definitions

    @classmethod
    def get_field_definitions(cls) -> List[FieldDefinition]:
        """
        Enumerate the field definitions of the entity class in declaration order.

        Returns:
            The field definitions.
        """
        return list(cls._field_definitions.values())

    @classmethod
    def get_field_definition(cls, name: str) -> FieldDefinition:
        """
        Look up the definition of a field.

        Args:
            name: The field name, in any case.

        Returns:
            The field definition.

        Raises:
            FieldDefinitionNotFoundError: If the class declares no such field.
        """
        try:
            return cls._field_definitions[field_definition_key(name)]
        except KeyError as exc:
            raise FieldDefinitionNotFoundError(
                f"No field definition in entity '{cls.__name__}' found for requested field: {name}"
            ) from exc
