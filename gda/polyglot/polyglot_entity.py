##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Logical entities composed of persistent entities stored in different backends.

A polyglot entity class declares its own fields like any entity and, in addition:

- `FIELD_MAPPING`: the mapped persistent entity classes, each with a mapping of
  polyglot field names to the field names of that class. Names not listed are
  assumed identical on both sides. The declaration order is the write order.
- `CONNECTING_ATTRS`: the polyglot field names whose values correlate the
  persistent entities belonging to the same logical entity.
- `REF_<NAME>`: optional `PolyglotReference`s to entities the logical entity
  points at across backends.

```python
class Account(PolyglotEntity):
    FD_PROFILE_ID = FieldDefinition("profile_id", True, PolyglotFieldType.INTEGER)
    FD_UID = FieldDefinition("uid", False, PolyglotFieldType.STRING)

    FIELD_MAPPING = {Profile: {"profile_id": "id"}, Person: {}}
    CONNECTING_ATTRS = ("uid",)
```
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Type

from gda.entities.entity import Entity
from gda.exceptions import PolyglotConfigurationError, PolyglotError


LOG = logging.getLogger(__name__)

REFERENCE_PREFIX = "REF_"


@dataclass(frozen=True)
class PolyglotReference:
    """
    Reference from polyglot fields to the key of another entity class.

    Attributes:
        entity_class: The referenced entity class.
        fields: The polyglot fields holding the key values, in key field order.
    """

    entity_class: Type[Entity]
    fields: Tuple[str, ...]


class PolyglotEntity(Entity):
    """
    Base class of logical entities spanning several backends.

    Attributes:
        FIELD_MAPPING (Dict[Type[Entity], Dict[str, str]]): Mapped persistent classes
            and their polyglot to persistent field name mappings.
        CONNECTING_ATTRS (Tuple[str, ...]): Polyglot fields correlating the persistents.

    Methods:
        add_persistent_entity: Attach a persistent entity.
        clear_persistent_entities: Detach all persistent entities.
        get_persistent_entities: Get the attached persistent entities.
        get_persistent_entity: Get the attached persistent entity of a class.
        amend_missing_persistents: Create the persistents not attached yet.
        fill_from_persistent_entities: Copy persistent values into the polyglot fields.
        update_persistent_entities: Push polyglot modifications into the persistents.
        get_connecting_values: Read the connecting values of a persistent.
        set_connecting_values: Write the connecting values of a persistent.
        get_mapped_entity_classes: Get the mapped persistent classes.
        get_field_mapping: Get the whole field mapping.
        get_field_mapping_for: Get the field mapping of one class.
        get_connecting_attributes: Get the connecting attributes.
        get_mapped_field: Translate a polyglot field name for a class.
        get_strict_mapped_field: Translate a declared polyglot field name for a class.
        get_field_from_mapping: Translate a persistent field name back.
        get_persistent_for_field: Find the first class carrying a field.
        get_polyglot_references: Get the declared references.
        validate_mapping: Check the mapping against the mapped classes.
    """

    FIELD_MAPPING: Dict[Type[Entity], Dict[str, str]] = None
    CONNECTING_ATTRS: Tuple[str, ...] = None

    def __init__(self, **values: Any):
        self._persistent_entities: Dict[Type[Entity], Entity] = {}
        super().__init__(**values)

    #
    # Configuration
    #

    @classmethod
    def get_field_mapping(cls) -> Dict[Type[Entity], Dict[str, str]]:
        """
        Get the field mapping.

        Raises:
            PolyglotConfigurationError: If the mapping is missing or empty.
        """
        mapping = cls.FIELD_MAPPING
        if not isinstance(mapping, dict):
            raise PolyglotConfigurationError(
                f"PolyglotEntity '{cls.__name__}' incorrectly configured - no field found: FIELD_MAPPING"
            )
        if not mapping:
            raise PolyglotConfigurationError(
                f"PolyglotEntity '{cls.__name__}' incorrectly configured - field mapping is empty"
            )
        return mapping

    @classmethod
    def get_connecting_attributes(cls) -> Tuple[str, ...]:
        """
        Get the connecting attributes.

        Raises:
            PolyglotConfigurationError: If they are missing or empty.
        """
        attributes = cls.CONNECTING_ATTRS
        if attributes is None or isinstance(attributes, str):
            raise PolyglotConfigurationError(
                f"PolyglotEntity '{cls.__name__}' incorrectly configured - no field found: CONNECTING_ATTRS"
            )
        if not attributes:
            raise PolyglotConfigurationError(
                f"PolyglotEntity '{cls.__name__}' incorrectly configured - no connecting attributes set."
            )
        return tuple(attributes)

    @classmethod
    def get_mapped_entity_classes(cls) -> List[Type[Entity]]:
        return list(cls.get_field_mapping())

    @classmethod
    def get_field_mapping_for(cls, entity_class: Type[Entity]) -> Dict[str, str]:
        """
        Get the polyglot to persistent field name mapping of one mapped class.

        Raises:
            PolyglotError: If the class is not mapped.
        """
        mapping = cls.get_field_mapping()
        if entity_class not in mapping:
            raise PolyglotError(f"Class {entity_class.__name__} not registered for PolyglotEntity: {cls.__name__}")
        return mapping[entity_class] or {}

    @classmethod
    def get_mapped_field(cls, field_name: str, entity_class: Type[Entity]) -> str:
        return cls.get_field_mapping_for(entity_class).get(field_name, field_name)

    @classmethod
    def get_strict_mapped_field(cls, field_name: str, entity_class: Type[Entity]) -> str:
        """
        Translate a polyglot field name that must be declared on the polyglot class.

        Raises:
            PolyglotError: If the polyglot class declares no such field.
        """
        if not cls.has_field(field_name):
            raise PolyglotError(f"Given field name {field_name} does not exist in PolyglotEntity: {cls.__name__}")
        return cls.get_mapped_field(field_name, entity_class)

    @classmethod
    def get_field_from_mapping(cls, mapped_field: str, entity_class: Type[Entity]) -> str:
        for polyglot_field, persistent_field in cls.get_field_mapping_for(entity_class).items():
            if persistent_field == mapped_field:
                return polyglot_field
        return mapped_field

    @classmethod
    def get_persistent_for_field(cls, field_name: str) -> Type[Entity]:
        """
        Get the first mapped class, in declaration order, carrying a polyglot field.

        Raises:
            PolyglotError: If no mapped class carries the field.
        """
        for entity_class in cls.get_mapped_entity_classes():
            if entity_class.has_field(cls.get_mapped_field(field_name, entity_class)):
                return entity_class
        raise PolyglotError(f"No valid persistent Entity class found for field name {field_name}!")

    @classmethod
    def get_polyglot_references(cls) -> Dict[str, PolyglotReference]:
        return {
            name: getattr(cls, name)
            for name in dir(cls)
            if name.startswith(REFERENCE_PREFIX) and isinstance(getattr(cls, name), PolyglotReference)
        }

    @classmethod
    def get_key_fields(cls) -> Tuple[str, ...]:
        """
        Derive the key fields as the union of the key fields of all mapped classes,
        translated to polyglot field names.

        Raises:
            PolyglotConfigurationError: If a derived key field is not declared on the
                polyglot class.
        """
        result = []
        for entity_class in cls.get_mapped_entity_classes():
            for key_field in entity_class.get_key_fields():
                field = cls.get_field_from_mapping(key_field, entity_class)
                if field not in result:
                    result.append(field)

        for field in result:
            if not cls.has_field(field):
                raise PolyglotConfigurationError(
                    f"PolyglotEntity class {cls.__name__} does not contain required key field: {field}"
                )
        return tuple(result)

    @classmethod
    def validate_mapping(cls):
        """
        Check that every mapped field and every connecting attribute resolves to a
        declared field of each mapped class. Meant to be run once, at start up.

        Raises:
            PolyglotConfigurationError: If the mapping does not fit the mapped classes.
        """
        for entity_class, field_mapping in cls.get_field_mapping().items():
            if not (isinstance(entity_class, type) and issubclass(entity_class, Entity)):
                raise PolyglotConfigurationError(f"Mapped class {entity_class} of {cls.__name__} is not an Entity")
            # polyglot fields may be left out, e.g. a DN only used for connecting
            for polyglot_field, mapped_field in (field_mapping or {}).items():
                if not entity_class.has_field(mapped_field):
                    raise PolyglotConfigurationError(
                        f"Error in field mapping. Mapped field {mapped_field} does not exist in Entity class "
                        f"{entity_class.__name__} for polyglot field {polyglot_field}!"
                    )

        for attribute in cls.get_connecting_attributes():
            for entity_class in cls.get_mapped_entity_classes():
                mapped_attribute = cls.get_mapped_field(attribute, entity_class)
                if not entity_class.has_field(mapped_attribute):
                    raise PolyglotConfigurationError(
                        f"Connecting attribute {attribute} does not exist in mapped Entity class "
                        f"{entity_class.__name__} as {mapped_attribute}!"
                    )
        cls.get_key_fields()

    #
    # Persistent entities
    #

    def add_persistent_entity(self, entity: Entity) -> bool:
        """
        Attach a persistent entity, replacing the one of the same class.

        Returns:
            True if an entity of that class was replaced.

        Raises:
            PolyglotError: If the class of the entity is not mapped.
        """
        entity_class = type(entity)
        if entity_class not in self.get_field_mapping():
            raise PolyglotError(f"Entity class not configured for this PolyglotEntity: {entity_class.__name__}")
        replaced = entity_class in self._persistent_entities
        self._persistent_entities[entity_class] = entity
        return replaced

    def clear_persistent_entities(self):
        self._persistent_entities = {}

    def get_persistent_entities(self) -> List[Entity]:
        """Get the attached persistent entities in mapping declaration order."""
        return [
            self._persistent_entities[entity_class]
            for entity_class in self.get_mapped_entity_classes()
            if entity_class in self._persistent_entities
        ]

    def get_persistent_entity(self, entity_class: Type[Entity]) -> Optional[Entity]:
        return self._persistent_entities.get(entity_class)

    def amend_missing_persistents(self):
        """
        Create an empty persistent for every mapped class not attached yet and
        push the polyglot modifications into all persistents.
        """
        for entity_class in self.get_mapped_entity_classes():
            if entity_class not in self._persistent_entities:
                self._persistent_entities[entity_class] = entity_class()
        self.update_persistent_entities()

    def fill_from_persistent_entities(self):
        """
        Copy the field values of the attached persistents into the polyglot fields.
        Where several persistents carry a field, the last one in mapping order wins.
        """
        for persistent in self.get_persistent_entities():
            entity_class = type(persistent)
            for field_def in persistent.get_field_definitions():
                field = self.get_field_from_mapping(field_def.name, entity_class)
                if self.has_field(field):
                    self.set_value(field, persistent.get_value(field_def.name))

    def update_persistent_entities(self, all_values: bool = False):
        """
        Push field values into the attached persistents, where they carry the field.

        Args:
            all_values: Push every set value instead of only the modifications.
        """
        if all_values:
            values = {name: value for name, value in self.get_values().items() if value is not None}
        else:
            values = self.get_modifications()
        for persistent in self.get_persistent_entities():
            entity_class = type(persistent)
            for field, value in values.items():
                mapped_field = self.get_mapped_field(field, entity_class)
                if persistent.has_field(mapped_field):
                    persistent.set_value(mapped_field, value)

    def get_connecting_values(self, entity_class: Type[Entity]) -> Dict[str, Any]:
        """
        Read the connecting values of the attached persistent of a class.

        Returns:
            Connecting attribute (polyglot name) to value.

        Raises:
            PolyglotError: If no persistent of the class is attached.
        """
        persistent = self.get_persistent_entity(entity_class)
        if persistent is None:
            raise PolyglotError(f"No entity of provided class {entity_class.__name__} found")
        return {
            attribute: persistent.get_value(self.get_mapped_field(attribute, entity_class))
            for attribute in self.get_connecting_attributes()
        }

    def set_connecting_values(self, entity_class: Type[Entity], connecting_values: Dict[str, Any]):
        """
        Write connecting values into the attached persistent of a class.

        Raises:
            PolyglotError: If no persistent of the class is attached or a connecting
                value is missing or None.
        """
        persistent = self.get_persistent_entity(entity_class)
        if persistent is None:
            raise PolyglotError(f"No entity of provided class {entity_class.__name__} found")

        attributes = self.get_connecting_attributes()
        for attribute in attributes:
            if attribute not in connecting_values:
                raise PolyglotError(f"Connecting attribute {attribute} missing in given values map.")
            if connecting_values[attribute] is None:
                raise PolyglotError(f"Value for connecting attribute {attribute} is None!")

        for attribute in attributes:
            persistent.set_value(self.get_mapped_field(attribute, entity_class), connecting_values[attribute])
