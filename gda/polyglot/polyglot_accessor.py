##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Data accessor for polyglot entities.

`GenericPolyglotDataAccess` has no store of its own. It resolves the accessor of
every persistent entity class mapped by a polyglot entity from an `AccessorMap`,
joins the persistents of one logical entity through their connecting values and
coordinates the transactions of the accessors it writes to.

During a write, every accessor fetched for update gets a nested transaction
opened and is remembered. At the end of the write all remembered accessors are
committed; if anything fails on the way, all of them are rolled back and the
error is re-raised.
"""

import logging
from copy import deepcopy
from typing import Dict, Iterable, List, Optional, Type

from gda.backends.accessor_map import AccessorMap
from gda.backends.data_accessor import DataAccessor
from gda.entities.entity import Entity
from gda.entities.ordering import sort_entities
from gda.exceptions import (
    DataCorruptedError,
    InvalidKeyValuesError,
    PolyglotConfigurationError,
    PolyglotError,
    ReferenceIntegrityError,
)
from gda.polyglot.polyglot_entity import PolyglotEntity


LOG = logging.getLogger(__name__)


class GenericPolyglotDataAccess(DataAccessor[PolyglotEntity]):
    """
    Coordinator of the accessors of the persistent entities behind polyglot entities.

    Attributes:
        accessor_map (AccessorMap): Where the accessors of the persistent classes are found.
        open_accessors (List[DataAccessor]): Accessors with a transaction opened by the
            current write.

    Methods:
        get_accessor: Resolve the accessor of a persistent entity, optionally for update.
        check_polyglot_references: Verify the references of an entity before inserting.
    """

    def __init__(self, accessor_map: AccessorMap, entity_classes: Iterable[Type[PolyglotEntity]] = ()):
        """
        Args:
            accessor_map: Where the accessors of the persistent classes are found.
            entity_classes: Polyglot entity classes whose mapping is validated up front.

        Raises:
            PolyglotConfigurationError: If a mapping does not fit its mapped classes.
        """
        self.accessor_map: AccessorMap = accessor_map
        self.open_accessors: List[DataAccessor] = []
        for entity_class in entity_classes:
            if not (isinstance(entity_class, type) and issubclass(entity_class, PolyglotEntity)):
                raise PolyglotConfigurationError(f"{entity_class} is not a PolyglotEntity class")
            entity_class.validate_mapping()
            LOG.debug(f"Validated polyglot mapping of '{entity_class.__name__}'.")

    def get_handling_unit(self) -> Type[PolyglotEntity]:
        return PolyglotEntity

    #
    # Transactions of the involved accessors
    #

    def begin_transaction(self):
        """Transactions are opened on the involved accessors once they are written to."""

    def commit(self):
        """
        Commit every accessor opened for update and forget them. If a commit fails,
        that accessor and the ones not committed yet stay open for `rollback`.
        """
        while self.open_accessors:
            self.open_accessors[0].commit()
            self.open_accessors.pop(0)

    def rollback(self):
        """Roll back every accessor opened for update and forget them."""
        accessors, self.open_accessors = self.open_accessors, []
        rolled_back = []
        for accessor in accessors:
            # a rollback aborts all nesting levels at once
            if any(accessor is done for done in rolled_back):
                continue
            rolled_back.append(accessor)
            accessor.rollback()

    def get_accessor(self, entity: Entity, for_update: bool = False) -> DataAccessor:
        """
        Resolve the accessor of a persistent entity.

        Args:
            entity: The persistent entity.
            for_update: Open a nested transaction on the accessor and remember it
                for the commit or rollback at the end of the write.

        Returns:
            The accessor.
        """
        accessor = self.accessor_map.resolve(entity)
        if for_update:
            accessor.begin_transaction()
            self.open_accessors.append(accessor)
        return accessor

    def _write(self, operation, entity: PolyglotEntity):
        try:
            result = operation(entity)
            self.commit()
        except BaseException:
            LOG.error(f"Polyglot write failed for {type(entity).__name__}, rolling back involved accessors.")
            self.rollback()
            raise
        return result

    @staticmethod
    def _check_polyglot(entity: Entity):
        if not isinstance(entity, PolyglotEntity):
            raise PolyglotError(f"PolyglotEntity expected, received: {type(entity).__name__}")

    #
    # Reads
    #

    def get_by_id(self, template: PolyglotEntity) -> Optional[PolyglotEntity]:
        """
        Retrieve the logical entity identified by the key values of a template.

        Persistents whose key values are complete are read by id. The others are
        found through the connecting values of the first persistent read and must
        match exactly once.

        Returns:
            The entity, or None if any of its persistents does not exist.

        Raises:
            InvalidKeyValuesError: If no persistent has complete key values.
            DataCorruptedError: If a persistent is matched more than once.
        """
        self._check_polyglot(template)
        # probes must not leak into the caller's template
        template = deepcopy(template)
        template.amend_missing_persistents()

        result = type(template)()
        connecting_values = None
        missing = []
        for persistent in template.get_persistent_entities():
            if len(persistent.get_key_values()) == len(persistent.get_key_fields()):
                received = self.get_accessor(persistent).get_by_id(persistent)
                if received is None:
                    return None
                result.add_persistent_entity(received)
                if connecting_values is None:
                    connecting_values = result.get_connecting_values(type(received))
            else:
                missing.append(persistent)

        if missing:
            if connecting_values is None:
                raise InvalidKeyValuesError(
                    f"Couldn't find all persistent entries by key and no connecting values available! "
                    f"{type(template).__name__}"
                )
            for persistent in missing:
                template.set_connecting_values(type(persistent), connecting_values)
                received = self.get_accessor(persistent).get_by_template(persistent)
                if not received:
                    return None
                if len(received) > 1:
                    raise DataCorruptedError(
                        "Found more than one entry with given key and connecting value combination!"
                    )
                result.add_persistent_entity(received[0])

        result.fill_from_persistent_entities()
        result.refresh_original()
        return result

    def get_by_template(
        self, template: PolyglotEntity, order: Optional[Dict[str, bool]] = None
    ) -> List[PolyglotEntity]:
        """
        Retrieve the logical entities matching a template.

        The mapped class with the fewest candidates under the template is read
        first. Every candidate is then joined with the persistents of the other
        classes found through its connecting values. Candidates missing a
        persistent of any class are dropped.

        Args:
            template: The template.
            order: Polyglot field names mapped to True for ascending order. Missing
                values come first in either direction.

        Returns:
            The joined entities.

        Raises:
            DataCorruptedError: If a candidate is joined with more than one persistent of a class.
            PolyglotError: If the order names unknown fields or values that cannot be ordered.
        """
        self._check_polyglot(template)
        polyglot_class = type(template)
        for field in order or {}:
            if not polyglot_class.has_field(field):
                raise PolyglotError(
                    f"Property for ordering provided that does not exist in {polyglot_class.__name__}: {field}"
                )

        template = deepcopy(template)
        template.amend_missing_persistents()
        persistents = template.get_persistent_entities()
        if len(persistents) != len(template.get_mapped_entity_classes()):
            raise PolyglotError(
                "Given polyglot template does not contain expected amount of mapped persistent entities."
            )

        min_amount = None
        selected = None
        for persistent in persistents:
            current = self.get_accessor(persistent).count_by_template(persistent)
            if min_amount is None or current < min_amount:
                min_amount = current
                selected = persistent
        if not min_amount:
            return []
        LOG.debug(f"Starting polyglot search with {type(selected).__name__} ({min_amount} candidates).")

        result = []
        for candidate in self.get_accessor(selected).get_by_template(selected):
            current = polyglot_class()
            current.add_persistent_entity(candidate)
            connecting_values = current.get_connecting_values(type(candidate))

            complete = True
            for persistent in persistents:
                if persistent is selected:
                    continue
                template.set_connecting_values(type(persistent), connecting_values)
                connected = self.get_accessor(persistent).get_by_template(persistent)
                if not connected:
                    complete = False
                    break
                if len(connected) > 1:
                    raise DataCorruptedError(
                        "Found more than one persistent Entity despite using connection attributes!"
                    )
                current.add_persistent_entity(connected[0])

            if complete:
                current.fill_from_persistent_entities()
                current.refresh_original()
                result.append(current)

        if order:
            result = sort_entities(result, order, PolyglotError)
        return result

    def count_by_template(self, template: PolyglotEntity) -> int:
        return len(self.get_by_template(template))

    #
    # Writes
    #

    def check_polyglot_references(self, entity: PolyglotEntity):
        """
        Verify that every reference whose fields were modified points at an
        existing entity.

        Raises:
            PolyglotConfigurationError: If the fields of a reference do not match the
                key fields of the referenced class.
            ReferenceIntegrityError: If a referenced entity does not exist.
        """
        modifications = entity.get_modifications()
        for name, reference in entity.get_polyglot_references().items():
            if not any(field in modifications for field in reference.fields):
                continue
            key_fields = reference.entity_class.get_key_fields()
            if len(key_fields) != len(reference.fields):
                raise PolyglotConfigurationError(f"Number of key fields and ref fields do not match for {name}!")
            ref_template = reference.entity_class.template(
                **{key_field: entity.get_value(field) for key_field, field in zip(key_fields, reference.fields)}
            )
            if not self.get_accessor(ref_template).check_existence_by_template(ref_template):
                raise ReferenceIntegrityError(
                    f"Values of {name} do not reference an existing {reference.entity_class.__name__}."
                )

    def insert(self, entity: PolyglotEntity) -> PolyglotEntity:
        """
        Insert the persistents of a logical entity, in mapping declaration order.

        The connecting values of the first persistent written are propagated to all
        following ones. A persistent whose key values are complete and that already
        exists in its backend is adopted instead of inserted.

        Returns:
            The entity, filled from the stored persistents.

        Raises:
            ReferenceIntegrityError: If a modified reference points nowhere.
        """
        self._check_polyglot(entity)
        self.check_polyglot_references(entity)
        return self._write(self._insert, entity)

    def _insert(self, entity: PolyglotEntity) -> PolyglotEntity:
        entity.amend_missing_persistents()

        connecting_values = None
        for persistent in entity.get_persistent_entities():
            entity_class = type(persistent)
            if connecting_values is not None:
                entity.set_connecting_values(entity_class, connecting_values)

            accessor = self.get_accessor(persistent, True)
            existing = None
            if len(persistent.get_key_values()) == len(persistent.get_key_fields()):
                existing = accessor.get_by_id(persistent)
            if existing is not None:
                LOG.info(f"Adopting existing {entity_class.__name__} {existing.get_key_values()}.")
                stored = existing
            else:
                stored = accessor.insert(persistent)
            entity.add_persistent_entity(stored)

            if connecting_values is None:
                connecting_values = entity.get_connecting_values(entity_class)

        entity.fill_from_persistent_entities()
        entity.refresh_original()
        return entity

    def update(self, entity: PolyglotEntity) -> bool:
        """
        Push the modifications of a logical entity into its persistents and update them.

        Returns:
            True if any persistent was updated.

        Raises:
            PolyglotError: If the entity holds no persistents.
        """
        self._check_polyglot(entity)
        if not entity.get_persistent_entities():
            raise PolyglotError("Given PolyglotEntity did not contain any persistents!")
        return self._write(self._update, entity)

    def _update(self, entity: PolyglotEntity) -> bool:
        entity.update_persistent_entities()
        updated = False
        for persistent in entity.get_persistent_entities():
            updated = self.get_accessor(persistent, True).update(persistent) or updated
        for persistent in entity.get_persistent_entities():
            persistent.refresh_original()
        entity.refresh_original()
        return updated

    def delete(self, entity: PolyglotEntity) -> bool:
        """
        Delete the persistents of a logical entity.

        Returns:
            True if every persistent was deleted.

        Raises:
            InvalidKeyValuesError: If not all key fields of the entity are set.
        """
        self._check_polyglot(entity)
        key_fields = entity.get_key_fields()
        key_values = entity.get_key_values()
        if len(key_fields) != len(key_values):
            raise InvalidKeyValuesError(
                f"Not all key fields have been set to delete: {[key for key in key_fields if key not in key_values]}"
            )
        return self._write(self._delete, entity)

    def _delete(self, entity: PolyglotEntity) -> bool:
        if len(entity.get_persistent_entities()) != len(entity.get_mapped_entity_classes()):
            entity.amend_missing_persistents()
        entity.update_persistent_entities(all_values=True)
        deleted_all = True
        for persistent in entity.get_persistent_entities():
            deleted_all = self.get_accessor(persistent, True).delete(persistent) and deleted_all
        return deleted_all

    def delete_by_template(self, template: PolyglotEntity) -> bool:
        """
        Delete every logical entity matching a template, one by one. Deleting through
        the accessors directly would hit persistents matching only one backend.

        Returns:
            True if every matching entity was deleted completely.
        """
        self._check_polyglot(template)
        deleted_all = True
        for entity in self.get_by_template(template):
            deleted_all = self.delete(entity) and deleted_all
        return deleted_all
