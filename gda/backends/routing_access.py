##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Module containing the single entry point applications use for entities of any backend.
"""

import logging
from typing import Dict, List, Optional, Type

from gda.backends.accessor_map import AccessorMap
from gda.backends.data_accessor import DataAccessor
from gda.entities.entity import Entity


LOG = logging.getLogger(__name__)


class RoutingDataAccess(DataAccessor[Entity]):
    """
    Data accessor that forwards every CRUD call to the accessor registered for
    the class of the given entity. Transaction calls are fanned out to every
    registered accessor.

    Attributes:
        accessor_map (AccessorMap): The registry used for routing.
    """

    def __init__(self, accessor_map: AccessorMap):
        self.accessor_map = accessor_map

    def get_handling_unit(self) -> Type[Entity]:
        return Entity

    def begin_transaction(self):
        for accessor in self.accessor_map.get_accessors().values():
            accessor.begin_transaction()

    def commit(self):
        for accessor in self.accessor_map.get_accessors().values():
            accessor.commit()

    def rollback(self):
        for accessor in self.accessor_map.get_accessors().values():
            accessor.rollback()

    def get_by_id(self, template: Entity) -> Optional[Entity]:
        return self.accessor_map.resolve(template).get_by_id(template)

    def get_by_template(self, template: Entity, order: Optional[Dict[str, bool]] = None) -> List[Entity]:
        return self.accessor_map.resolve(template).get_by_template(template, order)

    def count_by_template(self, template: Entity) -> int:
        return self.accessor_map.resolve(template).count_by_template(template)

    def check_existence_by_template(self, template: Entity) -> bool:
        return self.accessor_map.resolve(template).check_existence_by_template(template)

    def insert(self, entity: Entity) -> Entity:
        return self.accessor_map.resolve(entity).insert(entity)

    def update(self, entity: Entity) -> bool:
        return self.accessor_map.resolve(entity).update(entity)

    def delete(self, entity: Entity) -> bool:
        return self.accessor_map.resolve(entity).delete(entity)

    def delete_by_template(self, template: Entity) -> bool:
        return self.accessor_map.resolve(template).delete_by_template(template)
