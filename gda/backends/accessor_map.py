##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Registry routing entity classes to the accessors responsible for them.
"""

import logging
from typing import Dict, Type, Union

from gda.backends.data_accessor import DataAccessor
from gda.entities.entity import Entity
from gda.exceptions import AccessorNotFoundError, InvalidAccessorTypeError


LOG = logging.getLogger(__name__)


class AccessorMap:
    """
    Map of entity classes to data accessors.

    An accessor is registered under the entity class it declares as its handling
    unit. Resolution returns the accessor of the most specific registered class:
    the exact class of the request first, then the classes of its parent chain
    in method resolution order.

    Attributes:
        interface (Type[DataAccessor]): The accessor family every registered accessor
            must belong to.

    Methods:
        register: Register an accessor under its handling unit.
        unregister: Remove the accessor registered for an entity class.
        resolve: Find the accessor responsible for an entity class or instance.
        get_accessors: Get all registered accessors.
    """

    def __init__(self, interface: Type[DataAccessor] = DataAccessor):
        """
        Args:
            interface: The accessor family registered accessors must implement.

        Raises:
            InvalidAccessorTypeError: If `interface` is not a `DataAccessor` subclass.
        """
        if not (isinstance(interface, type) and issubclass(interface, DataAccessor)):
            raise InvalidAccessorTypeError(f"{interface} is not a subtype of {DataAccessor.__name__}")
        self.interface = interface
        self._accessors: Dict[Type[Entity], DataAccessor] = {}

    def register(self, accessor: DataAccessor):
        """
        Register an accessor under the entity class it handles. An accessor
        already registered for that class is replaced.

        Args:
            accessor: The accessor to register.

        Raises:
            InvalidAccessorTypeError: If the handling unit is not an `Entity` subclass
                or the accessor does not implement the interface of this map.
        """
        handling_unit = accessor.get_handling_unit()
        if not (isinstance(handling_unit, type) and issubclass(handling_unit, Entity)):
            raise InvalidAccessorTypeError(
                f"Class for accessor type must be subtype of Entity class, which the given class is not: "
                f"{handling_unit}"
            )
        if not isinstance(accessor, self.interface):
            raise InvalidAccessorTypeError(
                f"{accessor.__class__.__name__} is not a subclass of {self.interface.__name__}"
            )
        self._accessors[handling_unit] = accessor
        LOG.debug(f"Registered {accessor.__class__.__name__} for '{handling_unit.__name__}'.")

    def unregister(self, entity_class: Type[Entity]):
        """
        Remove the accessor registered for an entity class, if any.

        Args:
            entity_class: The handling unit of the accessor to remove.
        """
        self._accessors.pop(entity_class, None)

    def resolve(self, entity: Union[Type[Entity], Entity]) -> DataAccessor:
        """
        Find the accessor responsible for an entity class or instance.

        Args:
            entity: An entity class or an entity.

        Returns:
            The accessor registered for the most specific matching class.

        Raises:
            AccessorNotFoundError: If no registered class matches.
        """
        entity_class = entity if isinstance(entity, type) else type(entity)
        for klass in entity_class.__mro__:
            accessor = self._accessors.get(klass)
            if accessor is not None:
                return accessor
        raise AccessorNotFoundError(f"No applicable data accessor found for type: {entity_class.__name__}")

    def get_accessors(self) -> Dict[Type[Entity], DataAccessor]:
        """
        Get all registered accessors.

        Returns:
            A copy of the mapping of handling unit to accessor.
        """
        return dict(self._accessors)
