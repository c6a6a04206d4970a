##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
This module defines the abstract base class for all data accessors in GDA.

This module provides the `DataAccessor` class, which outlines the CRUD and
transaction interface every backend implementation (SQL, LDAP, polyglot) must
satisfy. Every accessor is responsible for exactly one entity class, its
*handling unit*, and the subclasses of it.
"""

import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Dict, Generic, Iterator, List, Optional, Type, TypeVar

from gda.entities.entity import Entity


LOG = logging.getLogger(__name__)

T = TypeVar("T", bound=Entity)


class DataAccessor(ABC, Generic[T]):
    """
    Base class for all data accessors supported in GDA.

    Templates are entities used purely to express search criteria: their
    modifications are treated as filter predicates.

    Methods:
        get_handling_unit: Get the entity class this accessor is responsible for.
        begin_transaction: Open a (nested) transaction scope.
        commit: Close the innermost transaction scope.
        rollback: Abort the whole unit of work.
        transaction: Context manager around begin/commit/rollback.
        get_by_id: Retrieve the entity identified by the key values of a template.
        get_by_template: Retrieve all entities matching a template.
        count_by_template: Count the entities matching a template.
        check_existence_by_template: Check whether any entity matches a template.
        insert: Insert an entity.
        update: Update an entity.
        delete: Delete an entity.
        delete_by_template: Delete all entities matching a template.
    """

    @abstractmethod
    def get_handling_unit(self) -> Type[T]:
        """
        Get the entity class this accessor is responsible for.

        Returns:
            The entity class.
        """
        raise NotImplementedError("Subclasses of `DataAccessor` must implement a `get_handling_unit` method.")

    @abstractmethod
    def begin_transaction(self):
        """
        Open a transaction scope. Scopes nest; only the outermost one matters to
        the backend.
        """
        raise NotImplementedError("Subclasses of `DataAccessor` must implement a `begin_transaction` method.")

    @abstractmethod
    def commit(self):
        """
        Close the innermost transaction scope, making the work of the outermost
        scope permanent.
        """
        raise NotImplementedError("Subclasses of `DataAccessor` must implement a `commit` method.")

    @abstractmethod
    def rollback(self):
        """
        Abort the whole unit of work, whatever the nesting depth.
        """
        raise NotImplementedError("Subclasses of `DataAccessor` must implement a `rollback` method.")

    @contextmanager
    def transaction(self) -> Iterator["DataAccessor"]:
        """
        Run a block inside a nested transaction scope. The scope is committed when
        the block finishes and the unit of work is rolled back when it raises.

        Yields:
            This accessor.
        """
        self.begin_transaction()
        try:
            yield self
        except BaseException:
            self.rollback()
            raise
        self.commit()

    @abstractmethod
    def get_by_id(self, template: T) -> Optional[T]:
        """
        Retrieve the entity identified by the key values of a template.

        Args:
            template: An entity carrying the key values.

        Returns:
            The entity if found, None otherwise.
        """
        raise NotImplementedError("Subclasses of `DataAccessor` must implement a `get_by_id` method.")

    @abstractmethod
    def get_by_template(self, template: T, order: Optional[Dict[str, bool]] = None) -> List[T]:
        """
        Retrieve all entities matching a template.

        Args:
            template: An entity whose modifications are the search criteria.
            order: Field names mapped to True for ascending or False for descending order.

        Returns:
            The matching entities, possibly none.
        """
        raise NotImplementedError("Subclasses of `DataAccessor` must implement a `get_by_template` method.")

    @abstractmethod
    def count_by_template(self, template: T) -> int:
        """
        Count the entities matching a template.

        Args:
            template: An entity whose modifications are the search criteria.

        Returns:
            The number of matching entities.
        """
        raise NotImplementedError("Subclasses of `DataAccessor` must implement a `count_by_template` method.")

    def check_existence_by_template(self, template: T) -> bool:
        """
        Check whether any entity matches a template.

        Args:
            template: An entity whose modifications are the search criteria.

        Returns:
            True if at least one entity matches.
        """
        return self.count_by_template(template) > 0

    @abstractmethod
    def insert(self, entity: T) -> T:
        """
        Insert an entity.

        Args:
            entity: The entity to insert; its modifications are the values written.

        Returns:
            The stored entity as loaded back from the backend.
        """
        raise NotImplementedError("Subclasses of `DataAccessor` must implement an `insert` method.")

    @abstractmethod
    def update(self, entity: T) -> bool:
        """
        Write the modifications of an entity.

        Args:
            entity: The modified entity.

        Returns:
            True if the backend changed anything.
        """
        raise NotImplementedError("Subclasses of `DataAccessor` must implement an `update` method.")

    @abstractmethod
    def delete(self, entity: T) -> bool:
        """
        Delete the entity identified by the key values of an entity.

        Args:
            entity: The entity to delete.

        Returns:
            True if something was deleted.
        """
        raise NotImplementedError("Subclasses of `DataAccessor` must implement a `delete` method.")

    @abstractmethod
    def delete_by_template(self, template: T) -> bool:
        """
        Delete all entities matching a template.

        Args:
            template: An entity whose modifications are the search criteria.

        Returns:
            True if something was deleted.
        """
        raise NotImplementedError("Subclasses of `DataAccessor` must implement a `delete_by_template` method.")
