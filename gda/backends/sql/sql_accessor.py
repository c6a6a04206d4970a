##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Generic data accessor for entities stored in a relational database.

This module defines `GenericSqlDataAccess`, which builds parameterized SQL
statements from the field definitions and modifications of `SqlEntity`
instances and runs them through a `SqlConnection`. Applications subclass it to
add their own queries and to restrict writes in `check_entity_permission`.

See also:
    - gda.backends.sql.sql_connection: Nested transactions and statement cache
    - gda.backends.sql.sql_entity: Table and constraint declarations
"""

import logging
from typing import Any, Dict, List, Optional, Type

from gda.backends.data_accessor import DataAccessor
from gda.backends.sql.sql_connection import SqlConnection
from gda.backends.sql.sql_entity import SqlEntity
from gda.entities.field_definition import FieldDefinition, SqlDefault, SqlFieldType
from gda.exceptions import DataCorruptedError, InvalidKeyValuesError


LOG = logging.getLogger(__name__)


class GenericSqlDataAccess(DataAccessor[SqlEntity]):
    """
    Data accessor for `SqlEntity` classes.

    Templates are turned into `WHERE` clauses with one equality predicate per
    modified field. Date fields travel as `YYYY-MM-DD` strings and are converted
    by the database; fields with an automatic timestamp default are set by the
    database on write.

    Attributes:
        connection (SqlConnection): The connection statements are run on.

    Methods:
        check_entity_permission: Hook to refuse writes of an entity.
        get_by_id: Retrieve the entity identified by its primary key.
        get_by_template: Retrieve all entities matching a template.
        count_by_template: Count the entities matching a template.
        insert: Insert an entity and return it as stored.
        update: Write the modifications of an entity.
        delete: Delete the entity identified by its primary key.
        delete_by_template: Delete all entities matching a template.
    """

    KEY_PARAM_PREFIX = "old_"

    def __init__(self, connection: SqlConnection):
        """
        Args:
            connection: The connection statements are run on.
        """
        self.connection: SqlConnection = connection

    def get_handling_unit(self) -> Type[SqlEntity]:
        return SqlEntity

    def begin_transaction(self):
        self.connection.begin_transaction()

    def commit(self):
        self.connection.commit()

    def rollback(self):
        self.connection.rollback()

    def check_entity_permission(self, entity: SqlEntity):
        """
        Hook run before every write. Raise to refuse the write; allows everything
        by default.

        Args:
            entity: The entity about to be written.
        """

    def get_table(self, entity_class: Type[SqlEntity]) -> str:
        """
        Get the table of an entity class including the table prefix of the connection.

        Args:
            entity_class: The entity class.

        Returns:
            The prefixed table name.
        """
        return self.connection.prefix + entity_class.get_table_name()

    def _value_expression(self, field_def: FieldDefinition, prefix: str = "") -> str:
        placeholder = f":{prefix}{field_def.name}"
        if field_def.type == SqlFieldType.DATE:
            return self.connection.dialect.to_date(placeholder)
        return placeholder

    def _create_params(self, entity_class: Type[SqlEntity], values: Dict[str, Any], prefix: str = "") -> Dict:
        params = {}
        for name, value in values.items():
            field_def = entity_class.get_field_definition(name)
            params[f"{prefix}{field_def.name}"] = self.connection.dialect.adjust_value_for_db(field_def, value)
        return params

    def _automatic_fields(self, entity_class: Type[SqlEntity], for_update: bool = False) -> List[str]:
        automatic = (SqlDefault.AUTO_TIMESTAMP,)
        if not for_update:
            automatic += (SqlDefault.DEFAULT_TIMESTAMP,)
        return [
            field_def.name
            for field_def in entity_class.get_field_definitions()
            if getattr(field_def, "default", None) in automatic
        ]

    def _select_columns(self, entity_class: Type[SqlEntity]) -> List[str]:
        columns = []
        for field_def in entity_class.get_field_definitions():
            if field_def.type == SqlFieldType.DATE:
                columns.append(f"{self.connection.dialect.to_char(field_def.name)} AS {field_def.name}")
            else:
                columns.append(field_def.name)
        return columns

    def _where(self, entity_class: Type[SqlEntity], search_values: Dict[str, Any]) -> Optional[str]:
        predicates = []
        for name in search_values:
            field_def = entity_class.get_field_definition(name)
            if search_values[name] is None:
                predicates.append(f"{field_def.name} IS NULL")
            else:
                predicates.append(f"{field_def.name}={self._value_expression(field_def)}")
        if not predicates:
            return None
        return "WHERE " + "\n  AND ".join(predicates)

    def _search_params(self, entity_class: Type[SqlEntity], search_values: Dict[str, Any]) -> Dict:
        return self._create_params(entity_class, {k: v for k, v in search_values.items() if v is not None})

    def _extract_id_template(self, entity: SqlEntity) -> SqlEntity:
        key_values = entity.get_key_values()
        missing = [key for key in entity.get_key_fields() if key not in key_values]
        if missing:
            raise InvalidKeyValuesError(
                f"Key values don't match expected key fields of '{type(entity).__name__}', missing: {missing}"
            )
        return type(entity).template(**key_values)

    def _select_by_template(self, template: SqlEntity, count: bool = False, order: Dict[str, bool] = None):
        entity_class = type(template)
        search_values = template.get_modifications()

        stmt = []
        stmt.append("SELECT " + ("count(*)" if count else "\n     , ".join(self._select_columns(entity_class))))
        stmt.append("FROM " + self.get_table(entity_class))
        where = self._where(entity_class, search_values)
        if where:
            stmt.append(where)

        if not count:
            if order is None:
                order = entity_class.get_default_ordering()
            if order:
                stmt.append(
                    "ORDER BY "
                    + ", ".join(
                        f"{entity_class.get_field_definition(name).name} {'ASC' if ascending else 'DESC'}"
                        for name, ascending in order.items()
                    )
                )

        params = self._search_params(entity_class, search_values)
        if count:
            # count(*) always yields exactly one row with one column
            return self.connection.query_data(stmt, params)[0][0]
        return self.connection.query_data(stmt, params, entity_class)

    def get_by_id(self, template: SqlEntity) -> Optional[SqlEntity]:
        """
        Retrieve the entity identified by the primary key values of a template.

        Args:
            template: An entity carrying every primary key value.

        Returns:
            The entity if found, None otherwise.

        Raises:
            InvalidKeyValuesError: If a primary key value is missing.
            DataCorruptedError: If more than one row carries the key.
        """
        result = self.get_by_template(self._extract_id_template(template))
        if not result:
            return None
        if len(result) > 1:
            raise DataCorruptedError(
                f"Database corrupted - more than one entry with the same ID found of type: {type(template).__name__}"
            )
        return result[0]

    def get_by_template(self, template: SqlEntity, order: Optional[Dict[str, bool]] = None) -> List[SqlEntity]:
        return self._select_by_template(template, False, order)

    def count_by_template(self, template: SqlEntity) -> int:
        return int(self._select_by_template(template, True))

    def insert(self, entity: SqlEntity) -> SqlEntity:
        """
        Insert the modifications of an entity. A single unset primary key column is
        filled from the sequence of the table.

        Args:
            entity: The entity to insert.

        Returns:
            The row as stored, with the values the database filled in.
        """
        self.check_entity_permission(entity)

        entity_class = type(entity)
        table = self.get_table(entity_class)
        automatic = self._automatic_fields(entity_class)
        values = {name: value for name, value in entity.get_modifications().items() if name not in automatic}

        columns = {name: self._value_expression(entity_class.get_field_definition(name)) for name in values}
        for name in automatic:
            columns[name] = self.connection.dialect.timestamp()

        if columns:
            stmt = f"INSERT INTO {table}({','.join(columns)})\nVALUES ({','.join(columns.values())})"
        else:
            stmt = f"INSERT INTO {table} DEFAULT VALUES"

        with self.transaction():
            self.connection.manipulate_data(stmt, self._create_params(entity_class, values))

            key_fields = entity_class.get_key_fields()
            if len(key_fields) == 1 and getattr(entity, key_fields[0]) is None:
                setattr(entity, key_fields[0], self.connection.get_last_id(table))

            LOG.info(f"Inserted into '{table}': {entity.get_key_values()}")
            return self.get_by_id(entity)

    def update(self, entity: SqlEntity) -> bool:
        """
        Write the modifications of an entity to the row identified by its original
        primary key values.

        Args:
            entity: The modified entity.

        Returns:
            False if there was nothing to write or no row matched, True otherwise.

        Raises:
            InvalidKeyValuesError: If the entity was not loaded with all key values.
        """
        self.check_entity_permission(entity)

        modifications = entity.get_modifications()
        if not modifications:
            return False

        entity_class = type(entity)
        key_fields = entity_class.get_key_fields()
        key_values = entity.get_original_key_values()
        missing = [key for key in key_fields if key not in key_values]
        if missing:
            raise InvalidKeyValuesError(
                f"Null as key value provided for {missing}! Was this really a loaded entity from the database?"
            )

        automatic = self._automatic_fields(entity_class, for_update=True)
        values = {name: value for name, value in modifications.items() if name not in automatic}
        assignments = [f"{name}={self._value_expression(entity_class.get_field_definition(name))}" for name in values]
        assignments += [f"{name}={self.connection.dialect.timestamp()}" for name in automatic]
        predicates = [
            f"{key}={self._value_expression(entity_class.get_field_definition(key), self.KEY_PARAM_PREFIX)}"
            for key in key_fields
        ]

        table = self.get_table(entity_class)
        stmt = [
            f"UPDATE {table}",
            "SET " + "\n  ,".join(assignments),
            "WHERE " + "\n  AND ".join(predicates),
        ]
        params = self._create_params(entity_class, key_values, self.KEY_PARAM_PREFIX)
        params.update(self._create_params(entity_class, values))

        with self.transaction():
            affected = self.connection.manipulate_data(stmt, params)
        LOG.info(f"Updated {affected} row(s) of '{table}' for {key_values}.")
        return affected != 0

    def _delete_entity(self, template: SqlEntity) -> bool:
        self.check_entity_permission(template)

        entity_class = type(template)
        search_values = template.get_modifications()
        table = self.get_table(entity_class)

        stmt = [f"DELETE FROM {table}"]
        where = self._where(entity_class, search_values)
        if where:
            stmt.append(where)

        with self.transaction():
            affected = self.connection.manipulate_data(stmt, self._search_params(entity_class, search_values))
        LOG.info(f"Deleted {affected} row(s) of '{table}'.")
        return affected > 0

    def delete(self, entity: SqlEntity) -> bool:
        return self._delete_entity(self._extract_id_template(entity))

    def delete_by_template(self, template: SqlEntity) -> bool:
        return self._delete_entity(template)
