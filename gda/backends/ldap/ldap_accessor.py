##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Generic data accessor for entities stored in an LDAP directory.

The directory protocol has no multi-operation transactions. While a transaction
scope is open, `GenericLdapDataAccess` records for every successful mutating
primitive an `LdapAction` holding what is needed to undo it. Committing the
outermost scope forgets the log; rolling back replays it in reverse order.

See also:
    - gda.backends.ldap.ldap_connection: The directory primitives
    - gda.backends.ldap.ldap_action: The compensating actions
"""

import logging
import re
from datetime import date, datetime, timezone
from types import TracebackType
from typing import Any, Dict, List, Optional, Type
from uuid import UUID

from ldap3.utils.conv import escape_bytes, escape_filter_chars
from ldap3.utils.dn import escape_rdn

from gda.backends.data_accessor import DataAccessor
from gda.backends.ldap.ldap_action import LdapAction, LdapActionType
from gda.backends.ldap.ldap_connection import Entry, LdapConnection
from gda.backends.ldap.ldap_entity import DN_ATTR, LdapEntity
from gda.entities.field_definition import LdapFieldDefinition, LdapFieldType
from gda.entities.ordering import sort_entities
from gda.exceptions import DataCorruptedError, InvalidKeyValuesError, LdapError, RollbackFailedError
from gda.utils import hash_password


LOG = logging.getLogger(__name__)

OBJECT_CLASS_ATTR = "objectClass"
MEMBER_OF_ATTR = "memberOf"
MEMBER_ATTR = "member"

LDAP_TRUE = "TRUE"
LDAP_FALSE = "FALSE"
LDAP_DATE_FORMAT = "%Y%m%d%HZ"
LDAP_TIMESTAMP_FORMAT = "%Y%m%d%H%M%SZ"
ISO_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
BINARY_TYPES = (LdapFieldType.JPEG, LdapFieldType.OCTET)

_GENERALIZED_TIME = re.compile(
    r"^(\d{4})(\d{2})(\d{2})(\d{2})?(\d{2})?(\d{2})?(?:[.,]\d+)?(Z|[+-]\d{2}(?:\d{2})?)?$"
)


def parse_generalized_time(value: str) -> datetime:
    """
    Parse an LDAP generalized time value into an aware datetime in UTC.

    Args:
        value: E.g. `2024031508Z` or `20240315081500+0100`.

    Returns:
        The point in time.

    Raises:
        LdapError: If the value is no generalized time.
    """
    match = _GENERALIZED_TIME.match(value.strip())
    if match is None:
        raise LdapError(f"Not a generalized time value: {value}")
    year, month, day, hour, minute, second, zone = match.groups()
    parsed = datetime(int(year), int(month), int(day), int(hour or 0), int(minute or 0), int(second or 0))
    if zone and zone != "Z":
        offset = datetime.strptime(zone.ljust(5, "0"), "%z").utcoffset()
        parsed = (parsed - offset).replace(tzinfo=timezone.utc)
    else:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _to_utc_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as exc:
            raise LdapError(f"Not an ISO formatted date or timestamp: {value}") from exc
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


class GenericLdapDataAccess(DataAccessor[LdapEntity]):
    """
    Data accessor for `LdapEntity` classes with a compensating transaction log.

    Attributes:
        connection (LdapConnection): The directory connection.
        base_dn (str): The DN all entity locations are relative to.
        transaction_level (int): Number of open transaction scopes.
        actions (List[LdapAction]): Compensating actions of the open transaction.

    Methods:
        add_entry: Add an entry.
        modify_entry: Replace attributes of an entry as a whole.
        delete_entry: Delete an entry.
        modify_add: Add attribute values.
        modify_delete: Delete attribute values.
        modify_replace: Replace attribute values.
        build_dn: Compose the DN of an entity from its key value.
        get_by_dn: Read an entry as an entity.
        close: Roll back an open transaction and unbind.
    """

    def __init__(self, connection: LdapConnection, base_dn: str = ""):
        """
        Args:
            connection: The directory connection.
            base_dn: The DN all entity locations are relative to.
        """
        self.connection: LdapConnection = connection
        self.base_dn: str = base_dn or ""
        self.transaction_level: int = 0
        self.actions: List[LdapAction] = []

    def get_handling_unit(self) -> Type[LdapEntity]:
        return LdapEntity

    def __enter__(self) -> "GenericLdapDataAccess":
        return self

    def __exit__(self, exc_type: Type[Exception], exc_value: Exception, traceback: TracebackType):
        self.close()

    def close(self):
        """
        Unbind from the directory. A transaction still open at this point is
        rolled back and reported.
        """
        try:
            if self.transaction_level > 0:
                LOG.error(
                    "There was still a transaction running while disconnecting - rolling back: "
                    f"{self.transaction_level}"
                )
                self.rollback()
        finally:
            self.connection.close()

    #
    # Transactions
    #

    def begin_transaction(self):
        self.transaction_level += 1

    def commit(self):
        """
        Close the innermost transaction scope. Closing the outermost scope forgets
        the compensating actions; every primitive already took effect.
        """
        if self.transaction_level <= 0:
            self.transaction_level = 0
            return
        if self.transaction_level == 1:
            self.actions = []
        self.transaction_level -= 1

    def rollback(self):
        """
        Undo every primitive recorded since the outermost scope was opened, newest
        first. The log is cleared and the nesting reset whatever the outcome.

        Raises:
            RollbackFailedError: If an action cannot be undone. The directory may
                need manual repair; the error names the failing action and the
                actions that were not undone.
        """
        LOG.warning("Rollback for LDAP initiated.")
        pending = list(reversed(self.actions))
        try:
            for index, action in enumerate(pending):
                try:
                    self._undo(action)
                except LdapError as exc:
                    remaining = pending[index + 1 :]
                    LOG.critical(
                        f"LDAP rollback failed, manual repair needed. Failed: {action}. Not undone: "
                        + "; ".join(str(pending_action) for pending_action in remaining)
                    )
                    raise RollbackFailedError(
                        f"Undo failed for action {action}: {exc}",
                        action=action,
                        pending_actions=remaining,
                        code=exc.code,
                    ) from exc
        finally:
            self.actions = []
            self.transaction_level = 0

    def _undo(self, action: LdapAction):
        conn = self.connection
        if action.type == LdapActionType.ENTRY_INSERT:
            success = conn.delete(action.dn)
        elif action.type in (LdapActionType.ENTRY_UPDATE, LdapActionType.ATTRIBUTE_REPLACE):
            success = conn.modify_replace(action.dn, action.entry)
        elif action.type == LdapActionType.ENTRY_DELETE:
            success = conn.add(action.dn, action.entry)
        elif action.type == LdapActionType.ATTRIBUTE_DELETE:
            entry = {name: values for name, values in action.entry.items() if values}
            success = conn.modify_add(action.dn, entry) if entry else True
        elif action.type == LdapActionType.ATTRIBUTE_ADD:
            success = conn.modify_delete(action.dn, action.entry)
        else:
            raise LdapError(f"Unknown action type in LdapAction instance found: {action}")
        if not success:
            raise conn.error(f"Undo failed for action {action}")
        LOG.debug(f"Undone: {action}")

    def _record(self, action: LdapAction):
        if self.transaction_level > 0:
            self.actions.append(action)

    #
    # Mutating primitives
    #

    def _pre_image(self, dn: str, attributes: List[str]) -> Entry:
        found = self.connection.get_by_dn(dn, attributes)
        if found is None:
            raise LdapError(f"Entry not found: {dn}", code=32)
        return {name: list(found["attributes"].get(name.lower(), [])) for name in attributes}

    def add_entry(self, dn: str, entry: Entry):
        """
        Add an entry and record its deletion as compensation.

        Raises:
            LdapError: If the directory refuses the entry.
        """
        if not self.connection.add(dn, entry):
            raise self.connection.error(f"Error while inserting LDAP entry {dn}")
        self._record(LdapAction(LdapActionType.ENTRY_INSERT, dn))

    def modify_entry(self, dn: str, entry: Entry):
        """
        Replace the given attributes of an entry and record their previous values.

        Raises:
            LdapError: If the directory refuses the modification.
        """
        old_entry = self._pre_image(dn, list(entry))
        if not self.connection.modify_replace(dn, entry):
            raise self.connection.error(f"Error while updating LDAP entry {dn}")
        self._record(LdapAction(LdapActionType.ENTRY_UPDATE, dn, old_entry))

    def delete_entry(self, dn: str):
        """
        Delete an entry and record all its attributes for re-insertion.

        Raises:
            LdapError: If the directory refuses the deletion.
        """
        found = self.connection.get_by_dn(dn)
        if found is None:
            raise LdapError(f"Entry not found: {dn}", code=32)
        if not self.connection.delete(dn):
            raise self.connection.error(f"Error while deleting LDAP entry {dn}")
        self._record(LdapAction(LdapActionType.ENTRY_DELETE, dn, found["attributes"]))

    def modify_add(self, dn: str, entry: Entry):
        """
        Add attribute values and record them for deletion.

        Raises:
            LdapError: If the directory refuses the values.
        """
        if not self.connection.modify_add(dn, entry):
            raise self.connection.error(f"Error while adding attribute values to {dn}")
        self._record(LdapAction(LdapActionType.ATTRIBUTE_ADD, dn, entry))

    def modify_delete(self, dn: str, entry: Entry):
        """
        Delete attribute values and record them for re-adding. An empty value list
        deletes all values; those are read before the deletion.

        Raises:
            LdapError: If the directory refuses the deletion.
        """
        all_values = [name for name, values in entry.items() if not values]
        old_entry = self._pre_image(dn, all_values) if all_values else {}
        for name, values in entry.items():
            if values:
                old_entry[name] = list(values)
        if not self.connection.modify_delete(dn, entry):
            raise self.connection.error(f"Error while deleting attribute values of {dn}")
        self._record(LdapAction(LdapActionType.ATTRIBUTE_DELETE, dn, old_entry))

    def modify_replace(self, dn: str, entry: Entry):
        """
        Replace attribute values and record the previous ones.

        Raises:
            LdapError: If the directory refuses the replacement.
        """
        old_entry = self._pre_image(dn, list(entry))
        if not self.connection.modify_replace(dn, entry):
            raise self.connection.error(f"Error while replacing attribute values of {dn}")
        self._record(LdapAction(LdapActionType.ATTRIBUTE_REPLACE, dn, old_entry))

    #
    # DN handling
    #

    def build_base_dn(self, relative_base_dn: Optional[str]) -> str:
        """
        Append the accessor base DN to a relative base DN.
        """
        parts = [part for part in (relative_base_dn, self.base_dn) if part]
        return ",".join(parts)

    def build_dn(self, entity: LdapEntity) -> str:
        """
        Compose the DN of an entity from its key value, its relative base DN and
        the accessor base DN.

        Raises:
            InvalidKeyValuesError: If the key field is empty.
        """
        key_field = entity.get_key_fields()[0]
        value = getattr(entity, key_field)
        if value is None or value == "":
            raise InvalidKeyValuesError(f"Key field '{key_field}' of '{type(entity).__name__}' empty!")
        attribute = entity.get_field_definition(key_field).attribute
        rdn = f"{attribute}={escape_rdn(str(self.convert_entity_value(value, entity.get_field_definition(key_field))))}"
        return ",".join(part for part in (rdn, self.build_base_dn(entity.get_base_dn())) if part)

    #
    # Value conversion
    #

    def convert_ldap_value(self, value: bytes, field_def: LdapFieldDefinition) -> Any:
        """
        Convert one raw attribute value into an entity value.
        """
        if value is None:
            return None
        if field_def.type in BINARY_TYPES:
            return value
        text = value.decode("utf-8") if isinstance(value, bytes) else str(value)
        if field_def.type == LdapFieldType.BOOLEAN:
            return text.strip().upper() == LDAP_TRUE
        if field_def.type == LdapFieldType.DATE:
            return parse_generalized_time(text).date().isoformat()
        if field_def.type == LdapFieldType.TIMESTAMP:
            return parse_generalized_time(text).strftime(ISO_TIMESTAMP_FORMAT)
        if field_def.type == LdapFieldType.UUID:
            return UUID(text)
        if field_def.type == LdapFieldType.INTEGER:
            return int(text)
        if field_def.type == LdapFieldType.REFERENCE_DN:
            reference = field_def.ref_entity.template(dn=text)
            found = self.get_by_id(reference)
            if found is None:
                raise LdapError(f"LDAP search failed for {field_def.ref_entity.__name__} with ID {text}!")
            return next(iter(found.get_key_values().values()))
        if field_def.type == LdapFieldType.PASSWORD:
            return None
        return text

    def convert_ldap_attribute(self, values: List[bytes], field_def: LdapFieldDefinition) -> Any:
        """
        Convert the raw values of an attribute into an entity value.
        """
        if field_def.is_list:
            converted = [self.convert_ldap_value(value, field_def) for value in values]
            if field_def.list_delimiter is not None:
                return field_def.list_delimiter.join(str(value) for value in converted)
            return converted
        return self.convert_ldap_value(values[0], field_def) if values else None

    def convert_entity_value(self, value: Any, field_def: LdapFieldDefinition) -> Any:
        """
        Convert one entity value into an attribute value.
        """
        if value is None:
            return None
        if isinstance(value, str):
            value = value.strip()
        if field_def.type == LdapFieldType.BOOLEAN:
            return LDAP_TRUE if value else LDAP_FALSE
        if field_def.type == LdapFieldType.DATE:
            return _to_utc_datetime(value).strftime(LDAP_DATE_FORMAT)
        if field_def.type == LdapFieldType.TIMESTAMP:
            return _to_utc_datetime(value).strftime(LDAP_TIMESTAMP_FORMAT)
        if field_def.type == LdapFieldType.UUID:
            return str(value if isinstance(value, UUID) else UUID(str(value)))
        if field_def.type == LdapFieldType.REFERENCE_DN:
            ref_class = field_def.ref_entity
            reference = ref_class.template(**{ref_class.get_key_fields()[0]: value})
            found = self.get_by_id(reference)
            if found is None:
                raise LdapError(f"LDAP search failed for {ref_class.__name__} with ID {value}!")
            return found.dn
        if field_def.type == LdapFieldType.PASSWORD:
            return hash_password(value)
        if field_def.type in BINARY_TYPES:
            return value
        return str(value)

    def convert_entity_attribute(self, value: Any, field_def: LdapFieldDefinition) -> List:
        """
        Convert an entity value into the list of attribute values.
        """
        if value is None:
            return []
        if field_def.is_list:
            if field_def.list_delimiter is not None and isinstance(value, str):
                value = [item for item in value.split(field_def.list_delimiter) if item.strip()]
            if not isinstance(value, (list, tuple)):
                raise LdapError(f"List expected for list field {field_def.name}, but got {type(value).__name__}")
            return [self.convert_entity_value(item, field_def) for item in value]
        return [self.convert_entity_value(value, field_def)]

    def generate_ldap_entry(self, entity: LdapEntity, skip_empty: bool = False) -> Entry:
        """
        Build the attributes to write from the modifications of an entity.

        Args:
            entity: The entity.
            skip_empty: Leave out attributes without values instead of clearing them.

        Returns:
            Attribute name to list of values.
        """
        entry = {}
        for name, value in entity.get_modifications().items():
            field_def = entity.get_field_definition(name)
            if field_def.attribute == DN_ATTR:
                continue
            values = self.convert_entity_attribute(value, field_def)
            if skip_empty and not values:
                continue
            entry[field_def.attribute] = values
        return entry

    def fill_entity(self, entity_class: Type[LdapEntity], found: Dict) -> LdapEntity:
        """
        Build a clean entity from a search result.
        """
        values = {DN_ATTR: found["dn"]}
        attributes = found["attributes"]
        for field_def in entity_class.get_field_definitions():
            if field_def.attribute == DN_ATTR:
                continue
            # attributes may be missing for lack of access rights
            raw_values = attributes.get(field_def.attribute.lower())
            if raw_values is None:
                continue
            values[field_def.name] = self.convert_ldap_attribute(raw_values, field_def)
        return entity_class(**values)

    @staticmethod
    def _search_attributes(entity_class: Type[LdapEntity]) -> List[str]:
        return [
            field_def.attribute for field_def in entity_class.get_field_definitions() if field_def.attribute != DN_ATTR
        ]

    @staticmethod
    def _filter_value(value: Any) -> str:
        if isinstance(value, bytes):
            return escape_bytes(value)
        return escape_filter_chars(str(value))

    @staticmethod
    def build_filter(elements: List[str], operator: str = "&") -> str:
        """
        Combine filter elements into one filter.
        """
        if not elements:
            raise LdapError("Empty filter provided")
        if len(elements) == 1:
            return f"({elements[0]})"
        return f"({operator}(" + ")(".join(elements) + "))"

    #
    # CRUD
    #

    def get_by_dn(self, entity_class: Type[LdapEntity], dn: str) -> Optional[LdapEntity]:
        """
        Read an entry as an entity.

        Returns:
            The entity, or None if no entry has the DN.
        """
        found = self.connection.get_by_dn(dn, self._search_attributes(entity_class))
        if found is None:
            return None
        return self.fill_entity(entity_class, found)

    def get_by_id(self, template: LdapEntity) -> Optional[LdapEntity]:
        """
        Retrieve an entity by its DN if the template carries one, by its key value otherwise.

        Raises:
            InvalidKeyValuesError: If neither DN nor key value is set.
            DataCorruptedError: If more than one entry carries the key value.
        """
        if template.dn:
            return self.get_by_dn(type(template), template.dn)

        key_values = template.get_key_values()
        missing = [key for key in template.get_key_fields() if key not in key_values]
        if missing:
            raise InvalidKeyValuesError(f"Key values don't match expected key fields of '{type(template).__name__}'!")
        result = self.get_by_template(type(template).template(**key_values))
        if not result:
            return None
        if len(result) > 1:
            raise DataCorruptedError(
                f"Database corrupted - more than one entry with the same ID found of type: {type(template).__name__}"
            )
        return result[0]

    def _find_by_template(self, template: LdapEntity) -> List[Dict]:
        entity_class = type(template)
        base_dn = self.build_base_dn(entity_class.get_base_dn())
        elements = [f"{OBJECT_CLASS_ATTR}={self._filter_value(name)}" for name in entity_class.get_object_classes()]
        elements += [f"{MEMBER_OF_ATTR}={self._filter_value(group)}" for group in entity_class.get_memberships()]

        for name, value in template.get_modifications().items():
            field_def = entity_class.get_field_definition(name)
            if field_def.attribute == DN_ATTR:
                # a DN can't be searched via filter
                base_dn = value
            elif value is None:
                elements.append(f"!({field_def.attribute}=*)")
            else:
                for item in self.convert_entity_attribute(value, field_def):
                    elements.append(f"{field_def.attribute}={self._filter_value(item)}")

        return self.connection.search(base_dn, self.build_filter(elements), self._search_attributes(entity_class))

    def get_by_template(self, template: LdapEntity, order: Optional[Dict[str, bool]] = None) -> List[LdapEntity]:
        entity_class = type(template)
        result = [self.fill_entity(entity_class, found) for found in self._find_by_template(template)]
        if order:
            result = sort_entities(result, order, LdapError)
        return result

    def count_by_template(self, template: LdapEntity) -> int:
        return len(self._find_by_template(template))

    def insert(self, entity: LdapEntity) -> LdapEntity:
        """
        Add an entry for the entity and add it to the groups of its class.

        Returns:
            The entity as stored.

        Raises:
            LdapError: If the directory refuses the entry or a group does not exist.
        """
        with self.transaction():
            if not entity.dn:
                entity.dn = self.build_dn(entity)
            entry = self.generate_ldap_entry(entity, skip_empty=True)
            entry[OBJECT_CLASS_ATTR] = list(entity.get_object_classes())
            self.add_entry(entity.dn, entry)

            for group in entity.get_memberships():
                if self.connection.get_by_dn(group, [MEMBER_ATTR]) is None:
                    raise LdapError(f"Given group not found: {group}")
                self.modify_add(group, {MEMBER_ATTR: [entity.dn]})

            LOG.info(f"Inserted LDAP entry {entity.dn}.")
            return self.get_by_dn(type(entity), entity.dn)

    def update(self, entity: LdapEntity) -> bool:
        """
        Replace the modified attributes of the entry of an entity.

        Returns:
            False if there was nothing to write, True otherwise.

        Raises:
            LdapError: If the DN was modified or the directory refuses the change.
        """
        original_dn = entity.get_original().dn
        if original_dn and DN_ATTR in entity.get_modifications():
            raise LdapError("DN must not be modified!")
        dn = entity.dn or self.build_dn(entity)

        entry = self.generate_ldap_entry(entity)
        if not entry:
            return False
        with self.transaction():
            self.modify_entry(dn, entry)
        LOG.info(f"Updated LDAP entry {dn}: {sorted(entry)}")
        return True

    def delete(self, entity: LdapEntity) -> bool:
        """
        Delete the entry of an entity.

        Returns:
            True if the entry was deleted, False if it did not exist.
        """
        dn = entity.dn or self.build_dn(entity)
        if self.connection.get_by_dn(dn, [OBJECT_CLASS_ATTR]) is None:
            return False
        with self.transaction():
            self.delete_entry(dn)
        LOG.info(f"Deleted LDAP entry {dn}.")
        return True

    def delete_by_template(self, template: LdapEntity) -> bool:
        """
        Delete the entries of all entities matching a template, one by one.

        Returns:
            True if anything was deleted.
        """
        deleted = False
        with self.transaction():
            for entity in self.get_by_template(template):
                deleted = self.delete(entity) or deleted
        return deleted
