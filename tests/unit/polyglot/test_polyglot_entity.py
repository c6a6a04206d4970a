##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Tests for the `polyglot_entity.py` module.
"""

import pytest

from gda.entities.field_definition import FieldDefinition, PolyglotFieldType
from gda.exceptions import PolyglotConfigurationError, PolyglotError
from gda.polyglot.polyglot_entity import PolyglotEntity, PolyglotReference
from tests.entity_classes import Account, LdapAccount, SqlDepartment, SqlMembership, SqlProfile


class NoMapping(PolyglotEntity):
    FD_UID = FieldDefinition("uid", False, PolyglotFieldType.STRING)
    CONNECTING_ATTRS = ("uid",)


class EmptyConnecting(PolyglotEntity):
    FD_UID = FieldDefinition("uid", False, PolyglotFieldType.STRING)
    FIELD_MAPPING = {LdapAccount: {}}
    CONNECTING_ATTRS = ()


class BadMappedField(PolyglotEntity):
    FD_UID = FieldDefinition("uid", False, PolyglotFieldType.STRING)
    FD_NAME = FieldDefinition("name", False, PolyglotFieldType.STRING)
    FIELD_MAPPING = {LdapAccount: {"name": "displayName"}}
    CONNECTING_ATTRS = ("uid",)


class BadConnecting(PolyglotEntity):
    FD_UID = FieldDefinition("uid", False, PolyglotFieldType.STRING)
    FD_CODE = FieldDefinition("code", False, PolyglotFieldType.STRING)
    FIELD_MAPPING = {LdapAccount: {}, SqlDepartment: {}}
    CONNECTING_ATTRS = ("code",)


class MissingKey(PolyglotEntity):
    FD_UID = FieldDefinition("uid", False, PolyglotFieldType.STRING)
    FIELD_MAPPING = {SqlMembership: {"uid": "group_name"}}
    CONNECTING_ATTRS = ("uid",)


class TestPolyglotConfiguration:
    """
    Tests for the class level mapping of polyglot entities.
    """

    def test_mapping_lookups(self):
        """
        Test translating field names in both directions.
        """
        assert Account.get_mapped_entity_classes() == [SqlProfile, LdapAccount]
        assert Account.get_mapped_field("name", SqlProfile) == "display_name"
        assert Account.get_mapped_field("name", LdapAccount) == "cn"
        assert Account.get_mapped_field("uid", LdapAccount) == "uid"
        assert Account.get_field_from_mapping("sn", LdapAccount) == "surname"
        assert Account.get_field_from_mapping("uid", SqlProfile) == "uid"
        assert Account.get_connecting_attributes() == ("uid",)

    def test_strict_mapping(self):
        """
        Test that strict translation only accepts declared polyglot fields.
        """
        assert Account.get_strict_mapped_field("surname", LdapAccount) == "sn"
        with pytest.raises(PolyglotError, match="does not exist in PolyglotEntity"):
            Account.get_strict_mapped_field("sn", LdapAccount)

    def test_unmapped_class(self):
        """
        Test that classes outside of the mapping are refused.
        """
        with pytest.raises(PolyglotError, match="SqlDepartment not registered"):
            Account.get_field_mapping_for(SqlDepartment)

    def test_persistent_for_field(self):
        """
        Test finding the first mapped class carrying a field.
        """
        assert Account.get_persistent_for_field("active") is SqlProfile
        assert Account.get_persistent_for_field("surname") is LdapAccount
        with pytest.raises(PolyglotError):
            Account.get_persistent_for_field("nothing")

    def test_key_fields(self):
        """
        Test that the key fields are the translated keys of all mapped classes.
        """
        assert Account.get_key_fields() == ("profile_id", "uid")

    def test_references(self):
        """
        Test that references are collected from the `REF_` declarations.
        """
        assert Account.get_polyglot_references() == {
            "REF_DEPARTMENT": PolyglotReference(SqlDepartment, ("department",))
        }

    def test_valid_mapping(self):
        """
        Test that a consistent mapping validates.
        """
        Account.validate_mapping()

    @pytest.mark.parametrize(
        "polyglot_class, message",
        [
            (NoMapping, "no field found: FIELD_MAPPING"),
            (EmptyConnecting, "no connecting attributes set"),
            (BadMappedField, "Mapped field displayName does not exist"),
            (BadConnecting, "Connecting attribute code does not exist in mapped Entity class LdapAccount"),
            (MissingKey, "does not contain required key field: profile_id"),
        ],
    )
    def test_invalid_mapping(self, polyglot_class, message: str):
        """
        Test that inconsistent mappings are configuration errors.

        Args:
            polyglot_class: The misconfigured polyglot class.
            message: Part of the expected error message.
        """
        with pytest.raises(PolyglotConfigurationError, match=message):
            polyglot_class.validate_mapping()


class TestPersistentEntities:
    """
    Tests for the persistent entities attached to polyglot entities.
    """

    def test_amend_pushes_modifications(self):
        """
        Test that missing persistents are created and receive the translated modifications.
        """
        account = Account.template(uid="jdoe", name="John Doe", surname="Doe", active=True)
        account.amend_missing_persistents()

        profile, ldap_account = account.get_persistent_entities()
        assert profile.get_modifications() == {"uid": "jdoe", "display_name": "John Doe", "active": True}
        assert ldap_account.get_modifications() == {"uid": "jdoe", "cn": "John Doe", "sn": "Doe"}

    def test_add_persistent_entity(self):
        """
        Test attaching, replacing and refusing persistents.
        """
        account = Account()

        assert not account.add_persistent_entity(LdapAccount(uid="jdoe"))
        assert account.add_persistent_entity(LdapAccount(uid="asmith"))
        assert account.get_persistent_entity(LdapAccount).uid == "asmith"
        assert account.get_persistent_entity(SqlProfile) is None
        with pytest.raises(PolyglotError, match="not configured for this PolyglotEntity"):
            account.add_persistent_entity(SqlDepartment(code="IT"))

        account.clear_persistent_entities()
        assert account.get_persistent_entities() == []

    def test_persistents_in_mapping_order(self):
        """
        Test that persistents are handed out in mapping declaration order.
        """
        account = Account()
        ldap_account = LdapAccount(uid="jdoe")
        profile = SqlProfile(id=1, uid="jdoe")
        account.add_persistent_entity(ldap_account)
        account.add_persistent_entity(profile)

        assert account.get_persistent_entities() == [profile, ldap_account]

    def test_fill_from_persistent_entities(self):
        """
        Test that persistent values are copied into the polyglot fields.
        """
        account = Account()
        account.add_persistent_entity(SqlProfile(id=7, uid="jdoe", display_name="Johnny", active=True))
        account.add_persistent_entity(LdapAccount(uid="jdoe", cn="John Doe", sn="Doe", mail=["j@example.org"]))

        account.fill_from_persistent_entities()

        assert account.profile_id == 7
        assert account.name == "John Doe"
        assert account.surname == "Doe"
        assert account.mail == ["j@example.org"]
        assert account.active is True

    def test_update_all_values(self):
        """
        Test pushing every set value instead of the modifications only.
        """
        account = Account(uid="jdoe", surname="Doe")
        account.add_persistent_entity(LdapAccount())

        account.update_persistent_entities()
        assert account.get_persistent_entity(LdapAccount).sn is None

        account.update_persistent_entities(all_values=True)
        assert account.get_persistent_entity(LdapAccount).sn == "Doe"

    def test_connecting_values(self):
        """
        Test reading and writing the connecting values of persistents.
        """
        account = Account()
        account.add_persistent_entity(SqlProfile(uid="jdoe"))
        account.add_persistent_entity(LdapAccount())

        values = account.get_connecting_values(SqlProfile)
        account.set_connecting_values(LdapAccount, values)

        assert values == {"uid": "jdoe"}
        assert account.get_persistent_entity(LdapAccount).uid == "jdoe"

    @pytest.mark.parametrize(
        "values, message",
        [({}, "Connecting attribute uid missing"), ({"uid": None}, "connecting attribute uid is None")],
    )
    def test_set_invalid_connecting_values(self, values, message: str):
        """
        Test that connecting values must be complete.

        Args:
            values: The connecting values.
            message: Part of the expected error message.
        """
        account = Account()
        account.add_persistent_entity(LdapAccount())
        with pytest.raises(PolyglotError, match=message):
            account.set_connecting_values(LdapAccount, values)

    def test_connecting_values_need_persistent(self):
        """
        Test that connecting values can only be read from attached persistents.
        """
        with pytest.raises(PolyglotError, match="No entity of provided class SqlProfile"):
            Account().get_connecting_values(SqlProfile)
