##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Entity classes shared by the test suite, and the schema and directory content
they are stored in.
"""

from gda.backends.ldap.ldap_entity import LdapEntity
from gda.backends.sql.sql_entity import ForeignKey, OnDelete, SqlEntity
from gda.entities.field_definition import (
    FieldDefinition,
    LdapFieldDefinition,
    LdapFieldType,
    PolyglotFieldType,
    SqlDefault,
    SqlFieldDefinition,
    SqlFieldType,
)
from gda.polyglot.polyglot_entity import PolyglotEntity, PolyglotReference


BASE_DN = "dc=example,dc=org"
PEOPLE_DN = f"ou=people,{BASE_DN}"
GROUPS_DN = f"ou=groups,{BASE_DN}"
STAFF_GROUP_DN = f"cn=staff,{GROUPS_DN}"
ADMIN_DN = f"cn=admin,{BASE_DN}"
ADMIN_PASSWORD = "admin-secret"

SQL_SCHEMA = [
    """
    CREATE TABLE department (
        code VARCHAR(8) PRIMARY KEY,
        name VARCHAR(64) NOT NULL
    )
    """,
    """
    CREATE TABLE profile (
        id INTEGER PRIMARY KEY,
        uid VARCHAR(64) NOT NULL UNIQUE,
        display_name VARCHAR(128),
        department VARCHAR(8) REFERENCES department(code) ON DELETE SET NULL,
        active INTEGER,
        birthday DATE,
        created TIMESTAMP,
        modified TIMESTAMP
    )
    """,
    """
    CREATE TABLE membership (
        profile_id INTEGER NOT NULL REFERENCES profile(id) ON DELETE CASCADE,
        group_name VARCHAR(32) NOT NULL,
        PRIMARY KEY (profile_id, group_name)
    )
    """,
]


class SqlDepartment(SqlEntity):
    TABLE_NAME = "department"
    CO_PK_DEPARTMENT = ("code",)

    FD_CODE = SqlFieldDefinition("code", False, SqlFieldType.VARCHAR, 8)
    FD_NAME = SqlFieldDefinition("name", False, SqlFieldType.VARCHAR, 64)


class SqlProfile(SqlEntity):
    TABLE_NAME = "profile"
    CO_PK_PROFILE = ("id",)
    CO_FK_DEPARTMENT = ForeignKey(("department",), "department", ("code",), OnDelete.SET_NULL)
    DEFAULT_ORDERING = {"id": True}

    FD_ID = SqlFieldDefinition("id", True, SqlFieldType.INTEGER, default=SqlDefault.SEQUENCE)
    FD_UID = SqlFieldDefinition("uid", False, SqlFieldType.VARCHAR, 64)
    FD_DISPLAY_NAME = SqlFieldDefinition("display_name", True, SqlFieldType.VARCHAR, 128)
    FD_DEPARTMENT = SqlFieldDefinition("department", True, SqlFieldType.VARCHAR, 8)
    FD_ACTIVE = SqlFieldDefinition("active", True, SqlFieldType.BOOLEAN)
    FD_BIRTHDAY = SqlFieldDefinition("birthday", True, SqlFieldType.DATE)
    FD_CREATED = SqlFieldDefinition("created", True, SqlFieldType.TIMESTAMP, default=SqlDefault.DEFAULT_TIMESTAMP)
    FD_MODIFIED = SqlFieldDefinition("modified", True, SqlFieldType.TIMESTAMP, default=SqlDefault.AUTO_TIMESTAMP)


class SqlMembership(SqlEntity):
    TABLE_NAME = "membership"
    CO_PK_MEMBERSHIP = ("profile_id", "group_name")
    CO_FK_PROFILE = ForeignKey(("profile_id",), "profile", ("id",), OnDelete.CASCADE)

    FD_PROFILE_ID = SqlFieldDefinition("profile_id", False, SqlFieldType.INTEGER)
    FD_GROUP_NAME = SqlFieldDefinition("group_name", False, SqlFieldType.VARCHAR, 32)


class LdapAccount(LdapEntity):
    RDN_FIELD = "uid"
    BASE_DN = "ou=people"
    OBJECT_CLASSES = ("inetOrgPerson",)

    FD_UID = LdapFieldDefinition("uid", False, LdapFieldType.STRING)
    FD_CN = LdapFieldDefinition("cn", False, LdapFieldType.STRING)
    FD_SN = LdapFieldDefinition("sn", False, LdapFieldType.STRING)
    FD_MAIL = LdapFieldDefinition("mail", True, LdapFieldType.EMAIL, is_list=True)
    FD_EMPLOYEE_NUMBER = LdapFieldDefinition(
        "employee_number", True, LdapFieldType.INTEGER, attribute="employeeNumber"
    )


class LdapStaffAccount(LdapAccount):
    MEMBER_OF = (STAFF_GROUP_DN,)


class Account(PolyglotEntity):
    FD_PROFILE_ID = FieldDefinition("profile_id", True, PolyglotFieldType.INTEGER)
    FD_UID = FieldDefinition("uid", False, PolyglotFieldType.STRING)
    FD_NAME = FieldDefinition("name", False, PolyglotFieldType.STRING)
    FD_SURNAME = FieldDefinition("surname", False, PolyglotFieldType.STRING)
    FD_MAIL = FieldDefinition("mail", True, PolyglotFieldType.LIST)
    FD_DEPARTMENT = FieldDefinition("department", True, PolyglotFieldType.STRING)
    FD_ACTIVE = FieldDefinition("active", True, PolyglotFieldType.BOOLEAN)

    FIELD_MAPPING = {
        SqlProfile: {"profile_id": "id", "name": "display_name"},
        LdapAccount: {"name": "cn", "surname": "sn"},
    }
    CONNECTING_ATTRS = ("uid",)

    REF_DEPARTMENT = PolyglotReference(SqlDepartment, ("department",))
