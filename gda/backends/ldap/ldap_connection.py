##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Thin wrapper around an `ldap3` connection.

This module defines the `LdapConnection` class, which exposes the directory
primitives the LDAP accessor relies on: bind, search, add and delete entries,
add, delete and replace attribute values, and the code and message of the last
error. Search results are normalized into dictionaries with lower case attribute
names mapped to lists of raw (bytes) values.
"""

import logging
from types import SimpleNamespace, TracebackType
from typing import Dict, Iterable, List, Optional, Type

from ldap3 import (
    ANONYMOUS,
    BASE,
    MODIFY_ADD,
    MODIFY_DELETE,
    MODIFY_REPLACE,
    NONE,
    SIMPLE,
    SUBTREE,
    Connection,
    Server,
)
from ldap3.core.exceptions import LDAPException
from ldap3.core.results import RESULT_NO_SUCH_OBJECT, RESULT_SUCCESS

from gda.exceptions import LdapError


LOG = logging.getLogger(__name__)

Entry = Dict[str, List]


class LdapConnection:
    """
    Directory connection used by `GenericLdapDataAccess`.

    Attributes:
        connection (ldap3.Connection): The underlying ldap3 connection.

    Methods:
        from_config: Connect and bind using the `ldap` configuration section.
        bind: Bind with a DN and password.
        search: Search entries below a base.
        get_by_dn: Read a single entry.
        add: Add an entry.
        delete: Delete an entry.
        modify_add: Add attribute values.
        modify_delete: Delete attribute values.
        modify_replace: Replace attribute values.
        close: Unbind.
    """

    def __init__(self, connection: Connection):
        """
        Args:
            connection: An ldap3 connection created with `raise_exceptions=False`.
        """
        self.connection: Connection = connection

    @classmethod
    def from_config(cls, settings: SimpleNamespace) -> "LdapConnection":
        """
        Connect to the directory described by the `ldap` configuration section and bind.

        Args:
            settings: The section, holding `host`, `port`, `use_ssl`, `bind_dn` and `password`.

        Returns:
            The bound connection.

        Raises:
            LdapError: If the directory cannot be reached or the bind fails.
        """
        use_ssl = bool(getattr(settings, "use_ssl", True))
        server = Server(
            getattr(settings, "host", "localhost"),
            port=getattr(settings, "port", None) or (636 if use_ssl else 389),
            use_ssl=use_ssl,
            get_info=NONE,
        )
        conn = cls(Connection(server, raise_exceptions=False))
        bind_dn = getattr(settings, "bind_dn", None)
        if not conn.bind(bind_dn, getattr(settings, "password", None)):
            raise LdapError(
                f"Bind failed: {conn.last_error_message}",
                code=conn.last_error_code,
                native_message=conn.last_error_message,
            )
        LOG.debug(f"Bound to {server} as '{bind_dn}'.")
        return conn

    def __enter__(self) -> "LdapConnection":
        return self

    def __exit__(self, exc_type: Type[Exception], exc_value: Exception, traceback: TracebackType):
        self.close()

    @property
    def last_error_code(self) -> int:
        """The result code of the last operation."""
        return (self.connection.result or {}).get("result", RESULT_SUCCESS)

    @property
    def last_error_message(self) -> str:
        """The description and diagnostic message of the last operation."""
        result = self.connection.result or {}
        message = result.get("message")
        description = result.get("description", "")
        return f"{description}: {message}" if message else description

    def error(self, message: str) -> LdapError:
        """
        Build an error carrying the code and message of the last operation.

        Args:
            message: What was attempted.

        Returns:
            The error, ready to be raised.
        """
        return LdapError(
            f"{message}: {self.last_error_message} ({self.last_error_code})",
            code=self.last_error_code,
            native_message=self.last_error_message,
        )

    def bind(self, dn: str, password: str) -> bool:
        """
        Bind with a DN and password. Without a DN the bind is anonymous.

        Returns:
            True on success, False if the directory refused the credentials.

        Raises:
            LdapError: If the directory cannot be reached.
        """
        self.connection.user = dn
        self.connection.password = password
        # ldap3 fixes the authentication method at construction time
        self.connection.authentication = SIMPLE if dn else ANONYMOUS
        try:
            if self.connection.closed:
                self.connection.open()
            return self.connection.bind()
        except LDAPException as exc:
            raise LdapError(f"Bind as '{dn}' failed: {exc}", native_message=str(exc)) from exc

    def search(
        self, base: str, search_filter: str, attributes: Optional[Iterable[str]] = None, scope: str = SUBTREE
    ) -> List[Dict]:
        """
        Search entries.

        Args:
            base: The DN to search below.
            search_filter: The LDAP filter, including the outer parentheses.
            attributes: The attributes to read; all user attributes if None.
            scope: The ldap3 search scope.

        Returns:
            One dictionary per entry with the keys `dn` and `attributes`; empty if
            the base does not exist.

        Raises:
            LdapError: If the search fails for another reason.
        """
        LOG.debug(f"Searching '{base}' for {search_filter}")
        kwargs = {"search_scope": scope}
        if attributes is not None:
            kwargs["attributes"] = list(attributes)
        else:
            kwargs["attributes"] = ["*"]
        self.connection.search(base, search_filter, **kwargs)
        if self.last_error_code == RESULT_NO_SUCH_OBJECT:
            return []
        if self.last_error_code != RESULT_SUCCESS:
            raise self.error(f"Error during search below {base}")

        entries = []
        for response in self.connection.response or []:
            if response.get("type") != "searchResEntry":
                continue
            raw_attributes = response.get("raw_attributes") or {}
            entries.append(
                {
                    "dn": response["dn"],
                    "attributes": {name.lower(): list(values) for name, values in raw_attributes.items()},
                }
            )
        return entries

    def get_by_dn(self, dn: str, attributes: Optional[Iterable[str]] = None) -> Optional[Dict]:
        """
        Read a single entry.

        Args:
            dn: The DN of the entry.
            attributes: The attributes to read; all user attributes if None.

        Returns:
            The entry as returned by `search`, or None if it does not exist.
        """
        entries = self.search(dn, "(objectClass=*)", attributes, BASE)
        return entries[0] if entries else None

    def add(self, dn: str, attributes: Entry) -> bool:
        """Add an entry. Returns True on success."""
        return self.connection.add(dn, attributes=attributes)

    def delete(self, dn: str) -> bool:
        """Delete an entry. Returns True on success."""
        return self.connection.delete(dn)

    def _modify(self, dn: str, operation: str, entry: Entry) -> bool:
        changes = {name: [(operation, list(values))] for name, values in entry.items()}
        return self.connection.modify(dn, changes)

    def modify_add(self, dn: str, entry: Entry) -> bool:
        """Add attribute values. Returns True on success."""
        return self._modify(dn, MODIFY_ADD, entry)

    def modify_delete(self, dn: str, entry: Entry) -> bool:
        """Delete attribute values; an empty list deletes all values. Returns True on success."""
        return self._modify(dn, MODIFY_DELETE, entry)

    def modify_replace(self, dn: str, entry: Entry) -> bool:
        """Replace attribute values; an empty list removes the attribute. Returns True on success."""
        return self._modify(dn, MODIFY_REPLACE, entry)

    def close(self):
        """Unbind from the directory."""
        if not self.connection.closed:
            self.connection.unbind()
