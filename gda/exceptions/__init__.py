##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Module of all GDA-specific exception types.

Configuration errors signal a mismatch between code and entity metadata and are
never retried. Consistency errors signal duplicated records. Backend operation
errors carry the native error code and message of the store that rejected the
operation. Not-found conditions are not errors; they are represented by `None`
or empty results.
"""

from typing import List, Optional


__all__ = (
    "GdaError",
    "ConfigurationError",
    "FieldDefinitionNotFoundError",
    "InvalidAccessorTypeError",
    "PolyglotConfigurationError",
    "AccessorNotFoundError",
    "DataCorruptedError",
    "EntityValidationError",
    "InvalidKeyValuesError",
    "ReferenceIntegrityError",
    "TransactionStateError",
    "PolyglotError",
    "BackendOperationError",
    "SqlError",
    "LdapError",
    "RollbackFailedError",
)


class GdaError(Exception):
    """
    Base class for every error raised by GDA.
    """


class ConfigurationError(GdaError):
    """
    Exception to signal a programming or configuration mistake, e.g. missing or
    malformed field metadata. Always fatal.
    """


class FieldDefinitionNotFoundError(ConfigurationError):
    """
    Exception to signal that an entity class has no field definition for a
    requested field.
    """


class InvalidAccessorTypeError(ConfigurationError):
    """
    Exception to signal that an accessor of the wrong type was handed to an
    accessor map.
    """


class PolyglotConfigurationError(ConfigurationError):
    """
    Exception to signal that the field mapping or the connecting attributes of a
    polyglot entity class are invalid.
    """


class AccessorNotFoundError(GdaError):
    """
    Exception to signal that no accessor is registered for an entity class.
    """


class DataCorruptedError(GdaError):
    """
    Exception to signal that more than one record was found where the keys or
    the connecting values should identify exactly one.
    """


class EntityValidationError(GdaError):
    """
    Exception raised by `validate_values` implementations of entities.
    """


class InvalidKeyValuesError(GdaError):
    """
    Exception to signal that an entity does not carry the key values an
    operation requires.
    """


class ReferenceIntegrityError(GdaError):
    """
    Exception to signal that a cross-backend reference of a polyglot entity does
    not point at an existing record.
    """


class TransactionStateError(GdaError):
    """
    Exception to signal that a nested transaction counter reached an undefined
    state.
    """


class PolyglotError(GdaError):
    """
    Exception for failures while composing or decomposing polyglot entities.
    """


class BackendOperationError(GdaError):
    """
    Exception to signal that a backend rejected an operation.

    Attributes:
        code: The native error code of the backend, if any.
        native_message: The native error message of the backend, if any.
    """

    def __init__(self, message: str, code: Optional[int] = None, native_message: Optional[str] = None):
        super().__init__(message)
        self.code = code
        self.native_message = native_message


class SqlError(BackendOperationError):
    """
    Exception for failures of SQL statements.
    """


class LdapError(BackendOperationError):
    """
    Exception for failures of LDAP operations.
    """


class RollbackFailedError(LdapError):
    """
    Exception to signal that a compensating action could not be applied during
    an LDAP rollback. The directory may be left in a state that needs manual
    repair.

    Attributes:
        action: The compensating action that failed.
        pending_actions: The actions that were not undone, in undo order.
    """

    def __init__(self, message: str, action=None, pending_actions: List = None, code: Optional[int] = None):
        super().__init__(message, code=code)
        self.action = action
        self.pending_actions = pending_actions or []
