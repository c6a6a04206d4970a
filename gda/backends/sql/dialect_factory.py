##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Dialect factory for selecting and instantiating SQL dialects in GDA.

This module defines the `SqlDialectFactory` class, which maps the `dialect`
setting of the `sql` configuration section to a `SqlDialect` implementation.
Additional dialects can be provided by other packages through the
`gda.sql_dialects` entry point group.
"""

from typing import Any, Type

from gda.abstracts import GdaBaseFactory
from gda.backends.sql.sql_dialects import MySqlDialect, PostgreSqlDialect, SqlDialect, SQLiteDialect
from gda.exceptions import ConfigurationError


class SqlDialectFactory(GdaBaseFactory):
    """
    Factory class for managing and instantiating supported SQL dialects.

    Methods:
        register: Register a new dialect class and optional aliases.
        list_available: Return a list of supported dialect names.
        create: Instantiate a dialect class by name or alias.
    """

    def _register_builtins(self):
        """
        Register built-in dialect implementations.
        """
        self.register("sqlite", SQLiteDialect, aliases=["sqlite3"])
        self.register("mysql", MySqlDialect, aliases=["mariadb"])
        self.register("postgresql", PostgreSqlDialect, aliases=["postgres", "pgsql"])

    def _validate_component(self, component_class: Any):
        """
        Ensure registered component is a subclass of SqlDialect.

        Args:
            component_class: The class to validate.

        Raises:
            TypeError: If the component does not subclass SqlDialect.
        """
        if not (isinstance(component_class, type) and issubclass(component_class, SqlDialect)):
            raise TypeError(f"{component_class} must inherit from SqlDialect")

    def _entry_point_group(self) -> str:
        """
        Entry point group used for discovering dialect plugins.

        Returns:
            The entry point namespace for GDA dialect plugins.
        """
        return "gda.sql_dialects"

    def _raise_component_error_class(self, msg: str) -> Type[Exception]:
        """
        Raise a configuration error for unsupported dialects.

        Args:
            msg: The message to add to the error being raised.
        """
        raise ConfigurationError(msg)


dialect_factory = SqlDialectFactory()
