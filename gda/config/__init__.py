##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Used to store the application configuration.

The `config` package loads the `app.yaml` file of an application using GDA and
exposes the connection settings of the SQL database and the LDAP directory as
well as the logging settings.

Modules:
    config_filepaths.py: Constants for the locations searched for `app.yaml`.
    configfile.py: Locating, reading and applying configuration files.
"""
from copy import copy
from types import SimpleNamespace
from typing import Dict, List, Optional

from gda.utils import nested_dict_to_namespaces


class Config:  # pylint: disable=R0903
    """
    The Config class, meant to store all GDA config settings in one place.

    Attributes:
        sql (Optional[SimpleNamespace]): Connection settings of the SQL database.
        ldap (Optional[SimpleNamespace]): Connection settings of the LDAP directory.
        logging (Optional[SimpleNamespace]): Log level and coloring settings.

    Methods:
        __copy__: Creates a shallow copy of the Config instance.
        __str__: Returns a formatted string representation of the Config instance.
        load_app_into_namespaces: Converts the provided configuration dictionary into namespaces
            and assigns them to the Config instance's attributes.
    """

    SECTIONS: List[str] = ["sql", "ldap", "logging"]

    def __init__(self, app_dict: Dict):
        """
        Initializes the Config instance with configuration data from a dictionary.

        Args:
            app_dict: A dictionary containing configuration data for the application.
                Each of the keys "sql", "ldap" and "logging" is converted into a
                `SimpleNamespace`; missing keys leave the attribute as `None`.
        """
        self.sql: Optional[SimpleNamespace] = None
        self.ldap: Optional[SimpleNamespace] = None
        self.logging: Optional[SimpleNamespace] = None
        self.load_app_into_namespaces(app_dict or {})

    def __copy__(self) -> "Config":
        """
        Creates a shallow copy of the Config instance.

        Returns:
            A new Config instance with copied section namespaces.
        """
        cls = self.__class__
        result = cls.__new__(cls)
        result.__dict__.update({section: copy(self.__dict__[section]) for section in self.SECTIONS})
        return result

    def __str__(self) -> str:
        """
        Returns a formatted string representation of the Config instance. Passwords
        are masked.

        Returns:
            A string containing the values of every section.
        """
        formatted_str = "config:"
        for name in self.SECTIONS:
            attr = getattr(self, name)
            if attr is not None:
                items = (
                    f"    {k}: {'******' if k == 'password' else repr(v)}" for k, v in attr.__dict__.items()
                )
                joined_items = "\n".join(items)
                formatted_str += f"\n  {name}:\n{joined_items}"
            else:
                formatted_str += f"\n  {name}:\n    None"
        return formatted_str

    def load_app_into_namespaces(self, app_dict: Dict):
        """
        Converts the provided application dictionary into namespaces and assigns them
        to the Config instance's attributes.

        Args:
            app_dict: A dictionary containing configuration data for the application.
        """
        for field in self.SECTIONS:
            # The sections are optional
            if app_dict.get(field) is not None:
                setattr(self, field, nested_dict_to_namespaces(app_dict[field]))
