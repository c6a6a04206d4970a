##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Test the functionality of the Config object.
"""

from copy import copy
from types import SimpleNamespace

from gda.config import Config
from tests.fixture_types import FixtureDict


class TestConfig:
    """
    Class for testing the Config object.
    """

    def test_config_creation(self, app_dict: FixtureDict[str, dict]):
        """
        Test the creation of the Config object. Each section should be turned into a
        namespace and saved to its respective attribute.

        Args:
            app_dict: The contents of a complete `app.yaml` file.
        """
        config = Config(app_dict)

        assert config.sql == SimpleNamespace(**app_dict["sql"])
        assert config.ldap == SimpleNamespace(**app_dict["ldap"])
        assert config.logging == SimpleNamespace(**app_dict["logging"])

    def test_config_creation_missing_sections(self):
        """
        Test that missing sections are left as None and unknown sections are ignored.
        """
        config = Config({"sql": {"dialect": "sqlite"}, "unknown": {"key": "value"}})

        assert config.sql == SimpleNamespace(dialect="sqlite")
        assert config.ldap is None
        assert config.logging is None
        assert not hasattr(config, "unknown")

    def test_config_creation_empty(self):
        """
        Test that an empty configuration file (loaded as None) gives an empty Config.
        """
        config = Config(None)
        assert config.sql is None and config.ldap is None and config.logging is None

    def test_config_copy(self, app_dict: FixtureDict[str, dict]):
        """
        Test the `__copy__` magic method of the Config object. Each section should
        be copied but the sections should be different objects.

        Args:
            app_dict: The contents of a complete `app.yaml` file.
        """
        orig_config = Config(app_dict)
        copied_config = copy(orig_config)

        assert orig_config.sql == copied_config.sql
        assert orig_config.ldap == copied_config.ldap
        assert orig_config.logging == copied_config.logging
        assert orig_config.ldap is not copied_config.ldap
        assert id(orig_config) != id(copied_config)

    def test_config_str_masks_passwords(self, app_dict: FixtureDict[str, dict]):
        """
        Test the `__str__` magic method of the Config object. Passwords must not be printed.

        Args:
            app_dict: The contents of a complete `app.yaml` file.
        """
        del app_dict["logging"]
        config = Config(app_dict)

        actual = str(config)

        assert actual.startswith("config:\n  sql:\n    dialect: 'sqlite'\n")
        assert "    bind_dn: 'cn=admin,dc=example,dc=org'\n" in actual
        assert "    password: ******" in actual
        assert "secret" not in actual
        assert actual.endswith("  logging:\n    None")
