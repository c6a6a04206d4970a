##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Tests for the `utils.py` module.
"""

import base64
import hashlib
import os
from datetime import date, datetime
from types import SimpleNamespace
from uuid import UUID

import pytest

from gda.utils import hash_password, load_yaml, loosely_equal, nested_dict_to_namespaces
from tests.fixture_types import FixtureStr


UUID_VALUE = UUID("12345678-1234-5678-1234-567812345678")


class TestLooselyEqual:
    """
    Tests for `loosely_equal`, the comparison used by entity change tracking.
    """

    @pytest.mark.parametrize(
        "first, second",
        [
            (None, None),
            (None, ""),
            ("", None),
            ("abc", "abc"),
            (1, "1"),
            ("2.5", 2.5),
            (1, 1.0),
            (True, 1),
            (False, 0),
            (True, "true"),
            (True, " TRUE "),
            (False, "0"),
            (False, ""),
            (UUID_VALUE, str(UUID_VALUE)),
            (date(2024, 3, 15), "2024-03-15"),
            (datetime(2024, 3, 15, 8, 30), "2024-03-15T08:30:00"),
            (["a", 1], ("a", "1")),
            ([], []),
        ],
    )
    def test_equal_values(self, first, second):
        """
        Test that values only differing in their representation are equal.

        Args:
            first: The first value.
            second: The second value.
        """
        assert loosely_equal(first, second)
        assert loosely_equal(second, first)

    @pytest.mark.parametrize(
        "first, second",
        [
            (None, 0),
            (None, False),
            (None, "None"),
            ("abc", "abd"),
            (1, "2"),
            (1, "one"),
            (True, 0),
            (True, "false"),
            (False, "yes"),
            (UUID_VALUE, "12345678"),
            (["a"], ["a", "b"]),
            (["a"], "a"),
        ],
    )
    def test_unequal_values(self, first, second):
        """
        Test that values representing different things are not equal.

        Args:
            first: The first value.
            second: The second value.
        """
        assert not loosely_equal(first, second)
        assert not loosely_equal(second, first)


def test_nested_dict_to_namespaces():
    """
    Test that nested dictionaries become nested namespaces and the input stays untouched.
    """
    dic = {"sql": {"dialect": "sqlite", "options": {"timeout": 5}}, "flag": True}
    result = nested_dict_to_namespaces(dic)

    assert result == SimpleNamespace(
        sql=SimpleNamespace(dialect="sqlite", options=SimpleNamespace(timeout=5)), flag=True
    )
    assert dic["sql"]["options"] == {"timeout": 5}


def test_nested_dict_to_namespaces_rejects_non_dict():
    """
    Test that anything but a dictionary raises a TypeError.
    """
    with pytest.raises(TypeError):
        nested_dict_to_namespaces(["not", "a", "dict"])


def test_load_yaml(temp_output_dir: FixtureStr):
    """
    Test that a YAML file is read into a dictionary.

    Args:
        temp_output_dir: The path to the temporary output directory for this test run.
    """
    filepath = os.path.join(temp_output_dir, "test_load_yaml.yaml")
    with open(filepath, "w") as yaml_file:
        yaml_file.write("sql:\n  dialect: sqlite\n  port: 5432\n")

    assert load_yaml(filepath) == {"sql": {"dialect": "sqlite", "port": 5432}}


class TestHashPassword:
    """
    Tests for `hash_password`.
    """

    def test_hash_with_salt_is_verifiable(self):
        """
        Test that the hash consists of the SHA-1 digest of password and salt, followed by the salt.
        """
        salt = b"12345678"
        hashed = hash_password("secret", salt)

        assert hashed.startswith("{SSHA}")
        decoded = base64.b64decode(hashed[len("{SSHA}") :])
        assert decoded[20:] == salt
        assert decoded[:20] == hashlib.sha1(b"secret" + salt).digest()

    def test_random_salt(self):
        """
        Test that two hashes of the same password differ when no salt is given.
        """
        assert hash_password("secret") != hash_password("secret")
