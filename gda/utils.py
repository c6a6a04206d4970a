##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Module for project-wide utility functions.
"""
import base64
import hashlib
import logging
import os
from copy import deepcopy
from datetime import date, datetime
from types import SimpleNamespace
from typing import Any, Dict
from uuid import UUID

import yaml


LOG = logging.getLogger(__name__)

TRUE_STRINGS = ("1", "true")
FALSE_STRINGS = ("0", "false", "")


def load_yaml(filepath: str) -> Dict:
    """
    Safely read a YAML file and return its contents.

    Args:
        filepath: The file path to the YAML file to be read.

    Returns:
        A dict representing the contents of the YAML file.
    """
    with open(filepath, "r") as _file:
        return yaml.safe_load(_file)


def nested_dict_to_namespaces(dic: Dict) -> SimpleNamespace:
    """
    Convert a nested dictionary into a nested SimpleNamespace structure.

    Each key in the dictionary becomes an attribute of a SimpleNamespace, allowing
    for attribute-style access to the data.

    Args:
        dic: The nested dictionary to be converted.

    Returns:
        A SimpleNamespace object representing the nested structure of the input dictionary.

    Raises:
        TypeError: If the input is not a dictionary.
    """

    def recurse(dic):
        if not isinstance(dic, dict):
            return dic
        for key, val in list(dic.items()):
            dic[key] = recurse(val)
        return SimpleNamespace(**dic)

    if not isinstance(dic, dict):
        raise TypeError(f"{dic} is not a dict")

    new_dic = deepcopy(dic)
    return recurse(new_dic)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _to_number(value: str):
    try:
        return float(value.strip())
    except ValueError:
        return None


def loosely_equal(first: Any, second: Any) -> bool:
    """
    Compare two field values the way entity change tracking needs it: values that
    only differ in their representation (e.g. `1` and `"1"`, a UUID and its string)
    are considered equal.

    Args:
        first: The first value.
        second: The second value.

    Returns:
        True if both values represent the same thing, False otherwise.
    """
    if first is None or second is None:
        other = second if first is None else first
        return other is None or other == ""

    if isinstance(first, (list, tuple)) and isinstance(second, (list, tuple)):
        return len(first) == len(second) and all(loosely_equal(a, b) for a, b in zip(first, second))

    if type(first) is type(second):  # pylint: disable=unidiomatic-typecheck
        return first == second

    if isinstance(first, bool) or isinstance(second, bool):
        flag, other = (first, second) if isinstance(first, bool) else (second, first)
        if _is_number(other):
            return flag == bool(other)
        if isinstance(other, str):
            lowered = other.strip().lower()
            return lowered in (TRUE_STRINGS if flag else FALSE_STRINGS)
        return False

    if _is_number(first) and _is_number(second):
        return first == second

    if _is_number(first) or _is_number(second):
        number, other = (first, second) if _is_number(first) else (second, first)
        if isinstance(other, str):
            return _to_number(other) == number
        return False

    if isinstance(first, (UUID, date, datetime)) or isinstance(second, (UUID, date, datetime)):
        return _stringify(first) == _stringify(second)

    return first == second


def _stringify(value: Any) -> str:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def hash_password(password: str, salt: bytes = None) -> str:
    """
    Hash a password in the salted SHA-1 format understood by LDAP servers.

    Args:
        password: The clear text password.
        salt: The salt to use. A random one is generated if not given.

    Returns:
        The hashed password prefixed with `{SSHA}`.
    """
    if salt is None:
        salt = os.urandom(8)
    digest = hashlib.sha1(password.encode("utf-8") + salt).digest()
    return "{SSHA}" + base64.b64encode(digest + salt).decode("ascii")
