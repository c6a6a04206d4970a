##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Tests for the `ordering.py` module.
"""

from typing import Tuple

import pytest

from gda.entities.entity import Entity
from gda.entities.field_definition import FieldDefinition, PolyglotFieldType
from gda.entities.ordering import sort_entities
from gda.exceptions import GdaError, PolyglotError


class Player(Entity):
    FD_NAME = FieldDefinition("name", False, PolyglotFieldType.STRING)
    FD_TEAM = FieldDefinition("team", True, PolyglotFieldType.STRING)
    FD_SCORE = FieldDefinition("score", True, PolyglotFieldType.INTEGER)
    FD_NICKNAMES = FieldDefinition("nicknames", True, PolyglotFieldType.LIST)

    @classmethod
    def get_key_fields(cls) -> Tuple[str, ...]:
        return ("name",)


def names(players):
    return [player.name for player in players]


@pytest.fixture
def players():
    return [
        Player(name="ann", team="red", score=3),
        Player(name="bob", team="blue", score=None),
        Player(name="cid", team="red", score=7),
        Player(name="dan", team="blue", score=3),
    ]


@pytest.mark.parametrize(
    "ascending, expected",
    [
        (True, ["bob", "ann", "dan", "cid"]),
        (False, ["bob", "cid", "ann", "dan"]),
    ],
)
def test_missing_values_first(players, ascending: bool, expected):
    """
    Test that missing values come first whatever the direction and that the sort is stable.

    Args:
        players: The entities to sort.
        ascending: The direction.
        expected: The expected order of names.
    """
    assert names(sort_entities(players, {"score": ascending})) == expected


def test_ties_fall_through(players):
    """
    Test that ties of the first field are decided by the next field.

    Args:
        players: The entities to sort.
    """
    assert names(sort_entities(players, {"team": True, "score": False})) == ["bob", "dan", "cid", "ann"]


def test_input_is_not_modified(players):
    """
    Test that a new list is returned.

    Args:
        players: The entities to sort.
    """
    before = list(players)
    result = sort_entities(players, {"name": False})
    assert players == before
    assert result is not players


def test_empty_order_keeps_order(players):
    """
    Test that no ordering keeps the input order.

    Args:
        players: The entities to sort.
    """
    assert names(sort_entities(players, {})) == ["ann", "bob", "cid", "dan"]


def test_unknown_field(players):
    """
    Test that ordering by an undeclared field raises the requested error.

    Args:
        players: The entities to sort.
    """
    with pytest.raises(PolyglotError, match="unknown field 'age'"):
        sort_entities(players, {"age": True}, PolyglotError)


def test_list_values_cannot_be_ordered():
    """
    Test that list values are refused.
    """
    players = [Player(name="ann", nicknames=["a"]), Player(name="bob", nicknames=["b"])]
    with pytest.raises(GdaError, match="composite field 'nicknames'"):
        sort_entities(players, {"nicknames": True})


def test_incomparable_values():
    """
    Test that values of different types are refused.
    """
    players = [Player(name="ann", score=1), Player(name="bob", score="two")]
    with pytest.raises(GdaError, match="cannot be compared"):
        sort_entities(players, {"score": True})
