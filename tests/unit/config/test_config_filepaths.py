##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Tests for the `config_filepaths.py` module.
"""

import importlib
import os

import pytest

from gda.config import config_filepaths


@pytest.fixture
def reload_filepaths(monkeypatch: pytest.MonkeyPatch):
    """
    Reload `config_filepaths` under a modified environment and restore it afterwards.

    Args:
        monkeypatch: PyTest monkeypatch fixture.

    Yields:
        A function taking the value of `GDA_HOME`, or None to unset it, and returning the reloaded module.
    """

    def _reload(gda_home):
        if gda_home is None:
            monkeypatch.delenv("GDA_HOME", raising=False)
        else:
            monkeypatch.setenv("GDA_HOME", gda_home)
        return importlib.reload(config_filepaths)

    yield _reload
    monkeypatch.undo()
    importlib.reload(config_filepaths)


@pytest.mark.parametrize(
    "gda_home, expected",
    [
        ("/srv/myapp/gda", "/srv/myapp/gda"),
        ("", os.path.join(os.path.expanduser("~"), ".gda")),
        (None, os.path.join(os.path.expanduser("~"), ".gda")),
    ],
)
def test_gda_home(reload_filepaths, gda_home, expected: str):
    """
    Test that the environment overrides the home directory unless it is empty.

    Args:
        reload_filepaths: Reloads the module under a given `GDA_HOME`.
        gda_home: The value of the environment variable, None if unset.
        expected: The resulting home directory.
    """
    module = reload_filepaths(gda_home)
    assert module.GDA_HOME == expected
    assert module.APP_FILENAME == "app.yaml"
