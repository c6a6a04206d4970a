##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
This module contains pytest fixtures to be used throughout the entire test suite.
"""
import logging
import os
from glob import glob

import pytest
from _pytest.tmpdir import TempPathFactory

from tests.fixture_types import FixtureCallable, FixtureModification, FixtureStr


# pylint: disable=redefined-outer-name


#######################################
# Loading in Module Specific Fixtures #
#######################################

fixture_glob = os.path.join("tests", "fixtures", "**", "*.py")
pytest_plugins = [
    fixture_file.replace(os.sep, ".").replace(".py", "")
    for fixture_file in glob(fixture_glob, recursive=True)
    if not fixture_file.endswith("__init__.py")
]


#######################################
######### Fixture Definitions #########
#######################################


@pytest.fixture(scope="session")
def create_testing_dir() -> FixtureCallable:
    """
    Fixture to create a temporary testing directory.

    Returns:
        A function that creates the testing directory.
    """

    def _create_testing_dir(base_dir: str, sub_dir: str) -> str:
        """
        Helper function to create a temporary testing directory.

        Args:
            base_dir: The base directory where the testing directory will be created.
            sub_dir: The name of the subdirectory to create.

        Returns:
            The path to the created testing directory.
        """
        testing_dir = os.path.join(base_dir, sub_dir)
        if not os.path.exists(testing_dir):
            os.makedirs(testing_dir)  # Use makedirs to create intermediate directories if needed
        return testing_dir

    return _create_testing_dir


@pytest.fixture(scope="session")
def temp_output_dir(tmp_path_factory: TempPathFactory) -> FixtureStr:
    """
    This fixture will create a temporary directory to store output files of the test run.

    Args:
        tmp_path_factory: A built in factory with pytest to help create temp paths for testing.

    Returns:
        The path to the temp output directory we'll use for this test run.
    """
    return str(tmp_path_factory.mktemp("gda_testing"))


@pytest.fixture(autouse=True)
def reset_gda_logger() -> FixtureModification:
    """
    Remove handlers a test attached to the `gda` logger so that log capturing
    through `caplog` keeps working for the following tests.
    """
    yield
    logger = logging.getLogger("gda")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
