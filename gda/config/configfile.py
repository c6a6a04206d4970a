##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
This module provides functionality for locating, reading and applying the
application configuration file (`app.yaml`).
"""
import logging
import os
from typing import Dict, Optional

from gda.config import Config
from gda.config.config_filepaths import APP_FILENAME, GDA_HOME
from gda.exceptions import ConfigurationError
from gda.log_formatter import setup_logging
from gda.utils import load_yaml


LOG: logging.Logger = logging.getLogger(__name__)


def load_config(filepath: str) -> Optional[Dict]:
    """
    Reads a GDA YAML configuration file and returns its contents as a dictionary.

    Args:
        filepath: The path to the YAML configuration file.

    Returns:
        A dictionary containing the contents of the YAML file or None if file doesn't exist.
    """
    if not os.path.isfile(filepath):
        LOG.info(f"No app config file at {filepath}")
        return None
    LOG.info(f"Reading app config from file {filepath}")
    return load_yaml(filepath) or {}


def find_config_file(path: str = None) -> Optional[str]:
    """
    Locate the application configuration file (`app.yaml`).

    If a `path` is given only that location is checked; it may name the file
    itself or the directory holding it. Otherwise the following fallback
    sequence is used:
      1. Check for `app.yaml` in the current working directory.
      2. Check for `app.yaml` in the `GDA_HOME` directory.

    Args:
        path: A specific file or directory to look for `app.yaml`.

    Returns:
        The full path to the `app.yaml` file if found, otherwise `None`.
    """
    if path is None:
        local_app = os.path.join(os.getcwd(), APP_FILENAME)
        if os.path.isfile(local_app):
            return local_app

        path_app = os.path.join(GDA_HOME, APP_FILENAME)
        if os.path.isfile(path_app):
            return path_app

        return None

    if os.path.isfile(path):
        return path

    app_path = os.path.join(path, APP_FILENAME)
    if os.path.isfile(app_path):
        return app_path

    return None


def apply_logging_settings(config: Config):
    """
    Configure the `gda` logger from the `logging` section of a configuration.
    Nothing happens when the section is missing.

    Args:
        config: The loaded configuration.
    """
    if config.logging is None:
        return
    setup_logging(
        logger=logging.getLogger("gda"),
        log_level=str(getattr(config.logging, "level", "INFO")).upper(),
        colors=getattr(config.logging, "colors", True),
    )


def get_config(path: Optional[str] = None) -> Config:
    """
    Loads a GDA configuration file, applies its logging settings and returns it.

    Args:
        path: The file or directory to search for the configuration file.
            If `None`, default search paths are used.

    Returns:
        The `Config` object holding the `sql`, `ldap` and `logging` sections.

    Raises:
        ConfigurationError: If the configuration file cannot be found.
    """
    filepath = find_config_file(path)
    if filepath is None:
        raise ConfigurationError(
            f"Cannot find a GDA config file! Create '{APP_FILENAME}' in the working directory or in '{GDA_HOME}'"
        )
    config = Config(load_config(filepath))
    apply_logging_settings(config)
    return config
