##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Console logging for applications that let GDA configure the `gda` logger.

Records name the emitting module, e.g. `gda.backends.ldap.ldap_accessor`, so that
SQL statements, LDAP primitives and polyglot coordination can be told apart.
"""

import logging
import sys

import coloredlogs


FORMATS = {
    "DEFAULT": "[%(asctime)s: %(levelname)s] [%(name)s] %(message)s",
    "DEBUG": "[%(asctime)s: %(levelname)s] [%(name)s:%(lineno)d] %(message)s",
}


class GdaStreamHandler(logging.StreamHandler):
    """Stream handler installed by `setup_logging`, replaced when it runs again."""


def setup_logging(logger: logging.Logger, log_level: str = "INFO", colors: bool = True):
    """
    Attach a stdout handler to a logger and set its level. Loading the
    configuration twice replaces the handler instead of doubling the output.

    Args:
        logger: The logger to configure, normally `logging.getLogger("gda")`.
        log_level: Logger level name.
        colors: If True colored output is installed through coloredlogs.
    """
    fmt = FORMATS["DEBUG"] if str(log_level).upper() == "DEBUG" else FORMATS["DEFAULT"]
    for handler in [handler for handler in logger.handlers if isinstance(handler, GdaStreamHandler)]:
        logger.removeHandler(handler)

    handler = GdaStreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(handler)
    logger.setLevel(log_level)
    logger.propagate = False

    if colors is True:
        coloredlogs.install(level=log_level, logger=logger, fmt=fmt)
