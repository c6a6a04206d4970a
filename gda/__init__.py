##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
GDA: Generic Data Access.

This package lets application code work with typed entities without knowing whether
they are persisted in a relational database, an LDAP directory, or split across both.
"""

import os


__version__ = "0.4.0"
VERSION = __version__
PATH_TO_PROJ = os.path.join(os.path.dirname(__file__), "")
