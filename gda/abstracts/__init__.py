##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
The `abstracts` package provides ABC classes that can be used throughout
GDA's codebase.

Modules:
    factory: Contains `GdaBaseFactory`, used to manage pluggable components in GDA.
"""

from gda.abstracts.factory import GdaBaseFactory


__all__ = ["GdaBaseFactory"]
