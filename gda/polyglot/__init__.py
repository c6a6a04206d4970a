##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
The `polyglot` package joins entities stored in different backends into logical
entities.

Modules:
    polyglot_entity.py: `PolyglotEntity` and `PolyglotReference`.
    polyglot_accessor.py: `GenericPolyglotDataAccess`, the coordinating accessor.
"""

from gda.polyglot.polyglot_accessor import GenericPolyglotDataAccess
from gda.polyglot.polyglot_entity import PolyglotEntity, PolyglotReference


__all__ = ["GenericPolyglotDataAccess", "PolyglotEntity", "PolyglotReference"]
