##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
Locations searched for the `app.yaml` of an application using GDA. The home
directory defaults to `~/.gda` and is overridden by the `GDA_HOME` environment
variable, unless that is empty.
"""

import os


APP_FILENAME: str = "app.yaml"
GDA_HOME_ENV: str = "GDA_HOME"
DEFAULT_GDA_HOME: str = os.path.join(os.path.expanduser("~"), ".gda")
GDA_HOME: str = os.environ.get(GDA_HOME_ENV) or DEFAULT_GDA_HOME
