##############################################################################
# Copyright (c) Lawrence Livermore National Security, LLC and other GDA
# Project developers. See top-level LICENSE and COPYRIGHT files for dates and
# other details. No copyright assignment is required to contribute to GDA.
##############################################################################

"""
This directory is for help modularizing fixture definitions so that we don't have to
store every single fixture in the `conftest.py` file.

Every module here is loaded as a pytest plugin by `conftest.py`. Group fixtures by the
backend they build on: `sql.py` provides in-memory SQLite databases, `ldap.py` mocked
`ldap3` directories and `polyglot.py` combines the two. Fixtures building on another
module's fixtures just request them by name:

```title="example.py"
import pytest

@pytest.fixture
def example_accessor(sql_connection):
    return GenericSqlDataAccess(sql_connection)
```
"""
