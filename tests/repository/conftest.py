"""
Repository test fixtures.

``any_repository`` runs a test against both the in-memory and the
SQLite-backed repository.
"""

import pytest

from ledger_kernel.repository.memory import InMemoryEntryRepository
from ledger_kernel.repository.sql import SqlEntryRepository


@pytest.fixture
def sql_repository(sql_session) -> SqlEntryRepository:
    return SqlEntryRepository(sql_session)


@pytest.fixture(params=["memory", "sql"])
def any_repository(request):
    if request.param == "memory":
        return InMemoryEntryRepository()
    return request.getfixturevalue("sql_repository")
