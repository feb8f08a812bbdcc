import os
from datetime import UTC, datetime

import pytest

from src.adapters.clock import FixedClock
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.app_shell.context import ServiceContext
from src.rules.models import Rules

NOW = datetime(2024, 3, 15, 12, 0, tzinfo=UTC)


@pytest.fixture
def test_data_dir(tmp_path):
    return str(tmp_path)


@pytest.fixture
def db_path(test_data_dir):
    """
    Temporary SQLite DB with the real migrations applied.
    """
    path = os.path.join(test_data_dir, "affiliate.db")
    SQLiteMigrator(path, "migrations").run_migrations()
    return path


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def memory_ctx(clock):
    """
    Full ServiceContext on the in-memory backend, pinned to a fixed clock.
    """
    rules = Rules.model_validate(
        {
            "project": {"slug": "test", "rules_version": "1.0"},
            "backend": {"kind": "memory"},
        }
    )
    return ServiceContext.create(rules, clock=clock)
