"""
Tests for ServiceContext wiring across backend kinds.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import pytest

from src.adapters.local_storage import InMemoryLocalCache, JsonFileLocalCache
from src.adapters.remote_table import RemoteClickEventStore
from src.adapters.sqlite_db import SQLiteClickEventStore
from src.app_shell.context import ServiceContext
from src.components.analytics import (
    DashboardState,
    InMemoryClickEventStore,
    PresetPeriod,
)
from src.rules.models import Rules


def make_rules(**sections: Any) -> Rules:
    return Rules.model_validate({"project": {"slug": "test", "rules_version": "1.0"}, **sections})


def test_memory_backend(memory_ctx: ServiceContext) -> None:
    assert isinstance(memory_ctx.event_store, InMemoryClickEventStore)
    assert isinstance(memory_ctx.cache, InMemoryLocalCache)


def test_sqlite_backend_runs_migrations(tmp_path: Path) -> None:
    db_path = tmp_path / "nested" / "affiliate.db"
    rules = make_rules(
        backend={"kind": "sqlite", "sqlite_path": str(db_path)},
        cache={"path": str(tmp_path / "cache")},
    )

    ctx = ServiceContext.create(rules)

    assert isinstance(ctx.event_store, SQLiteClickEventStore)
    assert isinstance(ctx.cache, JsonFileLocalCache)
    assert db_path.exists()


def test_explicit_cache_path_wins(tmp_path: Path) -> None:
    rules = make_rules(backend={"kind": "sqlite", "sqlite_path": str(tmp_path / "a.db")})

    ctx = ServiceContext.create(rules, cache_path=tmp_path / "explicit")

    assert ctx.cache.base_path == tmp_path / "explicit"


@pytest.mark.asyncio
async def test_remote_backend_reads_key_from_env(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv("TEST_REMOTE_KEY", "secret")
    rules = make_rules(
        backend={"kind": "remote", "url": "https://x.example.co", "api_key_env": "TEST_REMOTE_KEY"},
        cache={"path": str(tmp_path / "cache")},
    )

    ctx = ServiceContext.create(rules)

    assert isinstance(ctx.event_store, RemoteClickEventStore)
    assert ctx.remote_client is not None
    assert ctx.remote_client._client.headers["apikey"] == os.environ["TEST_REMOTE_KEY"]
    await ctx.aclose()


def test_dashboard_uses_configured_default_period(clock) -> None:
    rules = make_rules(backend={"kind": "memory"}, analytics={"default_period": "30d"})
    ctx = ServiceContext.create(rules, clock=clock)

    dashboard = ctx.dashboard()

    assert dashboard.selection.preset == PresetPeriod.LAST_30_DAYS
    assert dashboard.state == DashboardState.IDLE


@pytest.mark.asyncio
async def test_dashboard_refresh_through_context(memory_ctx: ServiceContext) -> None:
    dashboard = memory_ctx.dashboard()

    metrics = await dashboard.refresh()

    assert dashboard.state == DashboardState.READY
    assert metrics is not None
    assert len(metrics.daily) == 7
