from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from src.adapters.clock import SystemClock
from src.adapters.local_storage import InMemoryLocalCache, create_local_cache
from src.adapters.remote_table import (
    RemoteClickEventStore,
    RemoteCollectionStore,
    RemoteTableClient,
    create_remote_client,
)
from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite_db import SQLiteClickEventStore, SQLiteCollectionStore
from src.components.analytics import (
    AffiliateAnalyticsService,
    DashboardFacade,
    EventStorePort,
    InMemoryClickEventStore,
    LocalCachePort,
    TimePort,
    create_analytics_service,
)
from src.components.blog import BLOG_POSTS, BlogPostService, create_blog_service
from src.components.persistence import (
    CachedCollectionStore,
    CollectionStorePort,
    create_resilient_store,
)
from src.rules.models import Rules

logger = logging.getLogger(__name__)

DEFAULT_MIGRATIONS_DIR = "migrations"


@dataclass
class ServiceContext:
    analytics_service: AffiliateAnalyticsService
    blog_service: BlogPostService
    event_store: EventStorePort
    cache: LocalCachePort
    clock: TimePort
    rules: Rules
    remote_client: RemoteTableClient | None = None

    @classmethod
    def create(
        cls,
        rules: Rules,
        *,
        cache_path: str | Path | None = None,
        migrations_dir: str = DEFAULT_MIGRATIONS_DIR,
        clock: TimePort | None = None,
    ) -> ServiceContext:
        clock = clock or SystemClock(rules.analytics.timezone)

        # Local tier
        cache: Any
        if rules.backend.kind == "memory":
            cache = InMemoryLocalCache(key_prefix=rules.cache.key_prefix)
        else:
            cache = create_local_cache(
                cache_path,
                key_prefix=rules.cache.key_prefix,
                default_path=rules.cache.path,
            )

        # Primary tier
        remote_client: RemoteTableClient | None = None
        event_store: EventStorePort
        posts_primary: CollectionStorePort

        if rules.backend.kind == "remote":
            remote_client = create_remote_client(
                rules.backend.url or "",
                os.environ.get(rules.backend.api_key_env),
                timeout=rules.backend.timeout_seconds,
            )
            event_store = RemoteClickEventStore(remote_client)
            posts_primary = RemoteCollectionStore(remote_client, BLOG_POSTS)
        elif rules.backend.kind == "sqlite":
            db_path = rules.backend.sqlite_path
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
            applied = SQLiteMigrator(db_path, migrations_dir).run_migrations()
            if applied:
                logger.info("Applied %d migrations to %s", len(applied), db_path)
            event_store = SQLiteClickEventStore(db_path)
            posts_primary = SQLiteCollectionStore(db_path, BLOG_POSTS)
        else:
            event_store = InMemoryClickEventStore()
            posts_primary = CachedCollectionStore(InMemoryLocalCache(), BLOG_POSTS)

        analytics_service = create_analytics_service(
            event_store,
            cache=cache,
            time_port=clock,
            config=rules.analytics.to_config(),
        )
        blog_service = create_blog_service(
            create_resilient_store(posts_primary, cache),
            time_port=clock,
        )

        return cls(
            analytics_service=analytics_service,
            blog_service=blog_service,
            event_store=event_store,
            cache=cache,
            clock=clock,
            rules=rules,
            remote_client=remote_client,
        )

    def dashboard(self) -> DashboardFacade:
        """New dashboard facade seeded with the configured default period."""
        return DashboardFacade(
            self.analytics_service,
            self.cache,
            default_period=self.rules.analytics.default_period,
        )

    async def aclose(self) -> None:
        if self.remote_client is not None:
            await self.remote_client.close()
