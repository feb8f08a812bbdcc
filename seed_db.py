import asyncio
import os
import random
import sys
from datetime import UTC, datetime, timedelta

# Add root to pythonpath
sys.path.append(os.getcwd())

from src.adapters.sqlite.migrator import SQLiteMigrator
from src.adapters.sqlite_db import SQLiteClickEventStore
from src.components.analytics import AFFILIATE_CLICK
from src.core.entities import ClickEvent

SOURCES = ["blog", "homepage", "newsletter", "instagram", None]
PRODUCTS = [
    ("101", "Standing Desk"),
    ("102", "Ergonomic Chair"),
    ("103", "Monitor Arm"),
    ("104", "Desk Lamp"),
]


def build_events(days: int, per_day: int, now: datetime) -> list[ClickEvent]:
    rng = random.Random(42)
    events = []
    for offset in range(days):
        day = now - timedelta(days=offset)
        for _ in range(rng.randint(0, per_day)):
            product_id, product_name = rng.choice(PRODUCTS)
            events.append(
                ClickEvent(
                    occurred_at=day.replace(
                        hour=rng.randint(0, 23),
                        minute=rng.randint(0, 59),
                    ),
                    source=rng.choice(SOURCES),
                    product_id=product_id,
                    product_name=product_name,
                )
            )
    return events


async def seed() -> None:
    data_dir = os.environ.get("AFFILIATE_DATA_DIR", "./data")
    os.makedirs(data_dir, exist_ok=True)

    db_path = f"{data_dir}/affiliate.db"
    print(f"Seeding to {db_path}")

    SQLiteMigrator(db_path, "migrations").run_migrations()
    store = SQLiteClickEventStore(db_path)

    events = build_events(days=120, per_day=12, now=datetime.now(UTC))
    for event in events:
        await store.record(event, AFFILIATE_CLICK)

    print(f"Seeded {len(events)} click events.")


if __name__ == "__main__":
    asyncio.run(seed())
