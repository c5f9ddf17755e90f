"""
SwingEats test fixtures

The suite runs against a throwaway SQLite file through aiosqlite. Settings are
read once at import, so the environment is pinned before swingeats is imported.
"""
import asyncio
import os
import tempfile
from datetime import datetime, timedelta, timezone

_DB_DIR = tempfile.mkdtemp(prefix="swingeats-test-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_DB_DIR}/test.db"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["METRICS_ENABLED"] = "false"
os.environ["IDEMPOTENCY_ENABLED"] = "false"
os.environ["SEED_ON_STARTUP"] = "false"

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from swingeats.db.database import Base, SessionLocal, engine
from swingeats.main import app
from swingeats.models import Bay, BayStatus, MenuItem
from swingeats.services.hub import NotificationHub

T0 = datetime(2026, 10, 19, 18, 0, 0, tzinfo=timezone.utc)

# (name, category, price cents, station, prep seconds, active)
MENU = [
    ("Fries", "Shareables", 700, "Fry", 300, True),
    ("Burger", "Handhelds", 1600, "FlatTop", 600, True),
    ("Quick Bite", "Shareables", 500, "Cold", 1, True),
    ("Salad", "Greens", 1200, "Cold", 240, True),
    ("Retired Nachos", "Shareables", 900, "Fry", 400, False),
]
FRIES, BURGER, QUICK, SALAD, RETIRED = 1, 2, 3, 4, 5


async def reset_database() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with SessionLocal() as session:
        session.add_all(Bay(number=n, floor=1, status=BayStatus.EMPTY) for n in range(1, 11))
        session.add_all(
            MenuItem(name=name, category=category, price=price, station=station,
                     prep_seconds=prep, active=active)
            for name, category, price, station, prep, active in MENU
        )
        await session.commit()


class FakeClock:
    """Settable clock handed to the engine so timers can be advanced in tests."""

    def __init__(self, now: datetime = T0):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


class RecordingHub(NotificationHub):
    """Hub that remembers what the engine published instead of writing sockets."""

    def __init__(self):
        super().__init__()
        self.broadcasts: list[tuple[str, object]] = []
        self.bay_messages: list[tuple[int, str, object]] = []

    def broadcast(self, message_type, data):
        self.broadcasts.append((message_type, data))
        return super().broadcast(message_type, data)

    def send_to_bay(self, bay_id, message_type, data):
        self.bay_messages.append((bay_id, message_type, data))
        return super().send_to_bay(bay_id, message_type, data)

    def reset(self):
        self.broadcasts.clear()
        self.bay_messages.clear()


# ─── Fixtures ──────────────────────────────────────────────────────────────────
@pytest_asyncio.fixture
async def session():
    await reset_database()
    async with SessionLocal() as s:
        yield s


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def recording_hub():
    return RecordingHub()


@pytest.fixture
def client():
    asyncio.run(reset_database())
    with TestClient(app) as c:
        yield c
