"""Shared fixtures."""

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from maskminder.db.migrations import run_migrations
from maskminder.db.models import Component, MaintenanceAction
from maskminder.db.repository import Repository
from maskminder.engine.clock import FixedClock

UTC = ZoneInfo("UTC")

# Monday
MONDAY = datetime(2026, 3, 2, 8, 0, tzinfo=UTC)


@pytest.fixture
def clock():
    return FixedClock(MONDAY)


@pytest.fixture
async def repo(tmp_path):
    db_path = tmp_path / "maskminder.db"
    await run_migrations(db_path)

    repository = Repository(db_path)
    await repository.connect()
    yield repository
    await repository.close()


@pytest.fixture
def make_component(repo, clock):
    async def _make(name="Water Chamber", category="water_chamber", **kwargs):
        kwargs.setdefault("tracking_mode", "calendar")
        kwargs.setdefault("created_at", clock.now())
        return await repo.create_component(Component(name=name, category=category, **kwargs))

    return _make


@pytest.fixture
def make_action(repo):
    async def _make(component_id, action_type="Daily Rinse", frequency=1, unit="days", **kwargs):
        return await repo.create_action(
            MaintenanceAction(
                component_id=component_id,
                action_type=action_type,
                schedule_frequency=frequency,
                schedule_unit=unit,
                **kwargs,
            )
        )

    return _make
