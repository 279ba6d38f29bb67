"""Tests for the schedule engine."""

from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from maskminder.engine.schedule import ScheduleEngine
from maskminder.errors import NotFoundError, ValidationError

UTC = ZoneInfo("UTC")

MONDAY_8AM = datetime(2026, 3, 2, 8, 0, tzinfo=UTC)


async def test_daily_rinse_completed_on_time(repo, clock, make_component, make_action):
    """Due Monday 08:00, done Monday 10:00: on time, next due Tuesday 08:00."""
    component = await make_component("Water Chamber", "water_chamber")
    action = await make_action(component.id, "Daily Rinse", 1, "days", next_due=MONDAY_8AM)

    clock.set(datetime(2026, 3, 2, 10, 0, tzinfo=UTC))
    engine = ScheduleEngine(repo, clock)
    result = await engine.complete(action.id)

    assert result.was_overdue is False
    assert result.next_due == datetime(2026, 3, 3, 8, 0, tzinfo=UTC)

    stored = await repo.get_action(action.id)
    assert stored.next_due == datetime(2026, 3, 3, 8, 0, tzinfo=UTC)
    assert stored.last_completed == datetime(2026, 3, 2, 10, 0, tzinfo=UTC)

    logs = await repo.get_logs_by_action(action.id)
    assert len(logs) == 1
    assert logs[0].id == result.log_id
    assert logs[0].was_overdue is False
    assert logs[0].logged_by == "user"


async def test_daily_rinse_completed_late(repo, clock, make_component, make_action):
    """Missed Monday and Tuesday, done Wednesday 09:00: late, next due Thursday 08:00."""
    component = await make_component("Water Chamber", "water_chamber")
    action = await make_action(component.id, "Daily Rinse", 1, "days", next_due=MONDAY_8AM)

    clock.set(datetime(2026, 3, 4, 9, 0, tzinfo=UTC))
    engine = ScheduleEngine(repo, clock)
    result = await engine.complete(action.id, notes="Finally")

    assert result.was_overdue is True
    assert result.next_due == datetime(2026, 3, 5, 8, 0, tzinfo=UTC)

    logs = await repo.get_logs_by_action(action.id)
    assert logs[0].was_overdue is True
    assert logs[0].notes == "Finally"


async def test_complete_with_backdated_time(repo, clock, make_component, make_action):
    """Test that lateness is judged at the completion time, not the recording time."""
    component = await make_component()
    action = await make_action(component.id, next_due=MONDAY_8AM)

    clock.set(datetime(2026, 3, 3, 9, 0, tzinfo=UTC))
    engine = ScheduleEngine(repo, clock)
    result = await engine.complete(action.id, completed_at=datetime(2026, 3, 2, 22, 0, tzinfo=UTC))

    assert result.was_overdue is False
    assert result.next_due == datetime(2026, 3, 4, 8, 0, tzinfo=UTC)


async def test_complete_uninitialized_anchors_on_completion(repo, clock, make_component, make_action):
    """Test completing an action that has no due date yet."""
    component = await make_component()
    action = await make_action(component.id, "Weekly Wash", 7)

    engine = ScheduleEngine(repo, clock)
    result = await engine.complete(action.id)

    assert result.was_overdue is False
    assert result.next_due == clock.now() + timedelta(days=7)


async def test_skip_never_logs(repo, clock, make_component, make_action):
    """Test that skip advances one cadence step and writes no log."""
    component = await make_component()
    action = await make_action(component.id, "Weekly Wash", 7, next_due=MONDAY_8AM)

    clock.set(datetime(2026, 3, 4, 9, 0, tzinfo=UTC))
    engine = ScheduleEngine(repo, clock)
    next_due = await engine.skip(action.id)

    assert next_due == datetime(2026, 3, 9, 8, 0, tzinfo=UTC)
    assert await repo.get_logs_by_action(action.id) == []

    stored = await repo.get_action(action.id)
    assert stored.next_due == next_due
    assert stored.last_completed is None


async def test_snooze(repo, clock, make_component, make_action):
    """Test that snooze pushes the due date to now + hours."""
    component = await make_component()
    action = await make_action(component.id, next_due=MONDAY_8AM)

    engine = ScheduleEngine(repo, clock)
    snoozed = await engine.snooze(action.id)

    assert snoozed == clock.now() + timedelta(hours=4)
    assert (await repo.get_action(action.id)).next_due == snoozed

    snoozed = await engine.snooze(action.id, 24)
    assert snoozed == clock.now() + timedelta(hours=24)


async def test_snooze_rejects_non_positive_hours(repo, clock, make_component, make_action):
    """Test that snooze needs a positive number of hours."""
    component = await make_component()
    action = await make_action(component.id, next_due=MONDAY_8AM)
    engine = ScheduleEngine(repo, clock)

    with pytest.raises(ValidationError):
        await engine.snooze(action.id, 0)

    with pytest.raises(ValidationError):
        await engine.snooze(action.id, -2)

    assert (await repo.get_action(action.id)).next_due == MONDAY_8AM


async def test_snooze_has_no_upper_bound(repo, clock, make_component, make_action):
    """Test that long snoozes are accepted as given."""
    component = await make_component()
    action = await make_action(component.id, next_due=MONDAY_8AM)
    engine = ScheduleEngine(repo, clock)

    snoozed = await engine.snooze(action.id, 200)

    assert snoozed == clock.now() + timedelta(hours=200)
    assert (await repo.get_action(action.id)).next_due == snoozed


async def test_reschedule(repo, clock, make_component, make_action):
    """Test setting the due date directly, including a naive local datetime."""
    component = await make_component()
    action = await make_action(component.id, next_due=MONDAY_8AM)
    engine = ScheduleEngine(repo, clock)

    new_due = datetime(2026, 3, 20, 7, 0, tzinfo=UTC)
    updated = await engine.reschedule(action.id, new_due)
    assert updated.next_due == new_due
    assert (await repo.get_action(action.id)).next_due == new_due

    await engine.reschedule(action.id, datetime(2026, 3, 21, 7, 0))
    assert (await repo.get_action(action.id)).next_due == datetime(2026, 3, 21, 7, 0, tzinfo=UTC)


async def test_initialize_is_idempotent(repo, clock, make_component, make_action):
    """Test that initialize sets the first due date once."""
    component = await make_component()
    action = await make_action(component.id, "Weekly Wash", 7, notification_time="09:00")
    engine = ScheduleEngine(repo, clock)

    initialized = await engine.initialize(action.id)
    assert initialized.next_due == datetime(2026, 3, 9, 9, 0, tzinfo=UTC)

    clock.advance(days=2)
    again = await engine.initialize(action.id)
    assert again.next_due == datetime(2026, 3, 9, 9, 0, tzinfo=UTC)


async def test_initialize_all(repo, clock, make_component, make_action):
    """Test that only unscheduled actions are initialized."""
    component = await make_component()
    await make_action(component.id, "Daily Rinse", 1)
    await make_action(component.id, "Weekly Wash", 7)
    await make_action(component.id, "Replace", 90, next_due=MONDAY_8AM)

    engine = ScheduleEngine(repo, clock)

    assert await engine.initialize_all() == 2
    assert await engine.initialize_all() == 0
    assert all(a.next_due is not None for a in await repo.get_actions())


async def test_missing_action_raises_not_found(repo, clock):
    """Test NotFoundError for unknown ids."""
    engine = ScheduleEngine(repo, clock)

    with pytest.raises(NotFoundError) as exc_info:
        await engine.complete(999)
    assert exc_info.value.kind == "action"
    assert exc_info.value.record_id == 999

    with pytest.raises(NotFoundError):
        await engine.skip(999)

    with pytest.raises(NotFoundError):
        await engine.snooze(999)

    with pytest.raises(NotFoundError):
        await engine.update_usage(999)

    assert await repo.get_logs() == []


async def test_usage_threshold_makes_action_due(repo, clock, make_component, make_action):
    """Thirty nights of use on a 30-use filter make it due on the 30th call."""
    component = await make_component("Disposable Filter", "filter", tracking_mode="usage")
    placeholder = clock.now() + timedelta(days=30)
    action = await make_action(component.id, "Replace Filter", 30, "uses", next_due=placeholder)

    engine = ScheduleEngine(repo, clock)

    for night in range(1, 30):
        assert await engine.update_usage(component.id) == []
        assert (await repo.get_action(action.id)).next_due == placeholder

    became_due = await engine.update_usage(component.id)

    assert [a.id for a in became_due] == [action.id]
    assert (await repo.get_action(action.id)).next_due == clock.now()
    assert (await repo.get_component(component.id)).usage_count == 30

    # Already due: more use does not move it
    clock.advance(hours=1)
    assert await engine.update_usage(component.id) == []
    assert (await repo.get_action(action.id)).next_due == clock.now() - timedelta(hours=1)


async def test_usage_cycle_restarts_after_completion(repo, clock, make_component, make_action):
    """Test that completing a usage action counts the next cycle from the current counter."""
    component = await make_component("Disposable Filter", "filter", tracking_mode="usage")
    action = await make_action(component.id, "Replace Filter", 5, "uses", next_due=clock.now())

    engine = ScheduleEngine(repo, clock)
    await engine.update_usage(component.id, 5)

    result = await engine.complete(action.id)
    assert result.next_due == clock.now() + timedelta(days=5)

    stored = await repo.get_action(action.id)
    assert stored.usage_baseline == 5

    assert await engine.update_usage(component.id, 4) == []
    assert len(await engine.update_usage(component.id, 1)) == 1


async def test_usage_rejects_non_positive_increment(repo, clock, make_component):
    """Test that usage only ever increases."""
    component = await make_component()
    engine = ScheduleEngine(repo, clock)

    with pytest.raises(ValidationError):
        await engine.update_usage(component.id, 0)

    assert (await repo.get_component(component.id)).usage_count == 0


async def test_actions_needing_attention_and_summary(repo, clock, make_component, make_action):
    """Test ranked attention list and home-screen counts."""
    component = await make_component()
    clock.set(datetime(2026, 3, 4, 12, 0, tzinfo=UTC))

    late = await make_action(component.id, "Late", next_due=datetime(2026, 3, 2, 8, 0, tzinfo=UTC))
    later = await make_action(component.id, "Later", next_due=datetime(2026, 3, 1, 8, 0, tzinfo=UTC))
    today = await make_action(component.id, "Today", next_due=datetime(2026, 3, 4, 9, 0, tzinfo=UTC))
    await make_action(component.id, "Soon", next_due=datetime(2026, 3, 6, 9, 0, tzinfo=UTC))

    engine = ScheduleEngine(repo, clock)

    ranked = await engine.actions_needing_attention()
    assert [a.id for a in ranked] == [later.id, late.id, today.id]

    summary = await engine.summary()
    assert summary.overdue_count == 2
    assert summary.due_today_count == 1
    assert summary.upcoming_count == 1
    assert summary.all_caught_up is False
    assert summary.next_upcoming.action_type == "Soon"
    assert summary.next_upcoming_days == 2
