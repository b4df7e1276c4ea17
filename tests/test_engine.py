"""Tests for ReminderEngine - wiring, pause window and sync integration."""

from datetime import timedelta

import pytest
from freezegun import freeze_time

from nudge.engine import ReminderEngine
from nudge.errors import AuthError
from nudge.reminders.types import JobKey, JobKind
from nudge.sync import FailureKind, SyncState


@pytest.fixture
def make_engine(scheduler, settings, recorder, clock):
    def _make(**kwargs):
        kwargs.setdefault("on_preview", recorder.on_preview)
        kwargs.setdefault("clock", clock)
        return ReminderEngine(
            scheduler,
            on_reminder=recorder.on_reminder,
            settings_provider=lambda: settings["value"],
            **kwargs
        )
    return _make


class TestEvents:

    def test_update_and_query(self, make_engine, make_event):
        engine = make_engine()
        armed = engine.update_events([
            make_event("b", minutes=40),
            make_event("past", minutes=-10),
            make_event("a", minutes=20),
        ])

        assert armed == 12
        assert engine.get_next_reminder().id == "a"
        assert [e.id for e in engine.get_upcoming_events()] == ["a", "b"]
        assert [e.id for e in engine.get_upcoming_events(limit=1)] == ["a"]

    def test_default_clock_uses_wall_time(self, scheduler, settings, recorder, make_event):
        engine = ReminderEngine(scheduler, recorder.on_reminder, settings_provider=lambda: settings["value"])
        with freeze_time("2026-03-02 00:30:00"):
            engine.update_events([make_event("early", minutes=15), make_event("late", minutes=45)])
            assert engine.get_next_reminder().id == "late"
            assert len(engine.jobs.jobs) == 3

    def test_no_preview_jobs_without_callback(self, make_engine, make_event):
        engine = make_engine(on_preview=None)
        engine.update_events([make_event(minutes=15)])
        assert all(key.kind is JobKind.REMINDER for key in engine.jobs.jobs)

    def test_cancel_all_includes_snoozes(self, make_engine, scheduler, make_event):
        engine = make_engine()
        event = make_event(minutes=30)
        engine.update_events([event])
        engine.snooze(event)

        engine.cancel_all()

        assert scheduler.get_jobs() == []
        assert engine.snoozes.pending == {}

    def test_snooze_default_duration(self, make_engine, make_event, clock):
        engine = make_engine()
        event = make_event()
        assert engine.snooze(event) is True
        assert engine.snoozes.pending[event.id].fire_at == clock() + timedelta(minutes=5)

    def test_reschedule_keeps_snoozes(self, make_engine, make_event):
        engine = make_engine()
        event = make_event(minutes=30)
        engine.snooze(event, 5)
        engine.update_events([event])
        assert event.id in engine.snoozes.pending


class TestPause:

    @pytest.mark.asyncio
    async def test_paused_reminders_are_dropped(self, make_engine, scheduler, recorder, make_event, fire_job):
        engine = make_engine()
        engine.update_events([make_event(minutes=15)])
        engine.pause(30)

        await fire_job(scheduler, engine.jobs.jobs[JobKey("evt-1", 10, JobKind.REMINDER)].job_id)
        await fire_job(scheduler, engine.jobs.jobs[JobKey("evt-1", 10, JobKind.PREVIEW)].job_id)

        assert recorder.reminders == []
        assert recorder.previews == []

    @pytest.mark.asyncio
    async def test_pause_window_expires(self, make_engine, scheduler, recorder, clock, make_event, fire_job):
        engine = make_engine()
        engine.update_events([make_event(minutes=15)])
        engine.pause(3)

        clock.advance(minutes=4)
        assert engine.is_paused() is False
        await fire_job(scheduler, engine.jobs.jobs[JobKey("evt-1", 10, JobKind.REMINDER)].job_id)

        assert recorder.reminders == [("evt-1", 10, False)]

    @pytest.mark.asyncio
    async def test_resume(self, make_engine, scheduler, recorder, make_event, fire_job):
        engine = make_engine()
        event = make_event(minutes=15)
        engine.snooze(event, 5)
        engine.pause(60)
        engine.resume()

        await fire_job(scheduler, engine.snoozes.pending[event.id].job_id)

        assert engine.paused_until is None
        assert recorder.reminders == [(event.id, 0, True)]

    def test_pause_returns_deadline(self, make_engine, clock):
        engine = make_engine()
        assert engine.pause(15) == clock() + timedelta(minutes=15)
        assert engine.is_paused() is True

    @pytest.mark.parametrize("minutes", [0, -1, 1.5, True, "10"])
    def test_invalid_pause(self, make_engine, minutes):
        with pytest.raises(ValueError):
            make_engine().pause(minutes)


class TestSyncWiring:

    def test_sync_requires_fetch(self, make_engine):
        engine = make_engine()
        assert engine.sync is None
        assert engine.get_sync_status() == SyncState()
        with pytest.raises(RuntimeError):
            engine.start_sync()

    @pytest.mark.asyncio
    async def test_sync_now_without_fetch(self, make_engine):
        with pytest.raises(RuntimeError):
            await make_engine().sync_now()

    @pytest.mark.asyncio
    async def test_sync_reschedules(self, make_engine, make_event):
        async def fetch():
            return [make_event("synced", minutes=30)]

        engine = make_engine(fetch=fetch)
        result = await engine.sync_now()

        assert result.ok is True
        assert result.event_count == 1
        assert engine.get_next_reminder().id == "synced"
        assert engine.get_sync_status().last_sync_success is True

    @pytest.mark.asyncio
    async def test_sync_failure_reported(self, make_engine, recorder):
        async def fetch():
            raise AuthError("expired")

        engine = make_engine(fetch=fetch, on_sync_failure=recorder.on_failure)
        await engine.sync_now()

        assert recorder.failures == [("expired", FailureKind.AUTH, True)]

    def test_start_sync_and_shutdown(self, make_engine, scheduler, make_event):
        async def fetch():
            return []

        engine = make_engine(fetch=fetch)
        engine.update_events([make_event(minutes=30)])
        engine.start_sync(10)
        assert scheduler.get_job(engine.sync.sync_job_id) is not None

        engine.shutdown()

        assert scheduler.get_jobs() == []
