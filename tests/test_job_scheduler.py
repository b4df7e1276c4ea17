"""Tests for JobScheduler - arming, rescheduling and firing reminder jobs."""

from datetime import timedelta
from unittest.mock import patch

import pytest

from nudge.reminders.scheduler import JobScheduler
from nudge.reminders.types import JobKey, JobKind
from nudge.settings import ReminderSettings


@pytest.fixture
def job_scheduler(scheduler, settings, recorder, clock):
    return JobScheduler(
        scheduler,
        settings_provider=lambda: settings["value"],
        on_reminder=recorder.on_reminder,
        on_preview=recorder.on_preview,
        clock=clock,
    )


def _fire_times(job_scheduler):
    return sorted((key, job.fire_at) for key, job in job_scheduler.jobs.items())


class TestUpdateEvents:
    """update_events arms exactly the planned jobs."""

    def test_arms_six_jobs_for_single_event(self, job_scheduler, scheduler, make_event, clock):
        """Offsets {10,5,1} with previews arm six APScheduler jobs."""
        armed = job_scheduler.update_events([make_event(minutes=15)])

        assert armed == 6
        assert len(scheduler.get_jobs()) == 6

        reminder = job_scheduler.jobs[JobKey("evt-1", 10, JobKind.REMINDER)]
        assert reminder.fire_at == clock() + timedelta(minutes=5)
        assert scheduler.get_job(reminder.job_id).trigger.run_date == reminder.fire_at

    def test_event_starting_now_arms_nothing(self, job_scheduler, scheduler, make_event):
        assert job_scheduler.update_events([make_event(minutes=0)]) == 0
        assert scheduler.get_jobs() == []

    def test_idempotent_reschedule(self, job_scheduler, scheduler, make_event):
        """Two identical updates leave one job set, no leaked timers."""
        events = [make_event("a", minutes=15), make_event("b", minutes=45)]

        job_scheduler.update_events(events)
        first = _fire_times(job_scheduler)
        job_scheduler.update_events(events)
        second = _fire_times(job_scheduler)

        assert first == second
        assert len(scheduler.get_jobs()) == len(second) == 12

    def test_wholesale_replacement(self, job_scheduler, scheduler, make_event):
        """Jobs for events missing from the new list are cancelled."""
        job_scheduler.update_events([make_event("old", minutes=30)])
        old_ids = {job.job_id for job in job_scheduler.jobs.values()}

        job_scheduler.update_events([make_event("new", minutes=30)])

        assert all(key.event_id == "new" for key in job_scheduler.jobs)
        remaining = {job.id for job in scheduler.get_jobs()}
        assert remaining.isdisjoint(old_ids)

    def test_settings_read_on_every_update(self, job_scheduler, settings, make_event):
        job_scheduler.update_events([make_event(minutes=30)])
        assert len(job_scheduler.jobs) == 6

        settings["value"] = ReminderSettings(offsets=frozenset({15}), preview_enabled=False)
        job_scheduler.update_events([make_event(minutes=30)])
        assert list(job_scheduler.jobs) == [JobKey("evt-1", 15, JobKind.REMINDER)]

    def test_no_previews_without_preview_callback(self, scheduler, settings, recorder, clock, make_event):
        js = JobScheduler(
            scheduler,
            settings_provider=lambda: settings["value"],
            on_reminder=recorder.on_reminder,
            clock=clock,
        )
        js.update_events([make_event(minutes=15)])
        assert {key.kind for key in js.jobs} == {JobKind.REMINDER}

    def test_arming_failure_is_isolated(self, job_scheduler, scheduler, make_event):
        """One add_job failure drops that job only."""
        real_add_job = scheduler.add_job
        calls = {"n": 0}

        def flaky_add_job(*args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 2:
                raise RuntimeError("out of timers")
            return real_add_job(*args, **kwargs)

        with patch.object(scheduler, "add_job", side_effect=flaky_add_job):
            armed = job_scheduler.update_events([make_event(minutes=15)])

        assert armed == 5
        assert len(scheduler.get_jobs()) == 5


class TestFiring:
    """Fired jobs deliver once and remove themselves."""

    @pytest.mark.asyncio
    async def test_reminder_fires_once(self, job_scheduler, recorder, make_event, fire_job):
        job_scheduler.update_events([make_event(minutes=15)])
        key = JobKey("evt-1", 5, JobKind.REMINDER)
        job_id = job_scheduler.jobs[key].job_id

        await fire_job(job_scheduler.scheduler, job_id)

        assert recorder.reminders == [("evt-1", 5, False)]
        assert key not in job_scheduler.jobs
        assert len(job_scheduler.jobs) == 5

    @pytest.mark.asyncio
    async def test_preview_fires(self, job_scheduler, recorder, make_event, fire_job):
        job_scheduler.update_events([make_event(minutes=15)])
        job_id = job_scheduler.jobs[JobKey("evt-1", 10, JobKind.PREVIEW)].job_id

        await fire_job(job_scheduler.scheduler, job_id)

        assert recorder.previews == [("evt-1", 10)]
        assert recorder.reminders == []

    @pytest.mark.asyncio
    async def test_stale_dispatch_after_reschedule_is_ignored(self, job_scheduler, scheduler, recorder, make_event):
        """A job dispatched before a reschedule must not deliver afterwards."""
        job_scheduler.update_events([make_event(minutes=15)])
        key = JobKey("evt-1", 5, JobKind.REMINDER)
        stale = scheduler.get_job(job_scheduler.jobs[key].job_id)

        job_scheduler.update_events([make_event(minutes=15)])
        await stale.func(*stale.args)

        assert recorder.reminders == []
        assert key in job_scheduler.jobs

    @pytest.mark.asyncio
    async def test_async_callback_awaited(self, scheduler, settings, clock, make_event, fire_job):
        delivered = []

        async def on_reminder(event, offset_minutes, snoozed):
            delivered.append((event.id, offset_minutes, snoozed))

        js = JobScheduler(scheduler, lambda: settings["value"], on_reminder, clock=clock)
        js.update_events([make_event(minutes=15)])
        await fire_job(scheduler, js.jobs[JobKey("evt-1", 1, JobKind.REMINDER)].job_id)

        assert delivered == [("evt-1", 1, False)]

    @pytest.mark.asyncio
    async def test_callback_error_does_not_propagate(self, scheduler, settings, clock, make_event, fire_job):
        def on_reminder(event, offset_minutes, snoozed):
            raise RuntimeError("window failed")

        js = JobScheduler(scheduler, lambda: settings["value"], on_reminder, clock=clock)
        js.update_events([make_event(minutes=15)])
        key = JobKey("evt-1", 1, JobKind.REMINDER)

        await fire_job(scheduler, js.jobs[key].job_id)

        assert key not in js.jobs


class TestCancelAndNext:
    """cancel_all and get_next_reminder."""

    def test_cancel_all(self, job_scheduler, scheduler, make_event):
        job_scheduler.update_events([make_event("a", minutes=15), make_event("b", minutes=30)])

        assert job_scheduler.cancel_all() == 12
        assert job_scheduler.jobs == {}
        assert scheduler.get_jobs() == []

    def test_next_reminder_is_earliest_future_event(self, job_scheduler, make_event):
        events = [
            make_event("later", minutes=90),
            make_event("past", minutes=-10),
            make_event("soon", minutes=20),
        ]
        job_scheduler.update_events(events)
        assert job_scheduler.get_next_reminder().id == "soon"

    def test_next_reminder_none(self, job_scheduler, make_event):
        job_scheduler.update_events([make_event(minutes=-5), make_event("now", minutes=0)])
        assert job_scheduler.get_next_reminder() is None

    def test_next_reminder_follows_clock(self, job_scheduler, clock, make_event):
        job_scheduler.update_events([make_event("a", minutes=10), make_event("b", minutes=20)])
        clock.advance(minutes=10)
        assert job_scheduler.get_next_reminder().id == "b"

    def test_events_sorted_by_start(self, job_scheduler, make_event):
        job_scheduler.update_events([make_event("b", minutes=20), make_event("a", minutes=10)])
        assert [e.id for e in job_scheduler.events] == ["a", "b"]


class TestNaiveEvents:
    """Events without a timezone never abort the batch."""

    def test_naive_event_dropped_rest_scheduled(self, job_scheduler, scheduler, make_event):
        job_scheduler.update_events([make_event("old", minutes=30)])
        naive = make_event("naive", minutes=20)
        naive = type(naive)(id="naive", title="Naive", start=naive.start.replace(tzinfo=None))

        armed = job_scheduler.update_events([make_event("good", minutes=30), naive])

        assert armed == 6
        assert {key.event_id for key in job_scheduler.jobs} == {"good"}
        assert [e.id for e in job_scheduler.events] == ["good"]
        assert len(scheduler.get_jobs()) == 6

    def test_only_naive_events(self, job_scheduler, scheduler, make_event):
        job_scheduler.update_events([make_event("old", minutes=30)])
        event = make_event("naive", minutes=20)
        naive = type(event)(id="naive", title="Naive", start=event.start.replace(tzinfo=None))

        assert job_scheduler.update_events([naive]) == 0
        assert scheduler.get_jobs() == []
        assert job_scheduler.get_next_reminder() is None
