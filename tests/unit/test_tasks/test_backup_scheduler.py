"""Tests for the APScheduler integration."""

import asyncio
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch
from zoneinfo import ZoneInfo

from apscheduler.events import EVENT_JOB_MAX_INSTANCES
from apscheduler.triggers.cron import CronTrigger
import pytest

from backup_service.backup.models import PipelineOutcome
from backup_service.core.exceptions import ConfigError
from backup_service.core.settings import BackupSettings
from backup_service.tasks import scheduler as scheduler_module
from backup_service.tasks.scheduler import (
    BACKUP_JOB_ID,
    IMMEDIATE_JOB_ID,
    build_cron_trigger,
    create_scheduler,
    next_run_times,
    run_scheduler,
)


@pytest.fixture
def orchestrator() -> MagicMock:
    fake = MagicMock()
    fake.run = AsyncMock(return_value=PipelineOutcome.success())
    return fake


@pytest.mark.unit
class TestBuildCronTrigger:
    """Tests for build_cron_trigger."""

    def test_five_fields(self) -> None:
        trigger = build_cron_trigger("0 2 * * *", ZoneInfo("UTC"))

        assert isinstance(trigger, CronTrigger)
        fields = {f.name: str(f) for f in trigger.fields}
        assert fields["hour"] == "2"
        assert fields["minute"] == "0"
        assert fields["second"] == "0"

    def test_six_fields_include_seconds(self) -> None:
        trigger = build_cron_trigger("30 0 2 * * *", ZoneInfo("UTC"))

        fields = {f.name: str(f) for f in trigger.fields}
        assert fields["second"] == "30"
        assert fields["hour"] == "2"

    @pytest.mark.parametrize("expression", ["0 2 * *", "0 2 * * * * *", ""])
    def test_wrong_field_count(self, expression: str) -> None:
        with pytest.raises(ConfigError, match="expected 5 or 6 fields"):
            build_cron_trigger(expression)

    def test_unparseable_field(self) -> None:
        with pytest.raises(ConfigError, match="Invalid cron expression"):
            build_cron_trigger("99 2 * * *")


@pytest.mark.unit
class TestNextRunTimes:
    """Tests for next_run_times."""

    def test_daily_at_two(self) -> None:
        start = datetime(2024, 3, 5, 3, 0, tzinfo=UTC)

        times = next_run_times("0 2 * * *", ZoneInfo("UTC"), count=3, start=start)

        assert times == [
            datetime(2024, 3, 6, 2, 0, tzinfo=UTC),
            datetime(2024, 3, 7, 2, 0, tzinfo=UTC),
            datetime(2024, 3, 8, 2, 0, tzinfo=UTC),
        ]

    def test_same_day_when_before_firing(self) -> None:
        start = datetime(2024, 3, 5, 1, 0, tzinfo=UTC)

        times = next_run_times("0 2 * * *", ZoneInfo("UTC"), count=1, start=start)

        assert times == [datetime(2024, 3, 5, 2, 0, tzinfo=UTC)]


@pytest.mark.unit
class TestCreateScheduler:
    """Tests for create_scheduler."""

    @pytest.mark.asyncio
    async def test_registers_single_backup_job(self, settings, orchestrator) -> None:
        scheduler = create_scheduler(settings, orchestrator)
        scheduler.start(paused=True)
        try:
            jobs = scheduler.get_jobs()
            job = scheduler.get_job(BACKUP_JOB_ID)

            assert len(jobs) == 1
            assert job is not None
            assert job.name == "Daily database backup"
            assert job.args == (orchestrator,)
            assert job.max_instances == 1
            assert job.coalesce is True
            assert job.misfire_grace_time == 300
        finally:
            scheduler.shutdown(wait=False)

    @pytest.mark.asyncio
    async def test_max_instances_follows_settings(self, settings, orchestrator) -> None:
        settings = settings.model_copy(
            update={
                "backup": BackupSettings(
                    local_dir=settings.backup.local_dir,
                    max_concurrent_runs=3,
                    schedule_timezone="UTC",
                )
            }
        )
        scheduler = create_scheduler(settings, orchestrator)
        scheduler.start(paused=True)
        try:
            assert scheduler.get_job(BACKUP_JOB_ID).max_instances == 3
        finally:
            scheduler.shutdown(wait=False)

    @pytest.mark.asyncio
    async def test_firing_during_active_run_is_skipped(self, settings) -> None:
        started = asyncio.Event()
        release = asyncio.Event()
        skipped = asyncio.Event()

        async def blocked_run() -> PipelineOutcome:
            started.set()
            await release.wait()
            return PipelineOutcome.success()

        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(side_effect=blocked_run)
        scheduler = create_scheduler(settings, orchestrator)
        scheduler.add_listener(lambda event: skipped.set(), EVENT_JOB_MAX_INSTANCES)
        scheduler.start()
        try:
            job = scheduler.get_job(BACKUP_JOB_ID)

            job.modify(next_run_time=datetime.now(UTC))
            await asyncio.wait_for(started.wait(), timeout=5)
            job.modify(next_run_time=datetime.now(UTC))
            await asyncio.wait_for(skipped.wait(), timeout=5)

            orchestrator.run.assert_awaited_once()
        finally:
            release.set()
            scheduler.shutdown(wait=False)

    @pytest.mark.asyncio
    async def test_immediate_job_is_separate_from_cron_job(self, settings, orchestrator) -> None:
        scheduler = create_scheduler(settings, orchestrator)
        scheduler.start(paused=True)
        try:
            scheduler_module.trigger_now(scheduler, orchestrator)

            assert {job.id for job in scheduler.get_jobs()} == {BACKUP_JOB_ID, IMMEDIATE_JOB_ID}
            assert scheduler.get_job(IMMEDIATE_JOB_ID).max_instances == 1
        finally:
            scheduler.shutdown(wait=False)

    def test_invalid_schedule_raises_config_error(self, settings, orchestrator) -> None:
        settings = settings.model_copy(
            update={
                "backup": BackupSettings(
                    local_dir=settings.backup.local_dir,
                    schedule="0 25 * * *",
                )
            }
        )

        with pytest.raises(ConfigError):
            create_scheduler(settings, orchestrator)


@pytest.mark.unit
class TestJobFunctions:
    """Tests for the coroutine jobs."""

    @pytest.mark.asyncio
    async def test_scheduled_job_runs_orchestrator(self, orchestrator) -> None:
        outcome = await scheduler_module._scheduled_backup(orchestrator)

        orchestrator.run.assert_awaited_once()
        assert outcome.succeeded

    @pytest.mark.asyncio
    async def test_immediate_job_runs_orchestrator(self, orchestrator) -> None:
        await scheduler_module._immediate_backup(orchestrator)

        orchestrator.run.assert_awaited_once()


@pytest.mark.unit
class TestRunScheduler:
    """Tests for run_scheduler."""

    @pytest.mark.asyncio
    async def test_returns_when_stop_event_is_set(self, settings, orchestrator) -> None:
        stop = asyncio.Event()
        stop.set()

        with patch.object(scheduler_module, "trigger_now") as trigger_now:
            await run_scheduler(
                settings,
                orchestrator=orchestrator,
                stop_event=stop,
                install_signal_handlers=False,
            )

        trigger_now.assert_not_called()

    @pytest.mark.asyncio
    async def test_run_now_queues_immediate_job(self, settings, orchestrator) -> None:
        stop = asyncio.Event()
        stop.set()

        with patch.object(scheduler_module, "trigger_now") as trigger_now:
            await run_scheduler(
                settings,
                orchestrator=orchestrator,
                run_now=True,
                stop_event=stop,
                install_signal_handlers=False,
            )

        trigger_now.assert_called_once()
        assert trigger_now.call_args.args[1] is orchestrator

    @pytest.mark.asyncio
    async def test_run_on_start_setting_queues_immediate_job(
        self, settings, orchestrator
    ) -> None:
        settings = settings.model_copy(
            update={
                "backup": BackupSettings(
                    local_dir=settings.backup.local_dir,
                    run_on_start=True,
                )
            }
        )
        stop = asyncio.Event()
        stop.set()

        with patch.object(scheduler_module, "trigger_now") as trigger_now:
            await run_scheduler(
                settings,
                orchestrator=orchestrator,
                stop_event=stop,
                install_signal_handlers=False,
            )

        trigger_now.assert_called_once()

    @pytest.mark.asyncio
    async def test_immediate_job_executes(self, settings, orchestrator) -> None:
        stop = asyncio.Event()

        async def stop_after_run():
            outcome = PipelineOutcome.success()
            stop.set()
            return outcome

        orchestrator.run = AsyncMock(side_effect=stop_after_run)

        await asyncio.wait_for(
            run_scheduler(
                settings,
                orchestrator=orchestrator,
                run_now=True,
                stop_event=stop,
                install_signal_handlers=False,
            ),
            timeout=5,
        )

        orchestrator.run.assert_awaited_once()


@pytest.mark.unit
def test_immediate_job_id_differs_from_recurring() -> None:
    assert IMMEDIATE_JOB_ID != BACKUP_JOB_ID
