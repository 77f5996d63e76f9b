"""
Tests for the cron task scheduler.
"""

from unittest.mock import MagicMock

import pytest
from apscheduler.triggers.cron import CronTrigger

from realty_api.services.scheduler import TaskScheduler, parse_cron_expression


class TestCronParsing:

    @pytest.mark.parametrize("expression", ["0 2 * * *", "*/5 * * * *", "0 9 * * mon", "30 0 2 * * *"])
    def test_valid_expressions(self, expression):
        assert isinstance(parse_cron_expression(expression), CronTrigger)
        assert TaskScheduler.validate_cron_expression(expression)

    @pytest.mark.parametrize("expression", ["", "* * *", "61 * * * *", "* * * * * * *", None])
    def test_invalid_expressions(self, expression):
        with pytest.raises(ValueError):
            parse_cron_expression(expression)
        assert not TaskScheduler.validate_cron_expression(expression)


class TestTaskScheduler:

    def test_schedule_replaces_existing_task(self):
        scheduler = TaskScheduler()

        scheduler.schedule_task("cleanup", "0 2 * * *", lambda: None)
        scheduler.schedule_task("cleanup", "0 3 * * *", lambda: None)

        assert scheduler.get_scheduled_tasks() == ["cleanup"]
        assert len(scheduler.scheduler.get_jobs()) == 1

    def test_invalid_expression_schedules_nothing(self):
        scheduler = TaskScheduler()

        with pytest.raises(ValueError):
            scheduler.schedule_task("broken", "not a cron", lambda: None)

        assert not scheduler.is_task_scheduled("broken")

    def test_stop_task(self):
        scheduler = TaskScheduler()
        scheduler.schedule_task("report", "0 9 * * mon", lambda: None)

        assert scheduler.stop_task("report") is True
        assert scheduler.stop_task("report") is False
        assert scheduler.scheduler.get_jobs() == []

    def test_stop_all_tasks(self):
        scheduler = TaskScheduler()
        scheduler.schedule_task("a", "0 * * * *", lambda: None)
        scheduler.schedule_task("b", "0 2 * * *", lambda: None)

        scheduler.stop_all_tasks()

        assert scheduler.get_scheduled_tasks() == []

    def test_start_and_shutdown(self):
        scheduler = TaskScheduler()
        scheduler.schedule_task("a", "0 * * * *", lambda: None)

        scheduler.start()
        assert scheduler.scheduler.running
        scheduler.shutdown()

        assert scheduler.get_scheduled_tasks() == []


class TestTaskRuns:

    def test_sync_callback_runs(self):
        callback = MagicMock(return_value=None)
        TaskScheduler._run("sync", callback)
        callback.assert_called_once_with()

    def test_coroutine_callback_is_awaited(self):
        calls = []

        async def job():
            calls.append("ran")

        TaskScheduler._run("async", job)

        assert calls == ["ran"]

    def test_failing_callback_is_logged_not_raised(self, caplog):
        def job():
            raise RuntimeError("boom")

        TaskScheduler._run("failing", job)

        assert "Error in scheduled task failing" in caplog.text
