"""
Named cron tasks on an APScheduler background scheduler.
"""

from typing import Callable, Dict, List
import asyncio
import inspect
import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

CRON_FIELDS = ("minute", "hour", "day", "month", "day_of_week")


def parse_cron_expression(expression: str) -> CronTrigger:
    """
    Build a trigger from a 5-field crontab line, or 6 fields with leading seconds.

    Raises:
        ValueError: If the expression is malformed
    """
    if not isinstance(expression, str):
        raise ValueError("Cron expression must be a string")

    parts = expression.split()
    if len(parts) == 5:
        values = dict(zip(CRON_FIELDS, parts))
    elif len(parts) == 6:
        values = dict(zip(("second",) + CRON_FIELDS, parts))
    else:
        raise ValueError(f"Wrong number of fields in cron expression '{expression}': got {len(parts)}, expected 5 or 6")

    try:
        return CronTrigger(timezone="UTC", **values)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid cron expression '{expression}': {e}")


class TaskScheduler:
    """
    Keeps at most one job per task name. Every run is logged; a failing run
    is logged and the schedule continues.
    """

    def __init__(self, scheduler: BackgroundScheduler = None):
        self.scheduler = scheduler or BackgroundScheduler(timezone="UTC")
        self._expressions: Dict[str, str] = {}

    @staticmethod
    def validate_cron_expression(expression: str) -> bool:
        try:
            parse_cron_expression(expression)
            return True
        except ValueError:
            return False

    @staticmethod
    def _run(name: str, callback: Callable) -> None:
        logger.info(f"Running scheduled task: {name}")
        try:
            result = callback()
            if inspect.isawaitable(result):
                asyncio.run(result)
            logger.info(f"Completed scheduled task: {name}")
        except Exception as e:
            logger.error(f"Error in scheduled task {name}: {e}", exc_info=True)

    def schedule_task(self, name: str, cron_expression: str, callback: Callable) -> None:
        """
        Raises:
            ValueError: If the cron expression is invalid
        """
        trigger = parse_cron_expression(cron_expression)

        if self.is_task_scheduled(name):
            logger.warning(f"Task {name} already scheduled, replacing it")
            self.stop_task(name)

        self.scheduler.add_job(
            func=self._run,
            args=(name, callback),
            trigger=trigger,
            id=name,
            replace_existing=True,
        )
        self._expressions[name] = cron_expression
        logger.info(f"Scheduled task: {name} with expression: {cron_expression}")

    def stop_task(self, name: str) -> bool:
        if name not in self._expressions:
            return False
        if self.scheduler.get_job(name) is not None:
            self.scheduler.remove_job(name)
        del self._expressions[name]
        logger.info(f"Stopped scheduled task: {name}")
        return True

    def stop_all_tasks(self) -> None:
        for name in list(self._expressions):
            self.stop_task(name)
        logger.info("All scheduled tasks stopped")

    def get_scheduled_tasks(self) -> List[str]:
        return list(self._expressions)

    def is_task_scheduled(self, name: str) -> bool:
        return name in self._expressions

    def start(self) -> None:
        if not self.scheduler.running:
            self.scheduler.start()
            logger.info(f"Scheduler started with {len(self._expressions)} tasks")

    def shutdown(self) -> None:
        self.stop_all_tasks()
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
