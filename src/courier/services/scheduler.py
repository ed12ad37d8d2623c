"""Scheduler service for calendar-driven recurring tasks."""

import logging
from collections import deque
from datetime import datetime, tzinfo
from typing import TYPE_CHECKING

from courier.models.scheduled_task import ScheduledTask, TaskExecution
from courier.services.clock import ClockDriver
from courier.services.executor import TaskExecutor
from courier.services.registry import TaskRegistry

if TYPE_CHECKING:
    from courier.channels.base import Transport

logger = logging.getLogger(__name__)


class SchedulerService:
    """Manages scheduled tasks and fires them on their cron instants."""

    def __init__(
        self,
        transport: "Transport | None" = None,
        tz: tzinfo | None = None,
        history_size: int = 200,
    ) -> None:
        self._tz = tz
        self._registry = TaskRegistry(now=self.now)
        self._executions: deque[TaskExecution] = deque(maxlen=history_size)
        self._executor = TaskExecutor(
            self._registry,
            now=self.now,
            history=self._executions,
            transport=transport,
        )
        self._clock = ClockDriver(self._fire, now=self.now)

    def now(self) -> datetime:
        """Current time in the scheduler's zone (host local time by default)."""
        if self._tz is not None:
            return datetime.now(self._tz)
        return datetime.now().astimezone()

    def set_transport(self, transport: "Transport") -> None:
        """Set the chat transport used by message tasks."""
        self._executor.set_transport(transport)

    async def start(self) -> None:
        """Start firing registered tasks."""
        await self._clock.start()
        logger.info("Scheduler service started")

    async def stop(self) -> None:
        """Stop all timers and in-flight firings."""
        await self._clock.stop()
        logger.info("Scheduler service stopped")

    async def add_task(self, task: ScheduledTask) -> ScheduledTask:
        """Create a new scheduled task and register its timer."""
        created = await self._registry.add(task)
        self._clock.schedule(created.task_id, created.cron_expr)
        return created

    async def remove_task(self, task_id: str) -> ScheduledTask:
        """Cancel a scheduled task and drop its timer."""
        removed = await self._registry.remove(task_id)
        self._clock.cancel(task_id)
        return removed

    async def get_task(self, task_id: str) -> ScheduledTask:
        return await self._registry.get(task_id)

    async def get_all_tasks(self) -> list[ScheduledTask]:
        return await self._registry.get_all()

    async def update_task(self, task_id: str, task: ScheduledTask) -> ScheduledTask:
        """Replace a task's mutable fields; its timer is replaced wholesale."""
        updated = await self._registry.update(task_id, task)
        if updated.is_active:
            self._clock.schedule(task_id, updated.cron_expr)
        else:
            self._clock.cancel(task_id)
        return updated

    async def get_stats(self) -> dict[str, int]:
        return await self._registry.stats()

    async def trigger_task(self, task_id: str) -> ScheduledTask:
        """Fire a task immediately, outside its calendar."""
        task = await self._registry.get(task_id)
        self._clock.spawn(task_id)
        logger.info(f"Manually triggered task {task_id}")
        return task

    def get_executions(self, task_id: str | None = None) -> list[TaskExecution]:
        """Recent executions, newest first."""
        executions = reversed(self._executions)
        if task_id is not None:
            return [e for e in executions if e.task_id == task_id]
        return list(executions)

    async def _fire(self, task_id: str) -> None:
        task = await self._executor.execute(task_id)
        if task is not None and not task.is_active:
            # Completed at its run cap
            self._clock.cancel(task_id)
