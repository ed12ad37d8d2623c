"""Authoritative in-memory store of scheduled tasks and their lifecycle."""

import asyncio
import copy
import logging
import uuid
from collections.abc import Callable
from datetime import datetime

from courier.errors import TaskNotFoundError
from courier.models.scheduled_task import ScheduledTask, TaskStatus
from courier.services.clock import CronSchedule

logger = logging.getLogger(__name__)


class TaskRegistry:
    """Concurrency-safe map of scheduled tasks.

    The lock is held only across map access and mutation, never across I/O.
    Callers always receive deep copies, so a returned task can be read or
    modified freely without touching registry state.
    """

    def __init__(self, now: Callable[[], datetime]) -> None:
        self._tasks: dict[str, ScheduledTask] = {}
        self._schedules: dict[str, CronSchedule] = {}
        self._lock = asyncio.Lock()
        self._now = now

    async def add(self, task: ScheduledTask) -> ScheduledTask:
        """Validate and store a new task.

        Raises:
            InvalidScheduleError: The cron expression cannot be parsed.
            ValueError: A task with the same ID already exists.
        """
        schedule = CronSchedule(task.cron_expr)
        stored = copy.deepcopy(task)

        async with self._lock:
            if not stored.task_id:
                stored.task_id = str(uuid.uuid4())
            if stored.task_id in self._tasks:
                raise ValueError(f"task already exists: {stored.task_id}")

            now = self._now()
            stored.status = TaskStatus.PENDING
            stored.is_active = True
            stored.error_msg = ""
            stored.created_at = now
            stored.updated_at = now
            stored.next_run = schedule.next_after(now)

            self._tasks[stored.task_id] = stored
            self._schedules[stored.task_id] = schedule
            logger.info(f"Added scheduled task: {stored.name} ({stored.task_id})")
            return copy.deepcopy(stored)

    async def remove(self, task_id: str) -> ScheduledTask:
        """Cancel a task. The record is kept for history."""
        async with self._lock:
            task = self._require(task_id)
            task.status = TaskStatus.CANCELLED
            task.is_active = False
            task.next_run = None
            task.updated_at = self._now()
            logger.info(f"Removed scheduled task: {task.name} ({task_id})")
            return copy.deepcopy(task)

    async def get(self, task_id: str) -> ScheduledTask:
        async with self._lock:
            return copy.deepcopy(self._require(task_id))

    async def get_all(self) -> list[ScheduledTask]:
        async with self._lock:
            return [copy.deepcopy(task) for task in self._tasks.values()]

    async def update(self, task_id: str, new_task: ScheduledTask) -> ScheduledTask:
        """Replace a task's mutable fields and recompute its next run.

        Completed and cancelled tasks accept new field values but stay
        inactive.

        Raises:
            TaskNotFoundError: No task with this ID.
            InvalidScheduleError: The new cron expression cannot be parsed;
                the task is left untouched.
        """
        async with self._lock:
            task = self._require(task_id)
            schedule = CronSchedule(new_task.cron_expr)

            task.name = new_task.name
            task.kind = new_task.kind
            task.cron_expr = new_task.cron_expr
            task.recipients = list(new_task.recipients)
            task.content = copy.deepcopy(new_task.content)
            task.max_runs = new_task.max_runs
            task.is_active = new_task.is_active and not task.is_terminal

            now = self._now()
            task.updated_at = now
            task.next_run = schedule.next_after(now) if task.is_active else None
            self._schedules[task_id] = schedule
            logger.info(f"Updated scheduled task: {task.name} ({task_id})")
            return copy.deepcopy(task)

    async def stats(self) -> dict[str, int]:
        """Count tasks by status and by active flag."""
        async with self._lock:
            counts = {"total": len(self._tasks), "active": 0}
            counts.update({status.value: 0 for status in TaskStatus})
            for task in self._tasks.values():
                if task.is_active:
                    counts["active"] += 1
                counts[task.status.value] += 1
            return counts

    # Executor transitions

    async def begin_run(self, task_id: str) -> ScheduledTask | None:
        """Move a task into ``running`` for one firing.

        Returns None when there is nothing to do: the task is gone, inactive,
        or still running a previous firing. When the run cap is already
        reached the task is completed instead and returned with status
        ``completed``; only a ``running`` snapshot should be executed.
        """
        async with self._lock:
            task = self._tasks.get(task_id)
            if task is None or not task.is_active:
                return None

            if task.status == TaskStatus.RUNNING:
                logger.warning(
                    f"Task {task_id} is still running, skipping overlapping firing"
                )
                return None

            now = self._now()
            if task.run_cap_reached:
                task.status = TaskStatus.COMPLETED
                task.is_active = False
                task.next_run = None
                task.updated_at = now
                logger.info(f"Task {task_id} reached max runs ({task.max_runs})")
                return copy.deepcopy(task)

            task.status = TaskStatus.RUNNING
            task.last_run = now
            task.run_count += 1
            task.updated_at = now
            return copy.deepcopy(task)

    async def finish_run(self, task_id: str, error: str | None) -> ScheduledTask | None:
        """Record the outcome of a firing and recompute the next run."""
        async with self._lock:
            task = self._tasks.get(task_id)
            if task is None:
                return None

            now = self._now()
            task.updated_at = now
            if task.status == TaskStatus.CANCELLED:
                # Removed while the body was running
                return copy.deepcopy(task)

            if error is not None:
                task.status = TaskStatus.FAILED
                task.error_msg = error
            else:
                task.error_msg = ""
                if task.run_cap_reached:
                    task.status = TaskStatus.COMPLETED
                    task.is_active = False
                    logger.info(
                        f"Task {task_id} completed after {task.run_count} runs"
                    )
                else:
                    task.status = TaskStatus.PENDING

            schedule = self._schedules[task_id]
            task.next_run = schedule.next_after(now) if task.is_active else None
            return copy.deepcopy(task)

    def _require(self, task_id: str) -> ScheduledTask:
        task = self._tasks.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task
