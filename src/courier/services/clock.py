"""Cron-driven timers, one independently cancellable handle per task."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime

from croniter import croniter

from courier.errors import InvalidScheduleError

logger = logging.getLogger(__name__)


class CronSchedule:
    """A parsed calendar expression.

    Accepts standard 5-field cron, 6 fields with a leading seconds field, or a
    predefined ``@`` alias such as ``@daily``.
    """

    def __init__(self, expression: str) -> None:
        fields = expression.split()
        if len(fields) == 1 and fields[0].startswith("@"):
            normalized = fields[0]
        elif len(fields) == 5:
            normalized = " ".join(fields)
        elif len(fields) == 6:
            # croniter expects the seconds column last
            normalized = " ".join(fields[1:] + fields[:1])
        else:
            raise InvalidScheduleError(
                f"invalid cron expression {expression!r}: expected 5 or 6 fields"
            )

        self.expression = expression
        self._normalized = normalized
        try:
            # Parsing is eager; computing one instant also rejects impossible
            # dates such as February 30th.
            croniter(normalized, datetime.now().astimezone()).get_next(datetime)
        except (ValueError, KeyError) as e:
            raise InvalidScheduleError(
                f"invalid cron expression {expression!r}: {e}"
            ) from e

    def next_after(self, moment: datetime) -> datetime:
        """Return the earliest matching instant strictly after ``moment``."""
        return croniter(self._normalized, moment).get_next(datetime)

    def __repr__(self) -> str:
        return f"CronSchedule({self.expression!r})"


class ClockDriver:
    """Sleeps until each task's next instant and spawns a firing for it.

    Firings run as their own asyncio tasks so a slow task body never delays
    the timer cadence, and firings of different tasks run concurrently.
    """

    def __init__(
        self,
        fire: Callable[[str], Awaitable[None]],
        now: Callable[[], datetime],
    ) -> None:
        self._fire = fire
        self._now = now
        self._schedules: dict[str, CronSchedule] = {}
        self._timers: dict[str, asyncio.Task[None]] = {}
        self._firings: set[asyncio.Task[None]] = set()
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    def is_scheduled(self, task_id: str) -> bool:
        return task_id in self._schedules

    def schedule(self, task_id: str, cron_expr: str) -> None:
        """Register (or replace) the timer for a task."""
        self.cancel(task_id)
        schedule = CronSchedule(cron_expr)
        self._schedules[task_id] = schedule
        if self._running:
            self._start_timer(task_id, schedule)
        logger.debug(f"Scheduled timer for task {task_id}: {cron_expr}")

    def cancel(self, task_id: str) -> None:
        """Drop the timer for a task. In-flight firings are left alone."""
        self._schedules.pop(task_id, None)
        timer = self._timers.pop(task_id, None)
        if timer is not None:
            timer.cancel()
            logger.debug(f"Cancelled timer for task {task_id}")

    def spawn(self, task_id: str) -> asyncio.Task[None]:
        """Start a firing for a task right away."""
        firing = asyncio.create_task(self._fire(task_id), name=f"fire-{task_id}")
        self._firings.add(firing)
        firing.add_done_callback(self._firings.discard)
        return firing

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        for task_id, schedule in self._schedules.items():
            self._start_timer(task_id, schedule)
        logger.info(f"Clock driver started with {len(self._schedules)} timers")

    async def stop(self) -> None:
        """Cancel every timer and in-flight firing."""
        self._running = False
        pending = list(self._timers.values()) + list(self._firings)
        self._timers.clear()
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        logger.info("Clock driver stopped")

    def _start_timer(self, task_id: str, schedule: CronSchedule) -> None:
        self._timers[task_id] = asyncio.create_task(
            self._run_timer(task_id, schedule), name=f"timer-{task_id}"
        )

    async def _run_timer(self, task_id: str, schedule: CronSchedule) -> None:
        last_fired: datetime | None = None
        while True:
            now = self._now()
            # The loop clock can wake us a hair early; never fire the same
            # instant twice.
            reference = max(now, last_fired) if last_fired else now
            next_at = schedule.next_after(reference)
            delay = (next_at - now).total_seconds()
            await asyncio.sleep(max(delay, 0))
            last_fired = next_at
            self.spawn(task_id)
