"""Runs one firing of a scheduled task."""

import asyncio
import dataclasses
import logging
import re
import uuid
from collections import deque
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING

from courier.errors import TransportDisconnectedError
from courier.models.scheduled_task import (
    ScheduledTask,
    TaskContent,
    TaskExecution,
    TaskKind,
    TaskStatus,
)
from courier.services.registry import TaskRegistry

if TYPE_CHECKING:
    from courier.channels.base import Transport

logger = logging.getLogger(__name__)

_TOKEN = re.compile(r"\{\{(.+?)\}\}")


def render_template(template: str, values: Mapping[str, str]) -> str:
    """Replace ``{{name}}`` tokens with their values. Unknown tokens are kept."""
    return _TOKEN.sub(lambda m: values.get(m.group(1), m.group(0)), template)


def render_content(content: TaskContent, moment: datetime) -> TaskContent:
    """Render text and caption for a firing at ``moment``.

    ``{{date}}``, ``{{time}}`` and ``{{datetime}}`` are always available; task
    variables with the same name take precedence.
    """
    values = {
        "date": moment.strftime("%Y-%m-%d"),
        "time": moment.strftime("%H:%M:%S"),
        "datetime": moment.strftime("%Y-%m-%d %H:%M:%S"),
    }
    values.update(content.variables)
    return dataclasses.replace(
        content,
        text=render_template(content.text, values),
        caption=render_template(content.caption, values) if content.caption else content.caption,
        variables=dict(content.variables),
    )


class TaskExecutor:
    """Drives a task through one firing of its lifecycle.

    The task body runs with no registry lock held. Body failures are stored on
    the task (``status=failed``, ``error_msg``) and never retried here; the
    next calendar instant is the recovery path.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        now: Callable[[], datetime],
        history: deque[TaskExecution],
        transport: "Transport | None" = None,
    ) -> None:
        self._registry = registry
        self._now = now
        self._history = history
        self._transport = transport

    def set_transport(self, transport: "Transport") -> None:
        self._transport = transport

    async def execute(self, task_id: str) -> ScheduledTask | None:
        """Execute one firing. Returns the task as it stands afterwards."""
        task = await self._registry.begin_run(task_id)
        if task is None or task.status != TaskStatus.RUNNING:
            return task

        execution = TaskExecution(
            execution_id=str(uuid.uuid4()),
            task_id=task_id,
            start_time=self._now(),
        )
        logger.info(f"Executing task: {task.name} ({task_id}, run {task.run_count})")

        error: str | None = None
        try:
            execution.results = await self._perform(task)
        except asyncio.CancelledError:
            await self._registry.finish_run(task_id, "execution cancelled")
            raise
        except Exception as e:
            error = str(e) or e.__class__.__name__
            logger.warning(f"Task execution failed: {task_id} - {error}")

        finished = await self._registry.finish_run(task_id, error)

        execution.end_time = self._now()
        execution.status = finished.status if finished else TaskStatus.FAILED
        execution.error = error or ""
        self._history.append(execution)

        if error is None:
            logger.info(f"Task executed successfully: {task_id}")
        return finished

    async def _perform(self, task: ScheduledTask) -> list[str]:
        if self._transport is None or not self._transport.is_connected:
            raise TransportDisconnectedError("chat transport not connected")

        if task.kind == TaskKind.MESSAGE:
            return await self._send_scheduled_message(task)
        # Status and story posts go through the same lifecycle; the transport
        # has no broadcast primitive for them yet.
        logger.info(f"Posting scheduled {task.kind.value}: {task.content.text!r}")
        return []

    async def _send_scheduled_message(self, task: ScheduledTask) -> list[str]:
        content = render_content(task.content, self._now())
        message_ids = []
        for recipient in task.recipients:
            try:
                message_id = await self._transport.send_message(recipient, content.text)
            except Exception as e:
                logger.error(f"Failed to send message to {recipient}: {e}")
                raise
            message_ids.append(message_id)
            logger.info(f"Sent scheduled message to {recipient}")
        return message_ids
