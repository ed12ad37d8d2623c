"""Scheduled task model for calendar-driven message dispatch."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class TaskKind(str, Enum):
    MESSAGE = "message"
    STATUS = "status"
    STORY = "story"


class TaskStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


TERMINAL_STATUSES = frozenset({TaskStatus.COMPLETED, TaskStatus.CANCELLED})


@dataclass
class TaskContent:
    """What a task sends. ``{{name}}`` tokens in text and caption are rendered per firing."""

    text: str = ""
    media_path: str | None = None
    media_type: str | None = None  # image, video, audio, document
    caption: str | None = None
    variables: dict[str, str] = field(default_factory=dict)


@dataclass
class ScheduledTask:
    """A task that fires on every instant matching its cron expression."""

    name: str
    kind: TaskKind
    cron_expr: str
    task_id: str = ""  # Generated on add when empty
    recipients: list[str] = field(default_factory=list)
    content: TaskContent = field(default_factory=TaskContent)
    status: TaskStatus = TaskStatus.PENDING
    is_active: bool = True
    run_count: int = 0
    max_runs: int = 0  # 0 = unlimited
    error_msg: str = ""
    next_run: datetime | None = None
    last_run: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def run_cap_reached(self) -> bool:
        return self.max_runs > 0 and self.run_count >= self.max_runs


@dataclass
class TaskExecution:
    """Record of a single firing. Kept in memory only."""

    execution_id: str
    task_id: str
    start_time: datetime
    end_time: datetime | None = None
    status: TaskStatus = TaskStatus.RUNNING
    error: str = ""
    results: list[str] = field(default_factory=list)  # Produced message IDs
