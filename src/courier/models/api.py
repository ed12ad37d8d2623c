"""API request/response schemas for FastAPI endpoints."""

from datetime import datetime

from pydantic import BaseModel

from courier.models.scheduled_task import (
    ScheduledTask,
    TaskContent,
    TaskExecution,
    TaskKind,
)


class TaskContentSchema(BaseModel):
    text: str = ""
    media_path: str | None = None
    media_type: str | None = None
    caption: str | None = None
    variables: dict[str, str] = {}

    def to_content(self) -> TaskContent:
        return TaskContent(
            text=self.text,
            media_path=self.media_path,
            media_type=self.media_type,
            caption=self.caption,
            variables=dict(self.variables),
        )


# Scheduled task schemas
class ScheduledTaskCreate(BaseModel):
    name: str
    kind: TaskKind = TaskKind.MESSAGE
    cron_expr: str
    task_id: str | None = None
    recipients: list[str] = []
    content: TaskContentSchema = TaskContentSchema()
    max_runs: int = 0

    def to_task(self) -> ScheduledTask:
        return ScheduledTask(
            task_id=self.task_id or "",
            name=self.name,
            kind=self.kind,
            cron_expr=self.cron_expr,
            recipients=list(self.recipients),
            content=self.content.to_content(),
            max_runs=self.max_runs,
        )


class ScheduledTaskUpdate(ScheduledTaskCreate):
    """Full replacement of a task's mutable fields."""

    is_active: bool = True

    def to_task(self) -> ScheduledTask:
        task = super().to_task()
        task.is_active = self.is_active
        return task


class ScheduledTaskResponse(BaseModel):
    task_id: str
    name: str
    kind: str
    cron_expr: str
    recipients: list[str]
    content: TaskContentSchema
    status: str
    is_active: bool
    run_count: int
    max_runs: int
    error_msg: str
    next_run: datetime | None
    last_run: datetime | None
    created_at: datetime | None
    updated_at: datetime | None

    @classmethod
    def from_task(cls, task: ScheduledTask) -> "ScheduledTaskResponse":
        return cls(
            task_id=task.task_id,
            name=task.name,
            kind=task.kind.value,
            cron_expr=task.cron_expr,
            recipients=task.recipients,
            content=TaskContentSchema(
                text=task.content.text,
                media_path=task.content.media_path,
                media_type=task.content.media_type,
                caption=task.content.caption,
                variables=task.content.variables,
            ),
            status=task.status.value,
            is_active=task.is_active,
            run_count=task.run_count,
            max_runs=task.max_runs,
            error_msg=task.error_msg,
            next_run=task.next_run,
            last_run=task.last_run,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskExecutionResponse(BaseModel):
    execution_id: str
    task_id: str
    start_time: datetime
    end_time: datetime | None
    status: str
    error: str
    results: list[str]

    @classmethod
    def from_execution(cls, execution: TaskExecution) -> "TaskExecutionResponse":
        return cls(
            execution_id=execution.execution_id,
            task_id=execution.task_id,
            start_time=execution.start_time,
            end_time=execution.end_time,
            status=execution.status.value,
            error=execution.error,
            results=execution.results,
        )


# Auto-reply schemas
class ConnectionTestResponse(BaseModel):
    ok: bool
    error: str | None = None
