"""Scheduled task API endpoints."""

from fastapi import APIRouter, HTTPException, status

from courier.dependencies import SchedulerDep
from courier.models import (
    ScheduledTaskCreate,
    ScheduledTaskResponse,
    ScheduledTaskUpdate,
    TaskExecutionResponse,
)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.get("")
async def list_tasks(scheduler: SchedulerDep) -> list[ScheduledTaskResponse]:
    tasks = await scheduler.get_all_tasks()
    return [ScheduledTaskResponse.from_task(t) for t in tasks]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_task(
    body: ScheduledTaskCreate, scheduler: SchedulerDep
) -> ScheduledTaskResponse:
    """Create a task; an invalid cron expression is rejected with 422."""
    try:
        task = await scheduler.add_task(body.to_task())
    except ValueError as e:
        # Duplicate task ID
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return ScheduledTaskResponse.from_task(task)


@router.get("/stats")
async def get_stats(scheduler: SchedulerDep) -> dict[str, int]:
    return await scheduler.get_stats()


@router.get("/executions")
async def list_executions(
    scheduler: SchedulerDep, task_id: str | None = None
) -> list[TaskExecutionResponse]:
    """Recent executions, newest first."""
    return [
        TaskExecutionResponse.from_execution(e)
        for e in scheduler.get_executions(task_id)
    ]


@router.get("/{task_id}")
async def get_task(task_id: str, scheduler: SchedulerDep) -> ScheduledTaskResponse:
    task = await scheduler.get_task(task_id)
    return ScheduledTaskResponse.from_task(task)


@router.put("/{task_id}")
async def update_task(
    task_id: str, body: ScheduledTaskUpdate, scheduler: SchedulerDep
) -> ScheduledTaskResponse:
    task = await scheduler.update_task(task_id, body.to_task())
    return ScheduledTaskResponse.from_task(task)


@router.delete("/{task_id}")
async def delete_task(task_id: str, scheduler: SchedulerDep) -> ScheduledTaskResponse:
    """Cancel a task. The record is kept with status ``cancelled``."""
    task = await scheduler.remove_task(task_id)
    return ScheduledTaskResponse.from_task(task)


@router.post("/{task_id}/trigger", status_code=status.HTTP_202_ACCEPTED)
async def trigger_task(task_id: str, scheduler: SchedulerDep) -> ScheduledTaskResponse:
    """Fire a task now, outside its calendar."""
    task = await scheduler.trigger_task(task_id)
    return ScheduledTaskResponse.from_task(task)
