"""FastAPI dependency injection providers for services."""

from typing import Annotated

from fastapi import Depends, Request

from courier.services import AutoReplyService, SchedulerService


def get_scheduler(request: Request) -> SchedulerService:
    """Get the scheduler service from app state."""
    return request.app.state.scheduler


def get_auto_reply(request: Request) -> AutoReplyService:
    """Get the auto-reply service from app state."""
    return request.app.state.auto_reply


SchedulerDep = Annotated[SchedulerService, Depends(get_scheduler)]
AutoReplyDep = Annotated[AutoReplyService, Depends(get_auto_reply)]
