from .api import (
    ConnectionTestResponse,
    ScheduledTaskCreate,
    ScheduledTaskResponse,
    ScheduledTaskUpdate,
    TaskContentSchema,
    TaskExecutionResponse,
)
from .auto_reply import AIProvider, AutoReplyConfig
from .messages import InboundMessage, MessageKind
from .scheduled_task import (
    ScheduledTask,
    TaskContent,
    TaskExecution,
    TaskKind,
    TaskStatus,
)

__all__ = [
    # API schemas
    "ConnectionTestResponse",
    "ScheduledTaskCreate",
    "ScheduledTaskResponse",
    "ScheduledTaskUpdate",
    "TaskContentSchema",
    "TaskExecutionResponse",
    # Chat events
    "InboundMessage",
    "MessageKind",
    # Domain models
    "AIProvider",
    "AutoReplyConfig",
    "ScheduledTask",
    "TaskContent",
    "TaskExecution",
    "TaskKind",
    "TaskStatus",
]
