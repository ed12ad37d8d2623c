from .auto_reply import router as auto_reply_router
from .tasks import router as tasks_router

__all__ = [
    "auto_reply_router",
    "tasks_router",
]
