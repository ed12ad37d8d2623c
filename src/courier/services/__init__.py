from .auto_reply import AutoReplyService, extract_text, shape_response, should_reply
from .clock import ClockDriver, CronSchedule
from .executor import TaskExecutor, render_content, render_template
from .providers import HostedProvider, LocalProvider, ProviderClient, create_provider
from .registry import TaskRegistry
from .scheduler import SchedulerService

__all__ = [
    "AutoReplyService",
    "extract_text",
    "shape_response",
    "should_reply",
    "ClockDriver",
    "CronSchedule",
    "TaskExecutor",
    "render_content",
    "render_template",
    "HostedProvider",
    "LocalProvider",
    "ProviderClient",
    "create_provider",
    "TaskRegistry",
    "SchedulerService",
]
