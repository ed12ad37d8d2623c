"""Exception hierarchy for Courier.

Scheduling errors are raised to callers. Provider errors classify the outcome
of a single AI completion call and drive the auto-reply retry policy.
"""


class CourierError(Exception):
    """Base exception for all Courier errors."""


class InvalidScheduleError(CourierError):
    """A calendar expression could not be parsed."""


class TaskNotFoundError(CourierError):
    """No scheduled task exists with the given ID."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"task not found: {task_id}")
        self.task_id = task_id


class TransportDisconnectedError(CourierError):
    """The chat transport is not connected."""


class ProviderError(CourierError):
    """An AI provider call failed.

    Used directly for unclassified HTTP outcomes, in which case the raw
    status code and body are kept for diagnostics.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ProviderUnauthorizedError(ProviderError):
    """Credentials were rejected or are missing."""


class ProviderRateLimitedError(ProviderError):
    """The provider asked the caller to back off."""


class ProviderUnavailableError(ProviderError):
    """The provider could not be reached or is temporarily down."""


class ProviderBadResponseError(ProviderError):
    """The provider answered, but the payload was unusable."""
