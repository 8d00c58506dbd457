"""Exceptions raised by the studio core and its collaborators."""

from typing import Optional


class StudioError(Exception):
    """Base class for all studio errors."""


class ValidationError(StudioError, ValueError):
    """Invalid user input; the operation was aborted without changing state."""


class NotFoundError(StudioError, KeyError):
    """A project record identifier that does not exist."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(record_id)

    def __str__(self) -> str:
        return f"Project not found: {self.record_id}"


class QuotaExceededError(StudioError):
    """The durable store rejected a write because it is full."""

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(
            message
            or "Storage limit exceeded. Projects with video or many images can be "
            "large; delete some old projects and try again."
        )


class RemoteServiceError(StudioError):
    """A generation service call failed.

    Attributes:
        operation: Name of the service operation that failed.
    """

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"{operation} failed: {reason}")
