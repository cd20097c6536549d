"""Exception hierarchy shared across the perception workflow."""

from __future__ import annotations

from typing import Literal

ResolutionReason = Literal["not_found", "no_url", "unsupported_type"]


class PerceptionError(RuntimeError):
    """Base class for errors raised by this package."""

    pass


class RequestResolutionError(PerceptionError):
    """
    The agent asked about an attachment that cannot be answered.

    Raised while resolving a request and recovered inside the action handler by
    re-prompting the agent. Never escapes :meth:`MediaPerceptionAction.handle`.
    """

    def __init__(self, reason: ResolutionReason, attachment_id: str, message: str) -> None:
        self.reason = reason
        self.attachment_id = attachment_id
        super().__init__(message)


class BackendError(PerceptionError):
    """Raised when a description backend fails or returns a malformed shape."""

    pass


class ActionExecutionError(PerceptionError):
    """Raised when the host dispatches an action that cannot be executed."""

    pass


__all__ = [
    "ActionExecutionError",
    "BackendError",
    "PerceptionError",
    "RequestResolutionError",
    "ResolutionReason",
]
