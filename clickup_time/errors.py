"""
Error types raised by the time-tracking core.

Starting a timer while another one runs is NOT an error: operations report it
as a ``"not_started"`` result so the caller can offer to stop the running timer.
"""

from typing import Any, Optional


class TimeTrackingError(Exception):
    """Base class for every failure the core reports to callers."""

    error_type = "error"


class InvalidPeriodError(TimeTrackingError):
    """Unknown period token, or a custom period with a missing/bad bound."""

    error_type = "invalid_period"


class NotFoundError(TimeTrackingError):
    """A task or list name did not resolve to an id."""

    error_type = "not_found"


class UpstreamError(TimeTrackingError):
    """ClickUp returned an error or a payload the core cannot use."""

    error_type = "upstream_error"

    def __init__(
        self, message: str, status: Optional[int] = None, detail: Any = None
    ):
        super().__init__(message)
        self.status = status
        self.detail = detail
