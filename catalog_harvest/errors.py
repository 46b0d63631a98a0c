"""Exceptions raised and recorded by the harvest pipeline."""

from typing import Optional


class FetchError(Exception):
    """A failed fetch attempt.

    Fetch errors are recorded on the work item rather than raised out of a
    worker. ``str(error)`` is the message counted in the failure summary.
    """


class TransportError(FetchError):
    """Connection, timeout or other network-level failure."""


class StatusError(FetchError):
    """The server answered with a non-success status code."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DecodeError(FetchError):
    """The response body did not match the expected payload shape."""


class QueueClosedError(Exception):
    """Raised on put into a closed queue, or get from a closed, drained one."""


class LatchUnderflowError(RuntimeError):
    """Raised when a completion latch is counted down past zero."""
