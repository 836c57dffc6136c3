"""Custom exceptions raised by fn-mox."""

from __future__ import annotations


class FnMoxError(Exception):
    """Base class for all fn-mox errors."""

    def __init__(self, msg: str, *, name: str | None = None) -> None:
        super().__init__(msg)
        self.name = name


class UndefinedOperationError(FnMoxError, LookupError):
    """Raised when the real gateway cannot resolve an operation name."""


class NotMockedError(FnMoxError):
    """Raised when strict dispatch finds no configured response."""


class StackConsumedError(FnMoxError):
    """Raised when a one-shot response is requested a second time."""


class QueueConsumedError(StackConsumedError):
    """Raised when a :class:`~fn_mox.responses.ResponseQueue` runs dry."""


class NeverCalledError(FnMoxError):
    """Raised when an accessor needs a recorded call and none exists."""


class PendingResponsesError(FnMoxError, AssertionError):
    """Raised by :meth:`FakeFunctions.verify_consumed` on leftover responses."""


__all__ = [
    "FnMoxError",
    "NeverCalledError",
    "NotMockedError",
    "PendingResponsesError",
    "QueueConsumedError",
    "StackConsumedError",
    "UndefinedOperationError",
]
