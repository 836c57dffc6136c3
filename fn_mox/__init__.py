"""Fakeable indirection for built-in and environment-coupled operations.

Production code calls operations through a :class:`Functions` gateway; tests
pass a :class:`FakeFunctions` registry that returns configured responses and
records every call for later assertions.
"""

from __future__ import annotations

from .errors import (
    FnMoxError,
    NeverCalledError,
    NotMockedError,
    PendingResponsesError,
    QueueConsumedError,
    StackConsumedError,
    UndefinedOperationError,
)
from .fake import RECORD_ONLY_OPERATIONS, FakeFunctions
from .functions import Functions
from .inclusion import INCLUSION_OPERATIONS, IncludedFiles
from .ledger import CallLedger, Invocation
from .pytest_plugin import fake_functions as fake_functions_fixture
from .responses import (
    CONSUMED,
    ConsumedMarker,
    FallthroughMarker,
    ResponseQueue,
    StaticResponse,
)

__all__ = [
    "CONSUMED",
    "INCLUSION_OPERATIONS",
    "RECORD_ONLY_OPERATIONS",
    "CallLedger",
    "ConsumedMarker",
    "FakeFunctions",
    "FallthroughMarker",
    "FnMoxError",
    "Functions",
    "IncludedFiles",
    "Invocation",
    "NeverCalledError",
    "NotMockedError",
    "PendingResponsesError",
    "QueueConsumedError",
    "ResponseQueue",
    "StackConsumedError",
    "StaticResponse",
    "UndefinedOperationError",
    "fake_functions_fixture",
]
