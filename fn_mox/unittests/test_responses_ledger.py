"""Unit tests for response sources and the call ledger."""

from __future__ import annotations

import pytest

from fn_mox import (
    CONSUMED,
    CallLedger,
    FallthroughMarker,
    QueueConsumedError,
    ResponseQueue,
    StaticResponse,
)
from fn_mox.responses import is_reusable, pending_for


def test_queue_copies_its_entries() -> None:
    """Mutating the source list after construction does not grow the queue."""
    entries: list[object] = [1, 2]
    queue = ResponseQueue(entries)
    entries.append(3)

    assert queue.remaining() == 2
    assert queue.value("f") == 1
    assert len(queue) == 1


def test_queue_resolves_callable_entries() -> None:
    """Callable entries are called with the invocation arguments."""
    queue = ResponseQueue([lambda a, b=0: a + b])

    assert queue.value("add", (1,), {"b": 2}) == 3
    with pytest.raises(QueueConsumedError, match='Stack of "add"'):
        queue.value("add")


def test_static_response_resolves_fresh_each_time() -> None:
    """StaticResponse keeps returning the same value or calling again."""
    values = iter(range(3))
    counter = StaticResponse(lambda: next(values))
    constant = StaticResponse("same")

    assert [counter.value() for _ in range(3)] == [0, 1, 2]
    assert [constant.value() for _ in range(2)] == ["same", "same"]


@pytest.mark.parametrize(
    ("source", "expected"),
    [
        (ResponseQueue([1, 2, 3]), 3),
        (ResponseQueue([]), 0),
        (CONSUMED, 0),
        (StaticResponse(1), 1),
        (FallthroughMarker(), 1),
        ("literal", 1),
        (print, 1),
    ],
    ids=["queue", "empty-queue", "consumed", "static", "fallthrough", "value", "fn"],
)
def test_pending_for(source: object, expected: int) -> None:
    """Each source type reports its remaining responses."""
    assert pending_for(source) == expected


def test_is_reusable() -> None:
    """Only static and fallthrough sources are reusable."""
    assert is_reusable(StaticResponse(1))
    assert is_reusable(FallthroughMarker())
    assert not is_reusable(ResponseQueue([1]))
    assert not is_reusable(True)


def test_ledger_buckets_and_journal() -> None:
    """The ledger keeps a global journal and per-name buckets."""
    ledger = CallLedger()

    ledger.record("f", (1,))
    ledger.record("g", (), {"flag": True})
    ledger.record("f", (2, 3))

    assert ledger.calls("f") == [(1,), (2, 3)]
    assert ledger.all_calls() == {"f": [(1,), (2, 3)], "g": [()]}
    assert ledger.count("f") == 2
    assert ledger.count("h") == 0
    assert "g" in ledger
    assert len(ledger.journal) == 3
    assert [inv.name for inv in ledger] == ["f", "g", "f"]
    assert ledger.invocations("g")[0].to_dict() == {
        "name": "g",
        "args": [],
        "kwargs": {"flag": True},
    }
    assert repr(ledger.journal[1]) == "g(flag=True)"


def test_queue_copy_is_independent() -> None:
    """A copy holds the pending entries and drains separately."""
    queue = ResponseQueue([1, 2, 3])
    queue.value("f")

    clone = queue.copy()
    assert clone.value("f") == 2
    assert clone.remaining() == 1
    assert queue.remaining() == 2
