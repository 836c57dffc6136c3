"""Unit tests for :meth:`fn_mox.fake.FakeFunctions.invoke` dispatch."""

from __future__ import annotations

import threading
import typing as t

import pytest

from fn_mox import (
    CONSUMED,
    FakeFunctions,
    FallthroughMarker,
    Functions,
    NotMockedError,
    QueueConsumedError,
    ResponseQueue,
    StackConsumedError,
    StaticResponse,
    UndefinedOperationError,
)


def test_callable_response_receives_arguments() -> None:
    """A configured callable is invoked with the call arguments."""
    fakes = FakeFunctions({"some_function": lambda param: param})

    assert fakes.some_function("test") == "test"
    assert fakes.calls() == {"some_function": [("test",)]}
    assert fakes.was_called("some_function")


def test_literal_response_is_returned() -> None:
    """A configured value is returned as-is and the call is recorded."""
    fakes = FakeFunctions({"function_exists": True})

    assert fakes.function_exists("test") is True
    assert fakes.calls() == {"function_exists": [("test",)]}


def test_queue_hands_out_entries_in_order() -> None:
    """Queued values and callables are consumed front to back."""
    fakes = FakeFunctions(
        {
            "function_exists": ResponseQueue(
                [False, lambda param: "1" + param, True],
            ),
        }
    )

    assert fakes.function_exists() is False
    assert fakes.function_exists("test") == "1test"
    assert fakes.function_exists() is True
    assert fakes.calls("function_exists") == [(), ("test",), ()]

    with pytest.raises(QueueConsumedError) as excinfo:
        fakes.function_exists()
    assert (
        str(excinfo.value)
        == 'Stack of "function_exists" function was already consumed'
    )
    assert excinfo.value.name == "function_exists"


def test_drained_queue_still_records_the_failing_call() -> None:
    """The call that finds the queue empty is recorded before raising."""
    fakes = FakeFunctions({"function_exists": ResponseQueue(["one"])})

    assert fakes.function_exists("test") == "one"
    with pytest.raises(StackConsumedError):
        fakes.function_exists("test")
    assert fakes.called_times("function_exists") == 2


@pytest.mark.parametrize(
    "response",
    [False, lambda param: param],
    ids=["literal", "callable"],
)
def test_one_shot_response_is_consumed(response: object) -> None:
    """Plain values and callables succeed once, then raise."""
    fakes = FakeFunctions({"function_exists": response})

    fakes.function_exists("test")

    with pytest.raises(StackConsumedError) as excinfo:
        fakes.function_exists("test")
    assert not isinstance(excinfo.value, QueueConsumedError)
    assert (
        str(excinfo.value)
        == 'Mocked result of "function_exists" function was already consumed'
    )
    # The rejected call is not recorded.
    assert fakes.calls("function_exists") == [("test",)]
    assert fakes.responses["function_exists"] is CONSUMED


def test_none_is_a_valid_one_shot_response() -> None:
    """A configured ``None`` counts as configured, not as missing."""
    fakes = FakeFunctions({"getenv": None}, fail_on_missing=True)

    assert fakes.getenv("HOME") is None
    with pytest.raises(StackConsumedError):
        fakes.getenv("HOME")


def test_static_value_is_reusable() -> None:
    """StaticResponse values can be used any number of times."""
    fakes = FakeFunctions({"extract": StaticResponse(1)})

    assert [fakes.extract() for _ in range(3)] == [1, 1, 1]
    assert fakes.called_times("extract") == 3


def test_static_callable_runs_on_every_call() -> None:
    """StaticResponse callables are re-invoked with each call's arguments."""
    counter: list[int] = []

    def increase() -> None:
        counter.append(1)

    fakes = FakeFunctions({"increase": StaticResponse(increase)})

    for expected in (1, 2, 3):
        fakes.increase()
        assert len(counter) == expected
    assert fakes.called_times("increase") == 3


def test_static_callable_supports_arguments() -> None:
    """Positional and keyword arguments reach the static callable."""
    fakes = FakeFunctions(
        {"pair": StaticResponse(lambda first, second=0: [first, second])}
    )

    assert fakes.pair("1", second=1) == ["1", 1]
    assert fakes.invocations("pair")[0].kwargs == {"second": 1}


def test_strict_mode_rejects_unconfigured_operations() -> None:
    """fail_on_missing raises NotMockedError and records nothing."""
    fakes = FakeFunctions({}, fail_on_missing=True)

    with pytest.raises(NotMockedError) as excinfo:
        fakes.abs(-3)
    assert str(excinfo.value) == 'Function "abs" was not mocked'
    assert fakes.calls() == {}


def test_unconfigured_operation_delegates_to_real_gateway() -> None:
    """Without strict mode the real operation runs and the call is recorded."""
    fakes = FakeFunctions()

    assert fakes.abs(-3) == 3
    assert fakes.invoke("os.path.basename", ("/tmp/name.txt",)) == "name.txt"
    assert fakes.calls() == {
        "abs": [(-3,)],
        "os.path.basename": [("/tmp/name.txt",)],
    }


def test_gateway_errors_propagate_unchanged() -> None:
    """Errors raised by the real operation reach the caller unmodified."""
    fakes = FakeFunctions()

    with pytest.raises(ValueError, match="invalid literal"):
        fakes.int("not a number")
    with pytest.raises(UndefinedOperationError):
        fakes.nope()
    assert fakes.called_times("int") == 1
    assert fakes.called_times("nope") == 1


def test_fallthrough_forwards_even_in_strict_mode() -> None:
    """FallthroughMarker records the call and runs the real operation."""
    for strict in (False, True):
        fakes = FakeFunctions({"abs": FallthroughMarker()}, fail_on_missing=strict)

        assert fakes.abs(-5) == 5
        assert fakes.abs(-6) == 6
        assert fakes.calls("abs") == [(-5,), (-6,)]


def test_custom_gateway_namespace_is_used() -> None:
    """Delegation goes through the gateway the registry was given."""
    gateway = Functions({"mail": lambda *args: "sent"})
    fakes = FakeFunctions(gateway=gateway)

    assert fakes.mail("to", "subject", "body") == "sent"
    assert fakes.gateway is gateway


def test_callable_errors_propagate_and_consume_the_slot() -> None:
    """A failing one-shot callable still counts as used."""

    def boom(*_args: object) -> t.NoReturn:
        msg = "boom"
        raise RuntimeError(msg)

    fakes = FakeFunctions({"explode": boom})

    with pytest.raises(RuntimeError, match="boom"):
        fakes.explode()
    with pytest.raises(StackConsumedError):
        fakes.explode()
    assert fakes.called_times("explode") == 1


def test_callables_may_reenter_the_registry() -> None:
    """Configured callables can invoke other faked operations."""
    fakes = FakeFunctions(
        {
            "outer": lambda: fakes.inner() + 1,
            "inner": 41,
        }
    )

    assert fakes.outer() == 42
    assert [inv.name for inv in fakes.journal] == ["outer", "inner"]


def test_call_is_an_alias_for_invoke() -> None:
    """Functions.call on a fake dispatches like invoke."""
    fakes = FakeFunctions({"strlen": 4})

    assert fakes.call("strlen", ("test",)) == 4
    assert fakes.first_call("strlen") == ("test",)


def test_private_attributes_are_not_dispatched() -> None:
    """Underscore-prefixed attributes raise AttributeError."""
    fakes = FakeFunctions()

    with pytest.raises(AttributeError):
        fakes._not_an_operation  # noqa: B018
    assert fakes.calls() == {}


def test_responses_mapping_is_copied() -> None:
    """Consuming a response never mutates the caller's mapping."""
    responses: dict[str, object] = {"mail": True}
    fakes = FakeFunctions(responses)

    fakes.mail()

    assert responses == {"mail": True}


def test_concurrent_callers_consume_each_entry_once() -> None:
    """Queued entries are handed out exactly once across threads."""
    fakes = FakeFunctions({"next_id": ResponseQueue(range(100))})
    results: list[int] = []
    failures: list[StackConsumedError] = []

    def worker() -> None:
        for _ in range(20):
            try:
                results.append(fakes.next_id())
            except StackConsumedError as err:
                failures.append(err)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert sorted(results) == list(range(100))
    assert len(failures) == 60
    assert fakes.called_times("next_id") == 160
    assert fakes.pending_count("next_id") == 0
