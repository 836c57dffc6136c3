"""Behave step definitions for FakeFunctions scenarios."""
# pyright: reportMissingImports=false, reportUnknownMemberType=false

from __future__ import annotations

import typing as t

from behave import given, then, when  # type: ignore[attr-defined]

from fn_mox import (
    FakeFunctions,
    FallthroughMarker,
    NotMockedError,
    QueueConsumedError,
    ResponseQueue,
    StackConsumedError,
    StaticResponse,
    UndefinedOperationError,
)

# behave only puts features/steps on sys.path, so tests.helpers.parameters
# cannot be imported here; these parsers mirror it.
ERRORS: dict[str, type[Exception]] = {
    cls.__name__: cls
    for cls in (
        NotMockedError,
        QueueConsumedError,
        StackConsumedError,
        UndefinedOperationError,
    )
}

_LITERALS: dict[str, object] = {"true": True, "false": False, "none": None}


def parse_value(token: str) -> object:
    """Convert a feature-file token into a Python value."""
    stripped = token.strip()
    if stripped.lower() in _LITERALS:
        return _LITERALS[stripped.lower()]
    try:
        return int(stripped)
    except ValueError:
        return stripped


def parse_entry(token: str) -> object:
    stripped = token.strip()
    if stripped.endswith("+arg"):
        prefix = stripped.removesuffix("+arg")
        return lambda arg: prefix + arg
    return parse_value(stripped)


def parse_arguments(text: str) -> tuple[object, ...]:
    if not text:
        return ()
    return tuple(parse_value(part) for part in text.split(","))


def parse_counts(text: str) -> dict[str, int]:
    pairs = (item.split("=", 1) for item in text.split(","))
    return {name.strip(): int(count) for name, count in pairs}


def callable_returning(value: str) -> t.Callable[..., object]:
    parsed = parse_value(value)
    return lambda *_args, **_kwargs: parsed


class BehaveContext(t.Protocol):
    """Behave step context with attributes used in these steps."""

    responses: dict[str, object]
    fakes: FakeFunctions
    result: object


def _responses(context: BehaveContext) -> dict[str, object]:
    if not hasattr(context, "responses"):
        context.responses = {}
    return context.responses


@given('the operation "{name}" is faked with the value "{value}"')
def step_fake_value(context: BehaveContext, name: str, value: str) -> None:
    """Configure a one-shot literal."""
    _responses(context)[name] = parse_value(value)


@given('the operation "{name}" is faked with the queue "{values}"')
def step_fake_queue(context: BehaveContext, name: str, values: str) -> None:
    """Configure a queue of responses."""
    _responses(context)[name] = ResponseQueue(
        parse_entry(item) for item in values.split(",")
    )


@given('the operation "{name}" is faked with the static value "{value}"')
def step_fake_static(context: BehaveContext, name: str, value: str) -> None:
    """Configure a reusable response."""
    _responses(context)[name] = StaticResponse(parse_value(value))


@given('the operation "{name}" is faked with a callable returning "{value}"')
def step_fake_callable(context: BehaveContext, name: str, value: str) -> None:
    """Configure a one-shot callable."""
    _responses(context)[name] = callable_returning(value)


@given('the operation "{name}" falls through to the real implementation')
def step_fake_fallthrough(context: BehaveContext, name: str) -> None:
    """Configure a recorded passthrough."""
    _responses(context)[name] = FallthroughMarker()


@given("a fake registry")
def step_create_registry(context: BehaveContext) -> None:
    """Build a permissive registry from the collected responses."""
    context.fakes = FakeFunctions(_responses(context))


@given("a strict fake registry")
def step_create_strict_registry(context: BehaveContext) -> None:
    """Build a registry that rejects unconfigured operations."""
    context.fakes = FakeFunctions(_responses(context), fail_on_missing=True)


@when('I invoke "{name}" with arguments "{args}"')
def step_invoke_with_arguments(context: BehaveContext, name: str, args: str) -> None:
    """Invoke *name* with parsed arguments."""
    context.result = context.fakes.invoke(name, parse_arguments(args))


@when('I invoke "{name}" without arguments')
def step_invoke_without_arguments(context: BehaveContext, name: str) -> None:
    """Invoke *name* with no arguments."""
    context.result = context.fakes.invoke(name)


@then('the result should be "{value}"')
def step_check_result(context: BehaveContext, value: str) -> None:
    """Compare the last result with *value*."""
    assert context.result == parse_value(value)


@then('invoking "{name}" should raise "{error}"')
def step_check_raises(context: BehaveContext, name: str, error: str) -> None:
    """Assert that invoking *name* raises the named error."""
    try:
        context.fakes.invoke(name)
    except ERRORS[error]:
        return
    msg = f"{name} did not raise {error}"
    raise AssertionError(msg)


@then('"{name}" should have been called {count:d} times')
def step_check_call_count(context: BehaveContext, name: str, count: int) -> None:
    """Assert the ledger count for *name*."""
    assert context.fakes.called_times(name) == count


@then('the journal should read "{expected}"')
def step_check_journal(context: BehaveContext, expected: str) -> None:
    """Compare the call-like rendering of the journal."""
    assert ", ".join(repr(inv) for inv in context.fakes.journal) == expected


@then('the pending count of "{name}" should be {count:d}')
def step_check_pending_count(context: BehaveContext, name: str, count: int) -> None:
    """Assert the pending count for one operation."""
    assert context.fakes.pending_count(name) == count


@then('the pending counts should be "{counts}"')
def step_check_pending_counts(context: BehaveContext, counts: str) -> None:
    """Assert the pending counts for every configured operation."""
    assert context.fakes.pending_count() == parse_counts(counts)


@then("the pending total should be {count:d}")
def step_check_pending_total(context: BehaveContext, count: int) -> None:
    """Assert the sum of pending counts."""
    assert context.fakes.pending_total() == count
