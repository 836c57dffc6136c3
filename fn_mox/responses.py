"""Response sources that can be configured for a faked operation.

A registry slot holds exactly one source. Plain values and plain callables are
one-shot: the registry swaps them for :data:`CONSUMED` after their first use.
The wrappers below change that behaviour:

``ResponseQueue``
    an ordered series of one-shot entries, consumed front to back.
``StaticResponse``
    a value or callable that may be used any number of times.
``FallthroughMarker``
    record the call but let the real operation run.
"""

from __future__ import annotations

import typing as t
from collections import deque

from .errors import QueueConsumedError


def resolve_entry(
    entry: object, args: tuple[object, ...], kwargs: t.Mapping[str, object]
) -> object:
    """Return *entry*, calling it with the invocation arguments when callable."""
    if callable(entry):
        return entry(*args, **kwargs)
    return entry


class ResponseQueue:
    """Ordered responses handed out one per invocation."""

    __slots__ = ("_entries",)

    def __init__(self, entries: t.Iterable[object]) -> None:
        self._entries: deque[object] = deque(entries)

    def value(
        self,
        name: str,
        args: tuple[object, ...] = (),
        kwargs: t.Mapping[str, object] | None = None,
    ) -> object:
        """Pop the front entry and resolve it against the call arguments."""
        if not self._entries:
            msg = f'Stack of "{name}" function was already consumed'
            raise QueueConsumedError(msg, name=name)
        entry = self._entries.popleft()
        return resolve_entry(entry, args, kwargs or {})

    def copy(self) -> ResponseQueue:
        """Return an independent queue holding the entries still pending."""
        return ResponseQueue(self._entries)

    def remaining(self) -> int:
        """Return how many entries are still queued."""
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        """Return a debug representation."""
        return f"ResponseQueue({list(self._entries)!r})"


class StaticResponse:
    """A reusable response that is never consumed."""

    __slots__ = ("_value",)

    def __init__(self, value: object) -> None:
        self._value = value

    def value(
        self,
        args: tuple[object, ...] = (),
        kwargs: t.Mapping[str, object] | None = None,
    ) -> object:
        """Return the held value, calling it afresh when callable."""
        return resolve_entry(self._value, args, kwargs or {})

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        """Return a debug representation."""
        return f"StaticResponse({self._value!r})"


class FallthroughMarker:
    """Record the invocation and forward it to the real operation."""

    __slots__ = ()

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        """Return a debug representation."""
        return "FallthroughMarker()"


class ConsumedMarker:
    """Placeholder left behind once a one-shot response has been used."""

    __slots__ = ()

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        """Return a debug representation."""
        return "CONSUMED"


CONSUMED: t.Final[ConsumedMarker] = ConsumedMarker()


def is_reusable(source: object) -> bool:
    """Return ``True`` for sources that never deplete."""
    return isinstance(source, StaticResponse | FallthroughMarker)


def pending_for(source: object) -> int:
    """Return how many responses *source* can still produce.

    Queues report what is left, consumed slots report zero and every other
    source counts as a single pending response.
    """
    if isinstance(source, ResponseQueue):
        return source.remaining()
    if isinstance(source, ConsumedMarker):
        return 0
    return 1


__all__ = [
    "CONSUMED",
    "ConsumedMarker",
    "FallthroughMarker",
    "ResponseQueue",
    "StaticResponse",
    "is_reusable",
    "pending_for",
    "resolve_entry",
]
