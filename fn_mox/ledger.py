"""Append-only record of operations invoked on a :class:`FakeFunctions`."""

from __future__ import annotations

import dataclasses as dc
import typing as t


@dc.dataclass(slots=True, frozen=True)
class Invocation:
    """A single recorded call."""

    name: str
    args: tuple[t.Any, ...] = ()
    kwargs: dict[str, t.Any] = dc.field(default_factory=dict)

    def to_dict(self) -> dict[str, t.Any]:
        """Return a plain mapping of this invocation."""
        return {
            "name": self.name,
            "args": list(self.args),
            "kwargs": dict(self.kwargs),
        }

    def __repr__(self) -> str:
        """Return a call-like debug representation."""
        parts = [repr(arg) for arg in self.args]
        parts.extend(f"{key}={value!r}" for key, value in self.kwargs.items())
        return f"{self.name}({', '.join(parts)})"


class CallLedger:
    """Journal of invocations kept in call order and bucketed by name."""

    def __init__(self) -> None:
        self.journal: list[Invocation] = []
        self._by_name: dict[str, list[Invocation]] = {}

    def record(
        self,
        name: str,
        args: tuple[t.Any, ...] = (),
        kwargs: t.Mapping[str, t.Any] | None = None,
    ) -> Invocation:
        """Append a call of *name* and return the stored entry."""
        invocation = Invocation(name, tuple(args), dict(kwargs or {}))
        self.journal.append(invocation)
        self._by_name.setdefault(name, []).append(invocation)
        return invocation

    def invocations(self, name: str) -> list[Invocation]:
        """Return a copy of the entries recorded for *name*."""
        return list(self._by_name.get(name, ()))

    def calls(self, name: str) -> list[tuple[t.Any, ...]]:
        """Return the positional argument tuples recorded for *name*."""
        return [inv.args for inv in self._by_name.get(name, ())]

    def all_calls(self) -> dict[str, list[tuple[t.Any, ...]]]:
        """Return every bucket keyed by operation name in first-call order."""
        return {
            name: [inv.args for inv in entries]
            for name, entries in self._by_name.items()
        }

    def count(self, name: str) -> int:
        """Return how many times *name* was recorded."""
        return len(self._by_name.get(name, ()))

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> t.Iterator[Invocation]:
        return iter(list(self.journal))
