"""Verification helpers for :class:`~fn_mox.fake.FakeFunctions`."""

from __future__ import annotations

import typing as t
from textwrap import indent

from .errors import PendingResponsesError
from .responses import is_reusable, pending_for

if t.TYPE_CHECKING:  # pragma: no cover - used only for typing
    from .ledger import Invocation


def _numbered(entries: t.Sequence[str], *, start: int = 1) -> str:
    if not entries:
        return "(none)"
    lines: list[str] = []
    for index, entry in enumerate(entries, start=start):
        entry_lines = entry.splitlines() or [""]
        lines.append(f"{index}. {entry_lines[0]}")
        lines.extend(f"   {extra}" for extra in entry_lines[1:])
    return "\n".join(lines)


def _format_sections(title: str, sections: list[tuple[str, str]]) -> str:
    parts = [title]
    for label, body in sections:
        if not body:
            continue
        parts.append("")
        parts.append(f"{label}:")
        parts.append(indent(body, "  "))
    return "\n".join(parts)


def _describe_pending(name: str, count: int) -> str:
    noun = "response" if count == 1 else "responses"
    return f"{name!r}: {count} {noun} left"


def _describe_invocations(invocations: t.Sequence[Invocation]) -> str:
    return _numbered([repr(inv) for inv in invocations])


class PendingResponseVerifier:
    """Check that every one-shot response and queued entry was used."""

    def verify(
        self,
        responses: t.Mapping[str, object],
        journal: t.Sequence[Invocation],
    ) -> None:
        """Raise :class:`PendingResponsesError` when responses are left over."""
        pending = {
            name: pending_for(source)
            for name, source in responses.items()
            if not is_reusable(source)
        }
        leftovers = {name: count for name, count in pending.items() if count}
        if not leftovers:
            return
        msg = _format_sections(
            "Unconsumed fake responses.",
            [
                (
                    "Pending",
                    _numbered(
                        [_describe_pending(n, c) for n, c in leftovers.items()]
                    ),
                ),
                ("Recorded calls", _describe_invocations(journal)),
            ],
        )
        raise PendingResponsesError(msg)


__all__ = ["PendingResponseVerifier"]
