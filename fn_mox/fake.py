"""Registry of faked operations with an invocation ledger."""

from __future__ import annotations

import logging
import threading
import typing as t

from .errors import NeverCalledError, NotMockedError, StackConsumedError
from .functions import Functions, StrPath
from .inclusion import INCLUSION_OPERATIONS
from .ledger import CallLedger, Invocation
from .responses import (
    CONSUMED,
    ConsumedMarker,
    FallthroughMarker,
    ResponseQueue,
    StaticResponse,
    pending_for,
    resolve_entry,
)
from .verifiers import PendingResponseVerifier

if t.TYPE_CHECKING:
    from .inclusion import IncludedFiles

logger = logging.getLogger(__name__)

RECORD_ONLY_OPERATIONS: t.Final[frozenset[str]] = frozenset(
    {"exit", "die", "echo", "print"}
)

_MISSING = object()


class FakeFunctions(Functions):
    """Drop-in replacement for :class:`Functions` used in tests.

    Parameters
    ----------
    responses:
        Mapping of operation name to the response source used when that
        operation is invoked. Plain values and callables are used once; wrap
        them in :class:`~fn_mox.responses.StaticResponse` to reuse them, use a
        :class:`~fn_mox.responses.ResponseQueue` for a series of answers, or
        :class:`~fn_mox.responses.FallthroughMarker` to let the real operation
        run while still recording the call. Queues are copied, so registries
        built from the same mapping never drain each other's entries.
    fail_on_missing:
        When ``True``, invoking an operation without a configured response
        raises :class:`~fn_mox.errors.NotMockedError`. When ``False`` (the
        default) the call is recorded and forwarded to *gateway*.
    gateway:
        The real :class:`Functions` used for unconfigured and fallthrough
        operations. A fresh instance is created when omitted.

    ``exit``, ``die``, ``echo`` and ``print`` are only ever recorded; they
    never terminate the process or write output.
    """

    def __init__(
        self,
        responses: t.Mapping[str, object] | None = None,
        fail_on_missing: bool = False,  # noqa: FBT001, FBT002 - mirrors Functions API
        *,
        gateway: Functions | None = None,
    ) -> None:
        self._gateway = gateway if gateway is not None else Functions()
        super().__init__(included_files=self._gateway.included_files)
        self._responses: dict[str, object] = {
            name: source.copy() if isinstance(source, ResponseQueue) else source
            for name, source in (responses or {}).items()
        }
        self._fail_on_missing = fail_on_missing
        self._ledger = CallLedger()
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Configuration accessors
    # ------------------------------------------------------------------
    @property
    def fail_on_missing(self) -> bool:
        """Return whether unconfigured operations raise instead of delegating."""
        return self._fail_on_missing

    @property
    def gateway(self) -> Functions:
        """Return the real gateway used for delegated calls."""
        return self._gateway

    @property
    def included_files(self) -> IncludedFiles:
        """Return the gateway's side table of files loaded by ``*_once``."""
        return self._gateway.included_files

    @property
    def responses(self) -> dict[str, object]:
        """Return a snapshot of the configured response sources."""
        with self._lock:
            return dict(self._responses)

    @property
    def journal(self) -> list[Invocation]:
        """Return every recorded invocation in call order."""
        with self._lock:
            return list(self._ledger)

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------
    def resolve(self, name: str) -> t.Callable[..., t.Any]:
        """Resolve *name* against the real gateway."""
        return self._gateway.resolve(name)

    def invoke(
        self,
        name: str,
        args: t.Sequence[t.Any] = (),
        kwargs: t.Mapping[str, t.Any] | None = None,
    ) -> t.Any:  # noqa: ANN401 - results are whatever was configured
        """Invoke operation *name* with *args* and return the faked result."""
        call_args = tuple(args)
        call_kwargs = dict(kwargs or {})
        if name in RECORD_ONLY_OPERATIONS:
            return self._record_only(name, call_args, call_kwargs)
        with self._lock:
            source = self._responses.get(name, _MISSING)
            if source is _MISSING:
                return self._dispatch_unconfigured(name, call_args, call_kwargs)
            return self._dispatch_configured(name, source, call_args, call_kwargs)

    call = invoke

    def _dispatch_unconfigured(
        self, name: str, args: tuple[t.Any, ...], kwargs: dict[str, t.Any]
    ) -> t.Any:  # noqa: ANN401
        """Raise in strict mode, otherwise record and forward to the gateway."""
        if self._fail_on_missing:
            msg = f'Function "{name}" was not mocked'
            raise NotMockedError(msg, name=name)
        logger.debug("%s has no fake response; delegating to the real operation", name)
        self._ledger.record(name, args, kwargs)
        return self._delegate(name, args, kwargs)

    def _dispatch_configured(
        self,
        name: str,
        source: object,
        args: tuple[t.Any, ...],
        kwargs: dict[str, t.Any],
    ) -> t.Any:  # noqa: ANN401
        """Produce a result from the configured *source* for *name*."""
        if isinstance(source, ConsumedMarker):
            msg = f'Mocked result of "{name}" function was already consumed'
            raise StackConsumedError(msg, name=name)

        self._ledger.record(name, args, kwargs)

        if isinstance(source, ResponseQueue):
            logger.debug("%s: popping queued response (%d left)", name, len(source))
            return source.value(name, args, kwargs)
        if isinstance(source, StaticResponse):
            logger.debug("%s: using static response", name)
            return source.value(args, kwargs)
        if isinstance(source, FallthroughMarker):
            logger.debug("%s: falling through to the real operation", name)
            return self._delegate(name, args, kwargs)

        # One-shot value or callable; the slot is consumed even if the
        # callable raises.
        logger.debug("%s: consuming one-shot response", name)
        self._responses[name] = CONSUMED
        return resolve_entry(source, args, kwargs)

    def _delegate(
        self, name: str, args: tuple[t.Any, ...], kwargs: dict[str, t.Any]
    ) -> t.Any:  # noqa: ANN401
        """Forward *name* to the real gateway."""
        if name in INCLUSION_OPERATIONS:
            return getattr(self._gateway, name)(*args, **kwargs)
        return self._gateway.call(name, args, kwargs)

    def _record_only(
        self, name: str, args: tuple[t.Any, ...], kwargs: dict[str, t.Any]
    ) -> int | None:
        """Record a terminating or output operation without performing it."""
        with self._lock:
            self._ledger.record(name, args, kwargs)
        return 1 if name == "print" else None

    # ------------------------------------------------------------------
    # Named operations shared with Functions
    # ------------------------------------------------------------------
    def require(self, path: StrPath) -> t.Any:  # noqa: ANN401
        """Fake or forward ``require``."""
        return self.invoke("require", (path,))

    def require_once(self, path: StrPath) -> t.Any:  # noqa: ANN401
        """Fake or forward ``require_once``."""
        return self.invoke("require_once", (path,))

    def include(self, path: StrPath) -> t.Any:  # noqa: ANN401
        """Fake or forward ``include``."""
        return self.invoke("include", (path,))

    def include_once(self, path: StrPath) -> t.Any:  # noqa: ANN401
        """Fake or forward ``include_once``."""
        return self.invoke("include_once", (path,))

    def exit(self, status: int | str = 0) -> None:  # type: ignore[override]
        """Record an ``exit`` call."""
        self.invoke("exit", (status,))

    def die(self, status: int | str | None = None) -> None:  # type: ignore[override]
        """Record a ``die`` call."""
        self.invoke("die", (status,))

    def echo(self, text: str) -> None:
        """Record text that would have been echoed."""
        self.invoke("echo", (text,))

    def print(self, text: str) -> int:
        """Record text that would have been printed and return ``1``."""
        self.invoke("print", (text,))
        return 1

    # ------------------------------------------------------------------
    # Ledger queries
    # ------------------------------------------------------------------
    @t.overload
    def calls(self, name: str) -> list[tuple[t.Any, ...]]: ...

    @t.overload
    def calls(self, name: None = None) -> dict[str, list[tuple[t.Any, ...]]]: ...

    def calls(
        self, name: str | None = None
    ) -> list[tuple[t.Any, ...]] | dict[str, list[tuple[t.Any, ...]]]:
        """Return argument tuples recorded for *name*, or for every operation."""
        with self._lock:
            if name is not None:
                return self._ledger.calls(name)
            return self._ledger.all_calls()

    def invocations(self, name: str | None = None) -> list[Invocation]:
        """Return full :class:`Invocation` records, optionally for one name."""
        with self._lock:
            if name is not None:
                return self._ledger.invocations(name)
            return list(self._ledger)

    def was_called(self, name: str) -> bool:
        """Return ``True`` when *name* was invoked at least once."""
        with self._lock:
            return name in self._ledger

    def called_times(self, name: str) -> int:
        """Return how many times *name* was invoked."""
        with self._lock:
            return self._ledger.count(name)

    def first_call(self, name: str) -> tuple[t.Any, ...]:
        """Return the arguments of the first call to *name*."""
        with self._lock:
            calls = self._ledger.calls(name)
        if not calls:
            msg = f'Function "{name}" was not called yet'
            raise NeverCalledError(msg, name=name)
        return calls[0]

    def first_argument(self, name: str, index: int = 0) -> t.Any:  # noqa: ANN401
        """Return argument *index* of the first call to *name*."""
        return self.first_call(name)[index]

    # ------------------------------------------------------------------
    # Pending responses
    # ------------------------------------------------------------------
    @t.overload
    def pending_count(self, name: str) -> int: ...

    @t.overload
    def pending_count(self, name: None = None) -> dict[str, int]: ...

    def pending_count(self, name: str | None = None) -> int | dict[str, int]:
        """Return how many configured responses are still unused.

        With *name*, return the count for that operation; an operation that
        was never configured raises :class:`~fn_mox.errors.NotMockedError`.
        """
        with self._lock:
            if name is None:
                return {key: pending_for(src) for key, src in self._responses.items()}
            if name not in self._responses:
                msg = f'Function "{name}" was not mocked a call was triggered'
                raise NotMockedError(msg, name=name)
            return pending_for(self._responses[name])

    def pending_total(self) -> int:
        """Return the sum of all pending response counts."""
        return sum(self.pending_count().values())

    def verify_consumed(self) -> None:
        """Raise when one-shot responses or queued entries were never used."""
        with self._lock:
            responses = dict(self._responses)
            journal = list(self._ledger)
        PendingResponseVerifier().verify(responses, journal)

    # ------------------------------------------------------------------
    # Termination and output queries
    # ------------------------------------------------------------------
    def exited(self) -> bool:
        """Return ``True`` when ``exit`` was called."""
        return self.was_called("exit")

    def exit_code(self) -> int | str:
        """Return the status passed to the first ``exit`` call."""
        return t.cast(
            "int | str",
            self._first_status("exit", "Exit was never called. Use: exited() first", 0),
        )

    def died(self) -> bool:
        """Return ``True`` when ``die`` was called."""
        return self.was_called("die")

    def die_code(self) -> int | str | None:
        """Return the status passed to the first ``die`` call."""
        return t.cast(
            "int | str | None",
            self._first_status("die", "Die was never called. Use: died() first", None),
        )

    def _first_status(self, name: str, message: str, default: object) -> object:
        with self._lock:
            calls = self._ledger.calls(name)
        if not calls:
            raise NeverCalledError(message, name=name)
        first = calls[0]
        return first[0] if first else default

    def echos(self) -> list[str]:
        """Return every echoed string in call order."""
        return self._flattened("echo")

    def was_echoed(self, text: str) -> bool:
        """Return ``True`` when *text* was echoed."""
        return text in self.echos()

    def prints(self) -> list[str]:
        """Return every printed string in call order."""
        return self._flattened("print")

    def was_printed(self, text: str) -> bool:
        """Return ``True`` when *text* was printed."""
        return text in self.prints()

    def _flattened(self, name: str) -> list[t.Any]:
        with self._lock:
            return [arg for args in self._ledger.calls(name) for arg in args]

    # ------------------------------------------------------------------
    # Inclusion queries
    # ------------------------------------------------------------------
    def was_required(self, path: StrPath) -> bool:
        """Return ``True`` when ``require`` was called with *path*."""
        return self._was_loaded("require", path)

    def was_required_once(self, path: StrPath) -> bool:
        """Return ``True`` when ``require_once`` was called with *path*."""
        return self._was_loaded("require_once", path)

    def was_included(self, path: StrPath) -> bool:
        """Return ``True`` when ``include`` was called with *path*."""
        return self._was_loaded("include", path)

    def was_included_once(self, path: StrPath) -> bool:
        """Return ``True`` when ``include_once`` was called with *path*."""
        return self._was_loaded("include_once", path)

    def _was_loaded(self, name: str, path: StrPath) -> bool:
        with self._lock:
            calls = self._ledger.calls(name)
        return any(args and args[0] == path for args in calls)


__all__ = ["RECORD_ONLY_OPERATIONS", "FakeFunctions"]
