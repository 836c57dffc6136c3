"""Production gateway forwarding operation calls to the real implementations."""

from __future__ import annotations

import builtins
import importlib
import logging
import os
import sys
import typing as t

from .errors import UndefinedOperationError
from .inclusion import IncludedFiles, execute_file, resolve_path

logger = logging.getLogger(__name__)

StrPath = str | os.PathLike[str]


def _resolve_dotted(name: str) -> t.Any | None:
    """Import the longest module prefix of *name* and walk the remainder."""
    parts = name.split(".")
    for split in range(len(parts) - 1, 0, -1):
        module_name = ".".join(parts[:split])
        try:
            target: t.Any = importlib.import_module(module_name)
        except ImportError:
            continue
        for attr in parts[split:]:
            target = getattr(target, attr, None)
            if target is None:
                return None
        return target
    return None


class Functions:
    """Call real operations by name.

    Code that depends on environment-coupled operations receives an instance
    of this class and calls ``functions.<name>(...)``. Tests pass a
    :class:`~fn_mox.fake.FakeFunctions` with the same surface instead.

    Names resolve against an optional explicit *namespace* first, then
    :mod:`builtins`, then dotted ``module.attribute`` paths.
    """

    _shared_included_files: t.ClassVar[IncludedFiles] = IncludedFiles()

    def __init__(
        self,
        namespace: t.Mapping[str, t.Callable[..., t.Any]] | None = None,
        *,
        included_files: IncludedFiles | None = None,
    ) -> None:
        self._namespace = dict(namespace or {})
        self._included_files = included_files

    @classmethod
    def reset_included_files(cls) -> None:
        """Forget every file loaded by a ``*_once`` call on shared gateways."""
        cls._shared_included_files.reset()

    @property
    def included_files(self) -> IncludedFiles:
        """Return the side table tracking files loaded by ``*_once`` calls."""
        if self._included_files is not None:
            return self._included_files
        return type(self)._shared_included_files

    # ------------------------------------------------------------------
    # Generic dispatch
    # ------------------------------------------------------------------
    def resolve(self, name: str) -> t.Callable[..., t.Any]:
        """Return the callable addressed by *name*."""
        target = self._namespace.get(name)
        if target is None:
            target = getattr(builtins, name, None)
        if target is None and "." in name:
            target = _resolve_dotted(name)
        if target is None or not callable(target):
            msg = f'Function "{name}" does not exist'
            raise UndefinedOperationError(msg, name=name)
        return target

    def call(
        self,
        name: str,
        args: t.Sequence[t.Any] = (),
        kwargs: t.Mapping[str, t.Any] | None = None,
    ) -> t.Any:  # noqa: ANN401 - results are whatever the operation returns
        """Invoke the real operation *name* with *args* and *kwargs*."""
        func = self.resolve(name)
        return func(*args, **(kwargs or {}))

    def __getattr__(self, name: str) -> t.Callable[..., t.Any]:
        """Expose ``functions.<name>(...)`` as a shortcut for :meth:`call`."""
        if name.startswith("_"):
            raise AttributeError(name)

        def invoke(*args: t.Any, **kwargs: t.Any) -> t.Any:  # noqa: ANN401
            return self.call(name, args, kwargs)

        invoke.__name__ = name
        invoke.__qualname__ = f"{type(self).__name__}.{name}"
        return invoke

    # ------------------------------------------------------------------
    # File inclusion
    # ------------------------------------------------------------------
    def require(self, path: StrPath) -> dict[str, t.Any]:
        """Execute *path* and return its namespace; a missing file is fatal."""
        return t.cast("dict[str, t.Any]", self._load(path))

    def require_once(self, path: StrPath) -> dict[str, t.Any] | bool:
        """Like :meth:`require` but return ``True`` if *path* was loaded before."""
        return self._load(path, once=True)

    def include(self, path: StrPath) -> dict[str, t.Any] | bool:
        """Execute *path* and return its namespace, or ``False`` if missing."""
        try:
            return self._load(path)
        except FileNotFoundError:
            logger.warning("include(%s): failed to open file for inclusion", path)
            return False

    def include_once(self, path: StrPath) -> dict[str, t.Any] | bool:
        """Like :meth:`include` but return ``True`` if *path* was loaded before."""
        try:
            return self._load(path, once=True)
        except FileNotFoundError:
            logger.warning(
                "include_once(%s): failed to open file for inclusion", path
            )
            return False

    def _load(
        self, path: StrPath, *, once: bool = False
    ) -> dict[str, t.Any] | t.Literal[True]:
        resolved = resolve_path(path)
        if once and resolved in self.included_files:
            return True
        if not resolved.is_file():
            msg = f"Failed opening required file {os.fspath(path)!r}"
            raise FileNotFoundError(msg)
        if not once:
            return execute_file(resolved)
        # Marked before running so a file that includes itself sees it loaded.
        if not self.included_files.mark(resolved):
            return True
        try:
            return execute_file(resolved)
        except BaseException:
            self.included_files.discard(resolved)
            raise

    # ------------------------------------------------------------------
    # Termination and output
    # ------------------------------------------------------------------
    def exit(self, status: int | str = 0) -> t.NoReturn:
        """Terminate the process with *status*."""
        raise SystemExit(status)

    def die(self, status: int | str | None = None) -> t.NoReturn:
        """Terminate the process; a string *status* is reported on stderr."""
        raise SystemExit(status)

    def echo(self, text: str) -> None:
        """Write *text* to standard output without a trailing newline."""
        sys.stdout.write(text)

    def print(self, text: str) -> int:
        """Write *text* to standard output and return ``1``."""
        sys.stdout.write(text)
        return 1


__all__ = ["Functions"]
