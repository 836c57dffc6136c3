"""Bookkeeping for files loaded through the ``*_once`` inclusion operations."""

from __future__ import annotations

import logging
import os
import runpy
import threading
import typing as t
from pathlib import Path

logger = logging.getLogger(__name__)

INCLUSION_OPERATIONS: t.Final[frozenset[str]] = frozenset(
    {"require", "require_once", "include", "include_once"}
)


def resolve_path(path: str | os.PathLike[str]) -> Path:
    """Return the canonical form of *path* used as the side-table key."""
    return Path(path).expanduser().resolve()


class IncludedFiles:
    """Thread-safe set of resolved paths that have already been executed."""

    def __init__(self) -> None:
        self._loaded: set[Path] = set()
        self._lock = threading.Lock()

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, str | os.PathLike):
            return False
        with self._lock:
            return resolve_path(path) in self._loaded

    def mark(self, path: str | os.PathLike[str]) -> bool:
        """Record *path* as loaded; return ``False`` when it already was."""
        key = resolve_path(path)
        with self._lock:
            if key in self._loaded:
                return False
            self._loaded.add(key)
            return True

    def discard(self, path: str | os.PathLike[str]) -> None:
        """Forget *path* so a later ``*_once`` call executes it again."""
        with self._lock:
            self._loaded.discard(resolve_path(path))

    def reset(self) -> None:
        """Forget every loaded path."""
        with self._lock:
            self._loaded.clear()


def execute_file(path: str | os.PathLike[str]) -> dict[str, t.Any]:
    """Run the Python source at *path* and return its resulting namespace."""
    resolved = resolve_path(path)
    logger.debug("Executing included file %s", resolved)
    return runpy.run_path(str(resolved))
