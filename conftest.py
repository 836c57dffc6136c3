"""Global test configuration and shared fixtures."""

from __future__ import annotations

import typing as t

import pytest

from fn_mox.functions import Functions

pytest_plugins = ("fn_mox.pytest_plugin", "pytester")


@pytest.fixture(autouse=True)
def reset_included_files() -> t.Generator[None, None, None]:
    """Ensure the shared ``*_once`` side table is clean between tests."""
    Functions.reset_included_files()
    yield
    Functions.reset_included_files()
