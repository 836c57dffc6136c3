"""Pytest plugin providing the ``fake_functions`` and ``functions`` fixtures."""

from __future__ import annotations

import logging
import typing as t

import pytest

from .errors import PendingResponsesError
from .fake import FakeFunctions
from .functions import Functions

logger = logging.getLogger(__name__)

_PARAM_KEYS: t.Final[frozenset[str]] = frozenset(
    {"responses", "fail_on_missing", "verify_pending"}
)


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line and ini options for the plugin."""
    group = parser.getgroup("fn_mox")
    group.addoption(
        "--fn-mox-fail-on-missing",
        action="store_true",
        dest="fn_mox_fail_on_missing",
        default=None,
        help=(
            "Make the fake_functions fixture raise NotMockedError for operations "
            "without a configured response. Overrides the pytest.ini setting."
        ),
    )
    group.addoption(
        "--no-fn-mox-fail-on-missing",
        action="store_false",
        dest="fn_mox_fail_on_missing",
        default=None,
        help=(
            "Let the fake_functions fixture forward unconfigured operations to "
            "the real implementation. Overrides the pytest.ini setting."
        ),
    )
    group.addoption(
        "--fn-mox-verify-pending",
        action="store_true",
        dest="fn_mox_verify_pending",
        default=None,
        help=(
            "Fail tests that leave one-shot or queued fake responses unused. "
            "Overrides the pytest.ini setting."
        ),
    )
    parser.addini(
        "fn_mox_fail_on_missing",
        "Raise NotMockedError for operations without a configured response.",
        type="bool",
        default=False,
    )
    parser.addini(
        "fn_mox_verify_pending",
        "Call verify_consumed() on the fake_functions fixture during teardown.",
        type="bool",
        default=False,
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register plugin-specific markers."""
    config.addinivalue_line(
        "markers",
        (
            "fn_mox(responses=None, fail_on_missing=None, verify_pending=None): "
            "configure the fake_functions fixture for a single test."
        ),
    )


@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(
    item: pytest.Item, call: pytest.CallInfo[t.Any]
) -> t.Generator[None, None, None]:
    """Attach each phase report to the item so teardown can inspect it."""
    del call
    outcome = yield
    rep = outcome.get_result()
    setattr(item, f"rep_{rep.when}", rep)
    if rep.when == "teardown":
        _apply_deferred_verify_failure(item, rep)


def _fixture_settings(request: pytest.FixtureRequest) -> dict[str, t.Any]:
    """Merge marker and fixture param settings; the marker wins."""
    settings = _param_settings(request)
    marker = request.node.get_closest_marker("fn_mox")
    if marker is not None:
        unknown = set(marker.kwargs) - _PARAM_KEYS
        if unknown:
            msg = f"fn_mox marker got unexpected keys: {sorted(unknown)}"
            raise TypeError(msg)
        settings.update(marker.kwargs)
    return settings


def _param_settings(request: pytest.FixtureRequest) -> dict[str, t.Any]:
    """Return settings passed via indirect parametrisation, if any."""
    param = getattr(request, "param", None)
    if param is None:
        return {}
    if not isinstance(param, dict):
        msg = (
            "fake_functions fixture param must be a dict with any of the keys "
            f"{sorted(_PARAM_KEYS)}, got {type(param).__name__}"
        )
        raise TypeError(msg)
    unknown = set(param) - _PARAM_KEYS
    if unknown:
        msg = f"fake_functions fixture param got unexpected keys: {sorted(unknown)}"
        raise TypeError(msg)
    return dict(param)


def _flag(
    request: pytest.FixtureRequest, settings: dict[str, t.Any], key: str
) -> bool:
    """Resolve boolean *key*: marker > fixture param > CLI option > ini."""
    value = settings.get(key)
    if value is not None:
        return bool(value)
    config = request.config
    cli_value = config.getoption(f"fn_mox_{key}")
    if cli_value is not None:
        return bool(cli_value)
    return bool(config.getini(f"fn_mox_{key}"))


def _apply_deferred_verify_failure(
    item: pytest.Item, report: pytest.TestReport
) -> None:
    """Surface a verification error hidden behind an earlier test failure."""
    err: Exception | None = getattr(item, "_fn_mox_verify_error", None)
    if err is None:
        return
    delattr(item, "_fn_mox_verify_error")
    report.sections.append(("fn_mox verification", f"{type(err).__name__}: {err}"))


def _call_stage_failed(item: pytest.Item) -> bool:
    """Return ``True`` when the test body has already failed."""
    rep_call = getattr(item, "rep_call", None)
    return bool(rep_call and rep_call.failed)


@pytest.fixture
def fake_functions(
    request: pytest.FixtureRequest,
) -> t.Generator[FakeFunctions, None, None]:
    """Provide a :class:`FakeFunctions` configured from markers and options."""
    try:
        settings = _fixture_settings(request)
        fake = FakeFunctions(
            settings.get("responses") or {},
            fail_on_missing=_flag(request, settings, "fail_on_missing"),
        )
        verify_pending = _flag(request, settings, "verify_pending")
    except Exception:
        logger.exception("Error during fn_mox fixture setup")
        raise
    yield fake
    if verify_pending:
        _verify_fake(request.node, fake)


def _verify_fake(item: pytest.Item, fake: FakeFunctions) -> None:
    """Run :meth:`FakeFunctions.verify_consumed` during fixture teardown."""
    try:
        fake.verify_consumed()
    except PendingResponsesError as err:
        logger.exception("Error during fn_mox verification")
        if _call_stage_failed(item):
            item._fn_mox_verify_error = err  # type: ignore[attr-defined]
            return
        pytest.fail(f"{type(err).__name__}: {err}")


@pytest.fixture
def functions() -> t.Generator[Functions, None, None]:
    """Provide the real :class:`Functions` gateway with a clean inclusion table."""
    Functions.reset_included_files()
    yield Functions()
    Functions.reset_included_files()
