"""Pytest configuration for the convtoc test suite."""

from __future__ import annotations

import contextlib
import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from types import MethodType, ModuleType
from typing import TYPE_CHECKING

import pytest

from convtoc import i18n
from convtoc.log import LOGGER_NAME

if TYPE_CHECKING:  # pragma: no cover - typing hints for wx fixtures
    import wx


def _normalise_marker_name(name: str) -> str:
    return name.replace("-", "_")


def _normalise_prefix(value: str) -> str:
    value = value.replace("\\", "/").strip()
    return value.rstrip("/")


def _path_matches_prefixes(path: str, prefixes: Sequence[str]) -> bool:
    return any(path == prefix or path.startswith(f"{prefix}/") for prefix in prefixes)


_SUITE_STASH_KEY = pytest.StashKey["SuiteDefinition"]()


@dataclass(frozen=True)
class SuiteDefinition:
    """Describe how a logical test suite should filter collected tests."""

    name: str
    include_any: Sequence[str] = ()
    exclude_any: Sequence[str] = ()
    include_by_default: bool = True
    include_paths: Sequence[str] = ()
    exclude_paths: Sequence[str] = ()
    description: str = ""
    when_to_run: str = ""

    def should_run(self, item: pytest.Item) -> bool:
        markers = {_normalise_marker_name(marker.name) for marker in item.iter_markers()}
        include = {_normalise_marker_name(name) for name in self.include_any}
        exclude = {_normalise_marker_name(name) for name in self.exclude_any}
        include_paths = tuple(_normalise_prefix(path) for path in self.include_paths)
        exclude_paths = tuple(_normalise_prefix(path) for path in self.exclude_paths)
        path = item.nodeid.split("::", 1)[0].replace("\\", "/")

        if include and markers & include:
            return True
        if include_paths and _path_matches_prefixes(path, include_paths):
            return True
        if not self.include_by_default:
            return False
        return not (
            markers & exclude
            or (exclude_paths and _path_matches_prefixes(path, exclude_paths))
        )


SUITES: Mapping[str, SuiteDefinition] = {
    "core": SuiteDefinition(
        name="core",
        exclude_any=("gui",),
        exclude_paths=("tests/gui",),
        description="Headless model, scheduler and persistence checks",
        when_to_run="Every local edit",
    ),
    "gui": SuiteDefinition(
        name="gui",
        include_any=("gui",),
        include_by_default=False,
        include_paths=("tests/gui",),
        description="wx panel, launcher and scheduler checks under xvfb",
        when_to_run="After touching convtoc.ui or convtoc.main",
    ),
}


def _format_suite_table() -> str:
    headers = ("Suite", "When to run", "Description")
    rows = [(suite.name, suite.when_to_run, suite.description) for suite in SUITES.values()]
    widths = [
        max(len(str(value)) for value in column)
        for column in zip(headers, *rows, strict=True)
    ]
    fmt = "  ".join(f"{{:<{width}}}" for width in widths)
    lines = [fmt.format(*headers), fmt.format(*("-" * width for width in widths))]
    lines.extend(fmt.format(*row) for row in rows)
    return "\n".join(lines)


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--suite",
        action="store",
        choices=sorted(SUITES),
        help="Select the logical test suite to run",
    )
    parser.addoption(
        "--list-suites",
        action="store_true",
        help="List available convtoc suites and exit",
    )


def pytest_configure(config: pytest.Config) -> None:
    if config.getoption("--list-suites"):
        print(_format_suite_table())
        pytest.exit("suite listing requested", returncode=0)
    suite_name = config.getoption("--suite")
    if suite_name is None:
        return
    config.stash[_SUITE_STASH_KEY] = SUITES[suite_name]


@pytest.hookimpl(trylast=True)
def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    suite = config.stash.get(_SUITE_STASH_KEY, None)
    if suite is None:
        return

    selected: list[pytest.Item] = []
    deselected: list[pytest.Item] = []
    for item in items:
        if suite.should_run(item):
            selected.append(item)
        else:
            deselected.append(item)

    if deselected:
        config.hook.pytest_deselected(items=deselected)
        items[:] = selected


@pytest.fixture(autouse=True)
def _untranslated_labels():
    """Keep every test on the untranslated catalogue."""
    i18n.install([])
    yield
    i18n.install([])


@pytest.fixture(autouse=True)
def _isolated_logger():
    """Drop handlers a test attached to the convtoc logger."""
    logger = logging.getLogger(LOGGER_NAME)
    handlers = list(logger.handlers)
    level = logger.level
    yield
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def _destroy_top_windows(wx: ModuleType) -> None:
    """Hide and destroy any lingering top-level windows."""
    for window in list(wx.GetTopLevelWindows()):
        if not window:
            continue
        with contextlib.suppress(Exception):
            window.Hide()
            window.Destroy()


def _install_safe_yield(app: wx.App) -> None:
    """Replace ``wx.App.Yield`` with a crash-resistant event pump."""
    if not hasattr(app, "HasPendingEvents") or not hasattr(app, "ProcessPendingEvents"):
        return

    def _safe_yield(self: wx.App, *args, **kwargs) -> None:
        for _ in range(5):
            had_events = False
            while self.HasPendingEvents():
                had_events = True
                self.ProcessPendingEvents()
            if not had_events:
                break

    app.Yield = MethodType(_safe_yield, app)


@pytest.fixture(scope="session")
def _wx_session_app(request: pytest.FixtureRequest, xvfb: None) -> tuple[ModuleType, wx.App]:
    """Create a shared ``wx.App`` guarded by the xvfb fixture."""
    wx = pytest.importorskip("wx")
    app = wx.App()
    _install_safe_yield(app)

    def _finalise() -> None:
        _destroy_top_windows(wx)
        with contextlib.suppress(Exception):
            app.Destroy()

    request.addfinalizer(_finalise)
    return wx, app


@pytest.fixture
def wx_app(_wx_session_app: tuple[ModuleType, wx.App]) -> wx.App:
    """Return the shared ``wx.App`` with no windows left from earlier tests."""
    wx, app = _wx_session_app
    _destroy_top_windows(wx)
    yield app
    _destroy_top_windows(wx)
