# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from cockpit_central.config import DEFAULT_POLES, DEFAULT_PRIORITIES, DEFAULT_STATUSES
from cockpit_central.core.state import AppState, ConsoleNotifier
from cockpit_central.graph.client import ListEndpoints
from cockpit_central.tasks.task_store import TaskStore

from .fakes import FakeListApi, FakeNotifier

SITE = "contoso.sharepoint.com,site-guid,web-guid"
LIST = "list-guid"

# Columns of a list created by the setup script, plus a French due-date column.
STANDARD_COLUMNS = [
    {"name": "Title", "displayName": "Titre"},
    {"name": "Pole", "displayName": "Pôle"},
    {"name": "Status", "displayName": "Statut"},
    {"name": "SortOrder", "displayName": "Ordre"},
    {"name": "Priority", "displayName": "Priorité"},
    {"name": "Notes", "displayName": "Notes"},
    {"name": "field_7", "displayName": "Échéance"},
]

# Bare list: no due date, priority, notes or link column.
MINIMAL_COLUMNS = [
    {"name": "Title", "displayName": "Title"},
    {"name": "Pole", "displayName": "Pole"},
    {"name": "Status", "displayName": "Status"},
    {"name": "SortOrder", "displayName": "SortOrder"},
]


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the console commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="Cockpit test",
        log_level="DEBUG",
        data_dir=tmp_path / "data",
        poles=[dict(p) for p in DEFAULT_POLES],
        statuses=[dict(s) for s in DEFAULT_STATUSES],
        priorities=[dict(p) for p in DEFAULT_PRIORITIES],
    )


@pytest.fixture()
def endpoints() -> ListEndpoints:
    return ListEndpoints(SITE, LIST)


@pytest.fixture()
def api() -> FakeListApi:
    return FakeListApi()


@pytest.fixture()
def notifier() -> FakeNotifier:
    return FakeNotifier()


@pytest.fixture()
def store(api: FakeListApi, endpoints: ListEndpoints, notifier: FakeNotifier) -> TaskStore:
    return TaskStore(api, endpoints, notifier=notifier)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> AppState:
    """AppState wired with the fake list API (no HTTP client, no token cache)."""
    return AppState(settings=settings, notifier=ConsoleNotifier(), task_store=store)
