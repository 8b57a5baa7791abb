# tests/test_task_store.py

from __future__ import annotations

import json

import pytest

from cockpit_central.core.errors import AuthError, CockpitError, GraphHTTPError
from cockpit_central.tasks.task_models import Task, new_task
from cockpit_central.tasks.task_store import TaskStore

from .conftest import MINIMAL_COLUMNS, STANDARD_COLUMNS
from .fakes import FakeListApi, FakeNotifier


def _row(item_id: str, **fields) -> dict:
    return {"id": item_id, "fields": fields}


def _unknown_field_error(name: str) -> GraphHTTPError:
    body = json.dumps({"error": {"message": f"Field '{name}' is not recognized"}})
    return GraphHTTPError(400, "Bad Request", body)


@pytest.mark.asyncio
async def test_load_normalizes_and_sorts(api: FakeListApi, store: TaskStore) -> None:
    api.on("GET", "/columns", {"value": STANDARD_COLUMNS})
    api.on(
        "GET",
        "/items?",
        {
            "value": [
                _row("2", Title="Relire contrat", Pole="EVO", Status="Terminé", SortOrder=1),
                _row("1", Title="Appeler client", Pole="bien chez soi", Status="à faire", SortOrder=5),
            ]
        },
    )

    tasks = await store.load_tasks()

    assert [(t.id, t.pole, t.status) for t in tasks] == [("1", "BCS", "Backlog"), ("2", "EVO", "Termine")]
    assert store.tasks == tasks
    assert "$top=500" in api.calls[1].url
    assert "$expand=fields" in api.calls[1].url


@pytest.mark.asyncio
async def test_load_sorts_by_status_then_order_then_title(api: FakeListApi, store: TaskStore) -> None:
    api.on("GET", "/columns", {"value": MINIMAL_COLUMNS})
    api.on(
        "GET",
        "/items?",
        {
            "value": [
                _row("a", Title="B", Pole="BCS", Status="EnCours", SortOrder=1),
                _row("b", Title="A", Pole="BCS", Status="Backlog", SortOrder=2),
                _row("c", Title="Z", Pole="BCS", Status="Backlog", SortOrder=1),
                _row("d", Title="Y", Pole="BCS", Status="Backlog", SortOrder=1),
            ]
        },
    )

    tasks = await store.load_tasks()

    assert [t.id for t in tasks] == ["d", "c", "b", "a"]


@pytest.mark.asyncio
async def test_schema_is_read_once_per_session(api: FakeListApi, store: TaskStore) -> None:
    api.on("GET", "/columns", {"value": MINIMAL_COLUMNS})
    api.on("GET", "/items?", {"value": []})

    await store.load_tasks()
    await store.load_tasks()
    assert len([c for c in api.calls if "/columns" in c.url]) == 1

    store.reset()
    assert store.tasks == []
    assert store.schema is None

    await store.load_tasks()
    assert len([c for c in api.calls if "/columns" in c.url]) == 2


@pytest.mark.asyncio
async def test_load_failure_keeps_previous_tasks(api: FakeListApi, store: TaskStore) -> None:
    api.on("GET", "/columns", {"value": MINIMAL_COLUMNS})
    api.on("GET", "/items?", {"value": [_row("1", Title="t", Pole="BCS")]}, GraphHTTPError(503, "Service Unavailable", ""))

    await store.load_tasks()
    with pytest.raises(GraphHTTPError):
        await store.load_tasks()

    assert [t.id for t in store.tasks] == ["1"]


@pytest.mark.asyncio
async def test_create_on_minimal_list_sends_only_known_columns(
    api: FakeListApi, store: TaskStore, notifier: FakeNotifier
) -> None:
    api.on("GET", "/columns", {"value": MINIMAL_COLUMNS})
    api.on(
        "POST",
        "/items",
        {"id": "42", "fields": {"Title": "Finaliser le rapport", "Pole": "BCS", "Status": "Backlog", "SortOrder": 1.0}},
    )

    task = new_task(title="Finaliser le rapport", pole="BCS", status="Backlog", due="", sort_order=1.0)
    created = await store.create_task(task)

    (post,) = api.calls_for("POST")
    assert post.json_body == {
        "fields": {"Title": "Finaliser le rapport", "Pole": "BCS", "Status": "Backlog", "SortOrder": 1.0}
    }
    assert created.id == "42"
    assert store.tasks == [created]
    # Default priority has nowhere to go on this list.
    assert len(notifier.warnings()) == 1
    assert "Priority" in notifier.warnings()[0]


@pytest.mark.asyncio
async def test_create_rejects_empty_title_before_any_call(api: FakeListApi, store: TaskStore) -> None:
    with pytest.raises(ValueError):
        await store.create_task(Task(id="", title="   ", pole="BCS"))

    assert api.calls == []


@pytest.mark.asyncio
async def test_create_retries_without_unknown_field(api: FakeListApi, store: TaskStore, notifier: FakeNotifier) -> None:
    # The column existed when the schema was read and was deleted since.
    api.on("GET", "/columns", {"value": STANDARD_COLUMNS})
    api.on("POST", "/items", _unknown_field_error("Notes"), {"id": "7", "fields": {"Title": "t", "Pole": "EVO"}})

    created = await store.create_task(Task(id="", title="t", pole="EVO", notes="à relire", sort_order=3.0))

    first, second = api.calls_for("POST")
    assert first.json_body["fields"]["Notes"] == "à relire"
    assert "Notes" not in second.json_body["fields"]
    assert created.id == "7"
    assert any('"Notes"' in w for w in notifier.warnings())


@pytest.mark.asyncio
async def test_create_failure_leaves_local_list_untouched(api: FakeListApi, store: TaskStore) -> None:
    api.on("GET", "/columns", {"value": MINIMAL_COLUMNS})
    api.on("POST", "/items", GraphHTTPError(403, "Forbidden", "{}"))

    with pytest.raises(GraphHTTPError):
        await store.create_task(Task(id="", title="t", pole="BCS"))

    assert store.tasks == []


@pytest.mark.asyncio
async def test_create_with_degraded_schema_relies_on_retry(
    api: FakeListApi, store: TaskStore, notifier: FakeNotifier
) -> None:
    api.on("GET", "/columns", GraphHTTPError(403, "Forbidden", "{}"))
    api.on("POST", "/items", {"id": "5", "fields": {"Title": "t"}})

    created = await store.create_task(Task(id="", title="t", pole="PERSO", due_date="2025-01-01T00:00:00Z"))

    assert store.schema_degraded is True
    (post,) = api.calls_for("POST")
    # Not pruned: canonical keys are sent, optionals were dropped by the mapper.
    assert post.json_body == {"fields": {"Title": "t", "Pole": "PERSO", "Status": "Backlog"}}
    assert created.id == "5"
    assert any("DueDate" in w for w in notifier.warnings())


@pytest.mark.asyncio
async def test_auth_error_during_discovery_propagates(api: FakeListApi, store: TaskStore) -> None:
    api.on("GET", "/columns", AuthError("expired"))

    with pytest.raises(AuthError):
        await store.load_tasks()

    assert store.schema is None


@pytest.mark.asyncio
async def test_update_remaps_and_refreshes_local_task(api: FakeListApi, store: TaskStore) -> None:
    api.on("GET", "/columns", {"value": STANDARD_COLUMNS})
    api.on("GET", "/items?", {"value": [_row("1", Title="t", Pole="BCS", Status="Backlog")]})
    api.on("PATCH", "/items/1/fields", {"Title": "t", "Pole": "BCS", "Status": "EnCours", "field_7": "2025-06-12T00:00:00Z"})

    await store.load_tasks()
    refreshed = await store.update_task_fields("1", {"Status": "EnCours", "DueDate": "2025-06-12T00:00:00Z"})

    (patch,) = api.calls_for("PATCH")
    assert patch.json_body == {"Status": "EnCours", "field_7": "2025-06-12T00:00:00Z"}
    assert refreshed is not None
    assert refreshed.status == "EnCours"
    assert store.get_task("1") is refreshed


@pytest.mark.asyncio
async def test_update_with_nothing_writable_sends_nothing(
    api: FakeListApi, store: TaskStore, notifier: FakeNotifier
) -> None:
    api.on("GET", "/columns", {"value": MINIMAL_COLUMNS})

    result = await store.update_task_fields("1", {"DueDate": "2025-06-12T00:00:00Z", "Bogus": 1})

    assert result is None
    assert api.calls_for("PATCH") == []
    assert any("DueDate" in w for w in notifier.warnings())


@pytest.mark.asyncio
async def test_update_retries_on_raw_field_map(api: FakeListApi, store: TaskStore) -> None:
    api.on("GET", "/columns", {"value": STANDARD_COLUMNS})
    api.on("PATCH", "/fields", _unknown_field_error("Priority"), None)

    result = await store.update_task_fields("9", {"Status": "Termine", "Priority": "P1"})

    first, second = api.calls_for("PATCH")
    assert first.json_body == {"Status": "Termine", "Priority": "P1"}
    assert second.json_body == {"Status": "Termine"}
    assert result is None


@pytest.mark.asyncio
async def test_delete_removes_local_task_after_success(api: FakeListApi, store: TaskStore) -> None:
    api.on("GET", "/columns", {"value": MINIMAL_COLUMNS})
    api.on("GET", "/items?", {"value": [_row("1", Title="a", Pole="BCS"), _row("2", Title="b", Pole="BCS")]})
    api.on("DELETE", "/items/1", None)

    await store.load_tasks()
    await store.delete_task("1")

    assert [t.id for t in store.tasks] == ["2"]


@pytest.mark.asyncio
async def test_delete_failure_keeps_local_task(api: FakeListApi, store: TaskStore) -> None:
    api.on("GET", "/columns", {"value": MINIMAL_COLUMNS})
    api.on("GET", "/items?", {"value": [_row("1", Title="a", Pole="BCS")]})
    api.on("DELETE", "/items/1", GraphHTTPError(404, "Not Found", ""))

    await store.load_tasks()
    with pytest.raises(GraphHTTPError):
        await store.delete_task("1")

    assert [t.id for t in store.tasks] == ["1"]


@pytest.mark.asyncio
async def test_create_on_standard_list_keeps_due_date_from_resolved_column(api: FakeListApi, store: TaskStore) -> None:
    api.on("GET", "/columns", {"value": STANDARD_COLUMNS})
    api.on(
        "POST",
        "/items",
        {"id": "11", "fields": {"Title": "Devis", "Pole": "BCS", "Status": "Backlog", "field_7": "2025-06-12T00:00:00Z"}},
    )

    created = await store.create_task(new_task(title="Devis", pole="BCS", due="20250612", sort_order=1.0))

    (post,) = api.calls_for("POST")
    assert post.json_body["fields"]["field_7"] == "2025-06-12T00:00:00Z"
    assert created.due_date == "2025-06-12T00:00:00Z"
    assert store.get_task("11") is created


@pytest.mark.asyncio
async def test_load_reads_values_from_non_canonical_columns(api: FakeListApi, store: TaskStore) -> None:
    api.on(
        "GET",
        "/columns",
        {
            "value": [
                {"name": "Title", "displayName": "Title"},
                {"name": "Pole", "displayName": "Pole"},
                {"name": "Status", "displayName": "Status"},
                {"name": "Importance", "displayName": "Importance"},
                {"name": "Tri", "displayName": "Tri"},
            ]
        },
    )
    api.on(
        "GET",
        "/items?",
        {
            "value": [
                _row("1", Title="b", Pole="BCS", Importance="urgent", Tri=2),
                _row("2", Title="a", Pole="BCS", Importance="3", Tri=1),
            ]
        },
    )

    tasks = await store.load_tasks()

    assert [(t.id, t.priority, t.sort_order) for t in tasks] == [("2", "P3", 1.0), ("1", "P1", 2.0)]


@pytest.mark.asyncio
async def test_update_refresh_reads_due_date_from_resolved_column(api: FakeListApi, store: TaskStore) -> None:
    api.on("GET", "/columns", {"value": STANDARD_COLUMNS})
    api.on("GET", "/items?", {"value": [_row("1", Title="t", Pole="BCS", Status="Backlog")]})
    api.on("PATCH", "/items/1/fields", {"Title": "t", "Pole": "BCS", "Status": "Backlog", "field_7": "2025-06-12T00:00:00Z"})

    await store.load_tasks()
    refreshed = await store.update_task_fields("1", {"DueDate": "2025-06-12T00:00:00Z"})

    assert refreshed is not None
    assert refreshed.due_date == "2025-06-12T00:00:00Z"


@pytest.mark.asyncio
async def test_update_with_none_clears_the_column(api: FakeListApi, store: TaskStore, notifier: FakeNotifier) -> None:
    api.on("GET", "/columns", {"value": STANDARD_COLUMNS})
    api.on("PATCH", "/items/1/fields", {"Title": "t"})

    await store.update_task_fields("1", {"DueDate": None})

    (patch,) = api.calls_for("PATCH")
    assert patch.json_body == {"field_7": None}
    assert notifier.warnings() == []


@pytest.mark.asyncio
async def test_create_without_returned_item_is_not_committed_locally(api: FakeListApi, store: TaskStore) -> None:
    api.on("GET", "/columns", {"value": MINIMAL_COLUMNS})
    api.on("POST", "/items", None, {"fields": {"Title": "t"}})

    with pytest.raises(CockpitError):
        await store.create_task(Task(id="", title="t", pole="BCS"))
    with pytest.raises(CockpitError):
        await store.create_task(Task(id="", title="t", pole="BCS"))

    assert store.tasks == []
