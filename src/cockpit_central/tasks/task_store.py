# src/cockpit_central/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..core.errors import CockpitError
from ..core.ports import ListApi, Notifier, RawFields
from ..graph.client import DEFAULT_PAGE_SIZE, ListEndpoints
from ..graph.retry import ErrorClassifier, extract_unknown_field_name, send_with_field_fallback
from .field_mapper import (
    prune_unknown_fields,
    remap_partial_fields,
    remote_row_to_task,
    strip_link_fields,
    task_to_remote_fields,
)
from .schema import FieldResolution, SchemaMap, SchemaResolver
from .task_models import FieldWarning, Task

logger = logging.getLogger(__name__)


class _LogNotifier:
    def notify(self, message: str, level: str = "info") -> None:
        logger.log(logging.WARNING if level in ("warn", "error") else logging.INFO, "%s", message)


def _sort_key(t: Task) -> tuple[str, str, float, str]:
    return (t.pole, t.status, t.sort_order, t.title)


class TaskStore:
    """
    Task store backed by a Microsoft List.

    Owns the session state: the column schema, the field resolution table and
    the in-memory task list. reset() drops all of it; the next call
    rediscovers the columns.

    Ordering rule for every write: the remote call must succeed before the
    in-memory list changes. A failed write leaves local state untouched.

    Concurrency: nothing here de-duplicates overlapping calls. Two load_tasks()
    in flight both hit the network and the last one to finish wins.
    """

    def __init__(
        self,
        api: ListApi,
        endpoints: ListEndpoints,
        *,
        notifier: Notifier | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
        classifier: ErrorClassifier = extract_unknown_field_name,
    ) -> None:
        self._api = api
        self._endpoints = endpoints
        self._notifier: Notifier = notifier or _LogNotifier()
        self._page_size = max(1, int(page_size))
        self._classifier = classifier
        self._resolver = SchemaResolver(api, endpoints.columns())
        self.tasks: list[Task] = []

    # ---- session ----

    @property
    def schema(self) -> SchemaMap | None:
        return self._resolver.schema

    @property
    def resolution(self) -> FieldResolution:
        return self._resolver.resolution

    @property
    def schema_degraded(self) -> bool:
        return self._resolver.degraded

    def reset(self) -> None:
        """Forget schema, resolution and loaded tasks."""
        self._resolver.reset()
        self.tasks = []

    async def ensure_schema(self) -> SchemaMap:
        return await self._resolver.resolve()

    def get_task(self, item_id: str) -> Task | None:
        for t in self.tasks:
            if t.id == item_id:
                return t
        return None

    # ---- helpers ----

    def _warn(self, warnings: list[FieldWarning]) -> None:
        for w in warnings:
            self._notifier.notify(w.message(), "warn")

    def _on_strip(self, field_name: str) -> None:
        self._notifier.notify(f'Field "{field_name}" missing in the list: value ignored.', "warn")

    def _prune(self, fields: RawFields) -> RawFields:
        # After a failed discovery the column set is unknown, not empty:
        # leave the payload to the unknown-field retry instead.
        if self._resolver.degraded:
            return fields
        return prune_unknown_fields(fields, self._resolver.schema) or {}

    # ---- public API ----

    async def load_tasks(self) -> list[Task]:
        await self.ensure_schema()

        # First page only: lists beyond page_size items are truncated.
        data = await self._api.request_json("GET", self._endpoints.items(top=self._page_size))
        rows = (data or {}).get("value") or []

        resolution = self._resolver.resolution
        items = [remote_row_to_task(r, resolution) for r in rows if isinstance(r, Mapping)]
        items.sort(key=_sort_key)
        self.tasks = items
        logger.info("Loaded %d tasks", len(items))
        return items

    async def create_task(self, task: Task) -> Task:
        if not (task.title or "").strip():
            raise ValueError("title is required")

        await self.ensure_schema()

        fields, warnings = task_to_remote_fields(task, self._resolver.resolution)
        if not task.link_url:
            strip_link_fields(fields)
        fields = self._prune(fields)
        self._warn(warnings)

        created = await send_with_field_fallback(
            self._api,
            "POST",
            self._endpoints.create_item(),
            {"fields": fields},
            classifier=self._classifier,
            on_strip=self._on_strip,
        )

        if not isinstance(created, Mapping) or not created.get("id"):
            raise CockpitError("list API accepted the new task but returned no item id; use /load to refresh")
        mapped = remote_row_to_task(created, self._resolver.resolution)
        self.tasks.append(mapped)
        logger.info("Task created id=%s pole=%s status=%s", mapped.id, mapped.pole, mapped.status)
        return mapped

    async def update_task_fields(self, item_id: str, partial: Mapping[str, Any]) -> Task | None:
        """
        Partial update keyed by logical field names (Status, DueDate, ...).

        Returns the refreshed local task when the server echoes the fields
        back and the task is loaded, else None.
        """
        await self.ensure_schema()

        fields, warnings = remap_partial_fields(partial or {}, self._resolver.resolution)
        fields = self._prune(fields)
        self._warn(warnings)

        if not fields:
            logger.info("Update for %s has no writable fields; nothing sent", item_id)
            return None

        echoed = await send_with_field_fallback(
            self._api,
            "PATCH",
            self._endpoints.item_fields(item_id),
            fields,
            fields_path=None,
            classifier=self._classifier,
            on_strip=self._on_strip,
        )
        logger.debug("Task updated id=%s keys=%s", item_id, sorted(fields))

        if not isinstance(echoed, Mapping):
            return None
        for i, t in enumerate(self.tasks):
            if t.id == item_id:
                refreshed = remote_row_to_task({"id": item_id, "fields": echoed}, self._resolver.resolution)
                self.tasks[i] = refreshed
                return refreshed
        return None

    async def delete_task(self, item_id: str) -> None:
        await self._api.request_json("DELETE", self._endpoints.item(item_id))
        self.tasks = [t for t in self.tasks if t.id != item_id]
        logger.info("Task deleted id=%s", item_id)
