# src/cockpit_central/tasks/field_mapper.py

"""
Task <-> list item translation.

This is the only place where the loose dict shape of a list item is touched.
Everything past this module works with Task objects.

Outbound mapping never notifies anyone: values that cannot be written are
returned as FieldWarning items and the caller decides how to surface them.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable, Mapping
from typing import Any

from ..core.ports import RawFields
from .normalize import norm_key, normalize_pole, normalize_priority, normalize_status
from .schema import FieldResolution, SchemaMap
from .task_models import FieldWarning, LogicalField, Priority, Task, TaskStatus

logger = logging.getLogger(__name__)

# Inbound probing order per logical field: canonical key first, then synonyms
# seen in hand-made lists.
READ_KEYS: dict[LogicalField, tuple[str, ...]] = {
    LogicalField.TITLE: ("Title", "Titre"),
    LogicalField.POLE: ("Pole", "Pôle", "PoleKey", "PoleId"),
    LogicalField.STATUS: ("Status", "Statut"),
    LogicalField.DUE_DATE: ("DueDate", "Echeance", "Échéance", "Echéance", "Due", "Date"),
    LogicalField.PRIORITY: ("Priority", "Priorite", "Priorité"),
    LogicalField.NOTES: ("Notes", "Note", "Commentaires", "Commentaire"),
    LogicalField.SORT_ORDER: ("SortOrder", "Order", "Ordre"),
    LogicalField.LINK_URL: ("LinkUrl", "Lien", "URL", "Url"),
}

# Written only when the list has a matching column.
OPTIONAL_FIELDS: tuple[LogicalField, ...] = (
    LogicalField.DUE_DATE,
    LogicalField.PRIORITY,
    LogicalField.NOTES,
    LogicalField.LINK_URL,
    LogicalField.SORT_ORDER,
)

_LINK_NORM = norm_key(LogicalField.LINK_URL.value)


def _present(v: Any) -> bool:
    return v is not None and v != ""


def pick_field(fields: Mapping[str, Any] | None, preferred_keys: Iterable[str]) -> Any:
    """
    First non-empty value among preferred_keys.

    Exact keys are tried in order; then any key of `fields` whose normalized
    form matches one of the preferred keys.
    """
    if not fields:
        return None
    keys = list(preferred_keys)
    for k in keys:
        v = fields.get(k)
        if _present(v):
            return v

    wanted = {norm_key(k) for k in keys}
    for k, v in fields.items():
        if norm_key(k) in wanted and _present(v):
            return v
    return None


def _unwrap_link(value: Any) -> str:
    if isinstance(value, Mapping):
        url = value.get("Url") or value.get("url")
        return str(url) if url else ""
    return "" if value is None else str(value)


def _to_number(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        n = float(value)
    except (TypeError, ValueError):
        return 0.0
    # "nan" would make the load ordering unstable.
    return n if math.isfinite(n) else 0.0


def hyperlink_value(url: str) -> dict[str, str]:
    return {"Url": url, "Description": ""}


def remote_row_to_task(row: Mapping[str, Any], resolution: FieldResolution | None = None) -> Task:
    """
    Map a list item ({"id": ..., "fields": {...}}) to a canonical Task.

    With a resolution, the resolved column of each field is read before the
    fixed synonyms, so values written to e.g. "field_7" or "Importance" read
    back from the same column.
    """
    f = row.get("fields") or {}
    if not isinstance(f, Mapping):
        f = {}

    def pick(lf: LogicalField) -> Any:
        resolved = resolution.get(lf) if resolution is not None else None
        keys = READ_KEYS[lf]
        if resolved:
            keys = (resolved, *keys)
        return pick_field(f, keys)

    title = pick(LogicalField.TITLE)
    return Task(
        id=str(row.get("id") or ""),
        title=str(title) if title is not None else "",
        pole=normalize_pole(pick(LogicalField.POLE) or ""),
        status=normalize_status(pick(LogicalField.STATUS) or TaskStatus.BACKLOG.value),
        priority=normalize_priority(pick(LogicalField.PRIORITY) or Priority.P2.value),
        due_date=str(pick(LogicalField.DUE_DATE) or ""),
        notes=str(pick(LogicalField.NOTES) or ""),
        link_url=_unwrap_link(pick(LogicalField.LINK_URL)),
        sort_order=_to_number(pick(LogicalField.SORT_ORDER)),
        raw=dict(row),
    )


def _task_value(task: Task, lf: LogicalField) -> Any:
    if lf is LogicalField.DUE_DATE:
        return task.due_date
    if lf is LogicalField.PRIORITY:
        return task.priority
    if lf is LogicalField.NOTES:
        return task.notes
    if lf is LogicalField.LINK_URL:
        return task.link_url
    if lf is LogicalField.SORT_ORDER:
        return task.sort_order
    raise KeyError(lf)


def task_to_remote_fields(
    task: Task,
    resolution: FieldResolution,
) -> tuple[RawFields, list[FieldWarning]]:
    """
    Build the outgoing field map for a task.

    Title is always written. Pole and Status go to their resolved keys, or to
    the canonical key names for lists that use those natively. Optional
    fields (SortOrder included) are written only when a resolved column
    exists; otherwise they are left out entirely, never sent as null, and
    reported as warnings (except SortOrder, which the user never typed).
    """
    fields: RawFields = {LogicalField.TITLE.value: task.title}
    warnings: list[FieldWarning] = []

    fields[resolution.get(LogicalField.POLE) or LogicalField.POLE.value] = task.pole
    fields[resolution.get(LogicalField.STATUS) or LogicalField.STATUS.value] = task.status

    for lf in OPTIONAL_FIELDS:
        value = _task_value(task, lf)
        key = resolution.get(lf)

        if not _present(value):
            continue
        if not key:
            # Sort order is bookkeeping, not user input: nothing to report.
            if lf is not LogicalField.SORT_ORDER:
                warnings.append(FieldWarning(field=lf.value, value=value, reason="no matching column"))
            continue
        fields[key] = hyperlink_value(str(value)) if lf is LogicalField.LINK_URL else value

    return fields, warnings


def strip_link_fields(fields: RawFields | None) -> RawFields | None:
    """Drop any key that normalizes to "linkurl" (in place)."""
    if not fields:
        return fields
    for k in [k for k in fields if norm_key(k) == _LINK_NORM]:
        del fields[k]
    return fields


def remap_partial_fields(
    partial: Mapping[str, Any],
    resolution: FieldResolution,
) -> tuple[RawFields, list[FieldWarning]]:
    """
    Translate a partial update keyed by logical names into internal keys.

    Unresolved logical keys are dropped (warning only when a value was
    given). Keys that are not logical names pass through unchanged; the
    final prune decides whether they survive.
    None on a resolved key is kept and clears the column.
    """
    out: RawFields = {}
    warnings: list[FieldWarning] = []
    logical_by_name = {lf.value: lf for lf in LogicalField}

    for name, value in partial.items():
        lf = logical_by_name.get(name)
        if lf is None or lf is LogicalField.TITLE:
            out[name] = value
            continue

        key = resolution.get(lf)
        if not key:
            if _present(value):
                warnings.append(FieldWarning(field=lf.value, value=value, reason="no matching column"))
            continue

        if lf is LogicalField.LINK_URL:
            # Empty link clears the column.
            out[key] = hyperlink_value(str(value)) if _present(value) else None
            continue

        out[key] = value

    return out, warnings


def prune_unknown_fields(fields: RawFields | None, schema: SchemaMap | None) -> RawFields | None:
    """
    Final safety pass before every write (in place).

    Removes keys the list does not have. Keys of existing columns stay, None
    included: it goes out as JSON null and clears the column. With no schema
    at all (never resolved) the fields are left alone.
    """
    if not fields:
        return fields
    if schema is None:
        return fields

    for k in list(fields):
        if not schema.has_column(k):
            logger.debug("Pruning field %s (unknown column)", k)
            del fields[k]
    return fields
