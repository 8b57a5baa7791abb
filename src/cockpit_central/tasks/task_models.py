# src/cockpit_central/tasks/task_models.py

from __future__ import annotations

import re
import time
from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum
from typing import Any


class Pole(StrEnum):
    """Canonical pole keys. Display labels come from settings, never from here."""

    BCS = "BCS"
    EVO = "EVO"
    PERSO = "PERSO"


class TaskStatus(StrEnum):
    BACKLOG = "Backlog"
    EN_COURS = "EnCours"
    EN_ATTENTE = "EnAttente"
    TERMINE = "Termine"


class Priority(StrEnum):
    P1 = "P1"
    P2 = "P2"
    P3 = "P3"


class LogicalField(StrEnum):
    """
    Application-level field names.

    The value doubles as the canonical column key: stores created by the setup
    scripts use exactly these names.
    """

    TITLE = "Title"
    POLE = "Pole"
    STATUS = "Status"
    DUE_DATE = "DueDate"
    PRIORITY = "Priority"
    NOTES = "Notes"
    LINK_URL = "LinkUrl"
    SORT_ORDER = "SortOrder"


@dataclass(slots=True)
class Task:
    id: str
    title: str
    pole: str
    status: str = TaskStatus.BACKLOG.value
    priority: str = Priority.P2.value
    due_date: str = ""
    notes: str = ""
    link_url: str = ""
    sort_order: float = 0.0

    # Raw list item as received; only kept for diagnostics.
    raw: dict[str, Any] = field(default_factory=dict, repr=False, compare=False)


@dataclass(slots=True, frozen=True)
class FieldWarning:
    """A value that did not make it into an outgoing payload."""

    field: str
    value: Any
    reason: str

    def message(self) -> str:
        return f"Column {self.field} missing: value ignored ({self.reason})."


def now_sort_order() -> float:
    """Default sort order for new tasks: creation time in milliseconds."""
    return float(int(time.time() * 1000))


_DUE_ISO_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def format_due_digits(text: str | None) -> str:
    """
    Turn free digit entry into YYYY-MM-DD as the user types.

    "20250612" -> "2025-06-12", "202506" -> "2025-06"; non-digits are ignored.
    """
    d = re.sub(r"\D", "", str(text or ""))[:8]
    if len(d) <= 4:
        return d
    if len(d) <= 6:
        return f"{d[:4]}-{d[4:]}"
    return f"{d[:4]}-{d[4:6]}-{d[6:]}"


def is_valid_iso_date(text: str) -> bool:
    if not _DUE_ISO_RE.match(text or ""):
        return False
    try:
        date.fromisoformat(text)
    except ValueError:
        return False
    return True


def parse_due_input(text: str | None) -> str:
    """
    Parse a due-date entry into the stored ISO form.

    Empty input -> "". Otherwise the (digit-formatted) date must be a real
    calendar date; the result is "YYYY-MM-DDT00:00:00Z".
    Raises ValueError on an incomplete or impossible date.
    """
    raw = str(text or "").strip()
    if not raw:
        return ""
    formatted = format_due_digits(raw)
    if len(formatted) != 10 or not is_valid_iso_date(formatted):
        raise ValueError("Due date: type 8 digits (e.g. 20250612) or YYYY-MM-DD.")
    return f"{formatted}T00:00:00Z"


def new_task(
    *,
    title: str,
    pole: str,
    status: str = TaskStatus.BACKLOG.value,
    priority: str = Priority.P2.value,
    due: str | None = None,
    notes: str = "",
    link_url: str = "",
    sort_order: float | None = None,
) -> Task:
    """
    Build a not-yet-stored task from user input.

    Only the title is required. The id stays empty until the list assigns one.
    """
    title = (title or "").strip()
    if not title:
        raise ValueError("title is required")

    return Task(
        id="",
        title=title,
        pole=(pole or "").strip(),
        status=status or TaskStatus.BACKLOG.value,
        priority=priority or Priority.P2.value,
        due_date=parse_due_input(due),
        notes=(notes or "").strip(),
        link_url=(link_url or "").strip(),
        sort_order=now_sort_order() if sort_order is None else float(sort_order),
    )
