# src/cockpit_central/tasks/task_views.py

"""Read-only summaries over loaded tasks (home page cards, pole headers)."""

from __future__ import annotations

import math
import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime

from .task_models import Task, TaskStatus

_DAY_SECONDS = 24 * 60 * 60


@dataclass(slots=True, frozen=True)
class PoleKpi:
    total: int
    open: int
    in_progress: int
    due_soon: int


def parse_iso(value: str | None) -> datetime | None:
    if not value:
        return None
    s = str(value).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(s)
    except ValueError:
        return None


def _due_ts(task: Task) -> float:
    d = parse_iso(task.due_date)
    return d.timestamp() if d is not None else math.inf


def kpi_for_pole(tasks: Iterable[Task], pole: str, *, now: float | None = None) -> PoleKpi:
    """
    Counts for one pole.

    due_soon: open tasks due between one day ago and seven days ahead.
    """
    now_ts = time.time() if now is None else now
    in_pole = [t for t in tasks if t.pole == pole]
    open_tasks = [t for t in in_pole if t.status != TaskStatus.TERMINE]

    due_soon = 0
    for t in open_tasks:
        ts = _due_ts(t)
        if math.isinf(ts):
            continue
        diff_days = (ts - now_ts) / _DAY_SECONDS
        if -1 <= diff_days <= 7.01:
            due_soon += 1

    return PoleKpi(
        total=len(in_pole),
        open=len(open_tasks),
        in_progress=sum(1 for t in in_pole if t.status == TaskStatus.EN_COURS),
        due_soon=due_soon,
    )


def top_tasks_for_pole(tasks: Iterable[Task], pole: str, n: int = 5) -> list[Task]:
    """Open tasks of a pole, earliest due first (undated last), then status/order/title."""
    open_tasks = [t for t in tasks if t.pole == pole and t.status != TaskStatus.TERMINE]
    open_tasks.sort(key=lambda t: (_due_ts(t), t.status, t.sort_order, t.title))
    return open_tasks[: max(0, int(n))]


def label_for(vocab: Sequence[Mapping[str, str]], key: str) -> str:
    """Display label for a canonical key; unknown keys are shown as-is."""
    for item in vocab:
        if item.get("key") == key:
            return item.get("label") or key
    return key
