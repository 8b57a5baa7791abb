# src/cockpit_central/tasks/normalize.py

"""
Tolerant normalization of user-edited list values.

People type "bien chez soi", "EN COURS" or "Terminé" straight into the list.
These helpers fold such values into canonical keys. They never raise: when no
rule matches, the trimmed original comes back so nothing is silently lost.
"""

from __future__ import annotations

import unicodedata
from typing import Any

from .task_models import Pole, Priority, TaskStatus


def norm_key(value: Any) -> str:
    """Trim, lower-case and strip diacritics ("Échéance " -> "echeance")."""
    s = "" if value is None else str(value)
    s = unicodedata.normalize("NFD", s.strip().lower())
    return "".join(ch for ch in s if not unicodedata.combining(ch))


def _raw(value: Any) -> str:
    return "" if value is None else str(value).strip()


def normalize_pole(value: Any) -> str:
    s = norm_key(value)
    if not s:
        return ""
    if s == "bcs" or "bien" in s or "chez" in s or "soi" in s:
        return Pole.BCS.value
    if s == "evo" or "evolumis" in s:
        return Pole.EVO.value
    if s in ("perso", "personnel", "personal") or "perso" in s:
        return Pole.PERSO.value
    return _raw(value)


def normalize_status(value: Any) -> str:
    s = norm_key(value)
    if not s:
        return TaskStatus.BACKLOG.value
    if s in ("backlog", "todo") or "a faire" in s or "to do" in s:
        return TaskStatus.BACKLOG.value
    if s == "encours" or "en cours" in s or "in progress" in s:
        return TaskStatus.EN_COURS.value
    if s == "enattente" or "en attente" in s or "waiting" in s or "blocked" in s:
        return TaskStatus.EN_ATTENTE.value
    # "termine" also covers "terminé" once accents are stripped.
    if "termine" in s or "done" in s or "completed" in s:
        return TaskStatus.TERMINE.value
    return _raw(value)


def normalize_priority(value: Any) -> str:
    s = norm_key(value)
    if not s:
        return Priority.P2.value
    if s in ("p1", "1") or "urgent" in s or "crit" in s:
        return Priority.P1.value
    if s in ("p2", "2") or "high" in s:
        return Priority.P2.value
    if s in ("p3", "3") or "low" in s:
        return Priority.P3.value
    return _raw(value)
