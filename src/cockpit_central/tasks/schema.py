# src/cockpit_central/tasks/schema.py

"""
Runtime column discovery for the target list.

Lists are edited by hand, so the internal name of "due date" may be DueDate,
Echeance or field_3 depending on who created the column and in which language.
The resolver reads the column metadata once per session and maps each logical
field to whatever internal key actually exists, or to None.

Failure policy: if the metadata read fails, the session continues with an
empty schema (every optional field treated as absent). Creating and listing
tasks must keep working even without permission to read columns.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from ..core.errors import AuthError, ConfigurationError
from ..core.ports import ListApi
from .normalize import norm_key
from .task_models import LogicalField

logger = logging.getLogger(__name__)

# Ordered: the first candidate present in the list wins.
FIELD_CANDIDATES: dict[LogicalField, tuple[str, ...]] = {
    LogicalField.DUE_DATE: (
        "Echeance",
        "Échéance",
        "Date d'échéance",
        "Date echeance",
        "Due date",
        "DueDate",
        "Deadline",
    ),
    LogicalField.POLE: ("Pole", "Pôle", "Pôle (clé)", "PoleKey", "Module", "Domaine"),
    LogicalField.STATUS: ("Status", "Statut", "État", "Etat", "State"),
    LogicalField.PRIORITY: ("Priority", "Priorité", "Priorite", "Urgence", "Importance"),
    LogicalField.NOTES: (
        "Notes",
        "Note",
        "Commentaires",
        "Commentaire",
        "Description",
        "Détails",
        "Details",
    ),
    LogicalField.SORT_ORDER: ("SortOrder", "Order", "Ordre", "Position", "Tri"),
    LogicalField.LINK_URL: ("LinkUrl", "Link URL", "Lien", "URL", "Url", "Hyperlink", "Lien URL"),
}


@dataclass(slots=True, frozen=True)
class SchemaMap:
    """
    Two-tier column lookup.

    columns: internal name -> display name
    lookup:  norm_key(internal or display name) -> internal name
    """

    columns: Mapping[str, str] = field(default_factory=dict)
    lookup: Mapping[str, str] = field(default_factory=dict)

    @classmethod
    def from_columns(cls, raw_columns: Iterable[Mapping[str, object]]) -> "SchemaMap":
        columns: dict[str, str] = {}
        lookup: dict[str, str] = {}
        for col in raw_columns:
            if not isinstance(col, Mapping):
                continue
            name = col.get("name")
            if not name:
                continue
            name = str(name)
            display = col.get("displayName")
            columns[name] = str(display) if display else name
            lookup[norm_key(name)] = name
            if display:
                lookup[norm_key(display)] = name
        return cls(columns=columns, lookup=lookup)

    def has_column(self, internal_name: str) -> bool:
        return internal_name in self.columns

    def find(self, candidates: Iterable[str]) -> str | None:
        for c in candidates:
            hit = self.lookup.get(norm_key(c))
            if hit:
                return hit
        return None

    def __len__(self) -> int:
        return len(self.columns)


@dataclass(slots=True, frozen=True)
class FieldResolution:
    """Logical field -> internal column key (None when the list has no such column)."""

    keys: Mapping[LogicalField, str | None] = field(default_factory=dict)

    @classmethod
    def from_schema(cls, schema: SchemaMap) -> "FieldResolution":
        return cls(keys={lf: schema.find(cands) for lf, cands in FIELD_CANDIDATES.items()})

    @classmethod
    def empty(cls) -> "FieldResolution":
        return cls(keys={lf: None for lf in FIELD_CANDIDATES})

    def get(self, logical: LogicalField) -> str | None:
        return self.keys.get(logical)

    def describe(self) -> dict[str, str | None]:
        return {lf.value: key for lf, key in self.keys.items()}


class SchemaResolver:
    """
    Memoized column discovery for one list.

    resolve() is safe to call before every operation: after the first
    successful read (even an empty one) it returns the cached result without
    touching the network. Only an unset schema triggers a new read.
    """

    def __init__(self, api: ListApi, columns_url: str) -> None:
        self._api = api
        self._columns_url = columns_url
        self._schema: SchemaMap | None = None
        self._resolution: FieldResolution = FieldResolution.empty()
        self._degraded = False

    @property
    def schema(self) -> SchemaMap | None:
        return self._schema

    @property
    def resolution(self) -> FieldResolution:
        return self._resolution

    @property
    def degraded(self) -> bool:
        """True when the last read failed and the empty fallback schema is in use."""
        return self._degraded

    def reset(self) -> None:
        self._schema = None
        self._resolution = FieldResolution.empty()
        self._degraded = False

    async def resolve(self) -> SchemaMap:
        if self._schema is not None:
            return self._schema

        try:
            data = await self._api.request_json("GET", self._columns_url)
            raw_columns = (data or {}).get("value") or []
            schema = SchemaMap.from_columns(raw_columns)
            resolution = FieldResolution.from_schema(schema)
            degraded = False
            logger.info(
                "Schema resolved columns=%d fields=%s",
                len(schema),
                resolution.describe(),
            )
        except (AuthError, ConfigurationError):
            raise
        except Exception as e:
            # Keep the app usable: optional columns are simply treated as absent.
            logger.warning("Column discovery failed, continuing without optional fields: %s", e)
            schema = SchemaMap()
            resolution = FieldResolution.empty()
            degraded = True

        self._schema = schema
        self._resolution = resolution
        self._degraded = degraded
        return schema
