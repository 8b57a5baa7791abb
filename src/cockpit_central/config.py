# src/cockpit_central/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- A missing or placeholder setting is reported, never guessed: the app shows
  a "needs configuration" state instead of calling the API.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "COCKPIT"

PLACEHOLDER_PREFIX = "YOUR_"

Vocab = list[dict[str, str]]

DEFAULT_POLES: Vocab = [
    {"key": "BCS", "label": "Bien Chez Soi"},
    {"key": "EVO", "label": "Evolumis"},
    {"key": "PERSO", "label": "Personnel"},
]
DEFAULT_STATUSES: Vocab = [
    {"key": "Backlog", "label": "Backlog"},
    {"key": "EnCours", "label": "En cours"},
    {"key": "EnAttente", "label": "En attente"},
    {"key": "Termine", "label": "Terminé"},
]
DEFAULT_PRIORITIES: Vocab = [
    {"key": "P1", "label": "P1 (Urgent)"},
    {"key": "P2", "label": "P2 (Normal)"},
    {"key": "P3", "label": "P3 (Bas)"},
]


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def load_env_file() -> None:
    """Load .env from the working directory; real environment variables win."""
    load_dotenv(override=False)


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_vocab(name: str, default: Vocab) -> Vocab:
    """
    Parse "KEY=Label; KEY2=Label 2" into [{"key", "label"}].

    Labels may contain spaces, hence ";" as the separator. A bare "KEY" uses
    the key as its label.
    """
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return [dict(v) for v in default]
    out: Vocab = []
    for part in raw.split(";"):
        part = part.strip()
        if not part:
            continue
        key, _, label = part.partition("=")
        key = key.strip()
        if key:
            out.append({"key": key, "label": label.strip() or key})
    return out or [dict(v) for v in default]


def _is_unset(value: str | None) -> bool:
    v = (value or "").strip()
    return not v or v.upper().startswith(PLACEHOLDER_PREFIX)


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    data_dir: Path

    # ---- Entra ID app registration ----
    tenant_id: str
    client_id: str
    redirect_uri: str
    access_token: str | None

    # ---- List backend ----
    site_id: str
    list_id: str
    graph_base_url: str
    page_size: int

    # ---- HTTP ----
    http_connect_timeout: float
    http_read_timeout: float

    # ---- UI vocabularies (labels only; the core uses canonical keys) ----
    poles: Vocab = field(default_factory=lambda: [dict(v) for v in DEFAULT_POLES])
    statuses: Vocab = field(default_factory=lambda: [dict(v) for v in DEFAULT_STATUSES])
    priorities: Vocab = field(default_factory=lambda: [dict(v) for v in DEFAULT_PRIORITIES])

    def missing_required(self) -> list[str]:
        """Env var names of required settings that are empty or still placeholders."""
        required = {
            "TENANT_ID": self.tenant_id,
            "CLIENT_ID": self.client_id,
            "REDIRECT_URI": self.redirect_uri,
            "SITE_ID": self.site_id,
            "LIST_ID": self.list_id,
        }
        return [_k(name) for name, value in required.items() if _is_unset(value)]

    @staticmethod
    def from_env() -> "Settings":
        app_name = _first_env(_k("APP_NAME"), default="Cockpit Central") or "Cockpit Central"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        data_dir = _env_path(_k("DATA_DIR"), Path(".local/cockpit"))

        tenant_id = _env(_k("TENANT_ID")).strip()
        client_id = _env(_k("CLIENT_ID")).strip()
        redirect_uri = _env(_k("REDIRECT_URI"), "http://localhost:5173").strip()
        access_token = _first_env(_k("ACCESS_TOKEN"), default=None)

        site_id = _env(_k("SITE_ID")).strip()
        list_id = _env(_k("LIST_ID")).strip()
        graph_base_url = _env(_k("GRAPH_BASE_URL"), "https://graph.microsoft.com/v1.0").strip()
        page_size = max(1, _env_int(_k("PAGE_SIZE"), 500))

        http_connect_timeout = _env_float(_k("HTTP_CONNECT_TIMEOUT_SECONDS"), 5.0)
        http_read_timeout = _env_float(_k("HTTP_READ_TIMEOUT_SECONDS"), 30.0)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tenant_id=tenant_id,
            client_id=client_id,
            redirect_uri=redirect_uri,
            access_token=access_token,
            site_id=site_id,
            list_id=list_id,
            graph_base_url=graph_base_url,
            page_size=page_size,
            http_connect_timeout=http_connect_timeout,
            http_read_timeout=http_read_timeout,
            poles=_env_vocab(_k("POLES"), DEFAULT_POLES),
            statuses=_env_vocab(_k("STATUSES"), DEFAULT_STATUSES),
            priorities=_env_vocab(_k("PRIORITIES"), DEFAULT_PRIORITIES),
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        load_env_file()
        _SETTINGS = Settings.from_env()
    return _SETTINGS
