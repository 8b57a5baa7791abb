# src/cockpit_central/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the local (gitignored) data directory exists,
- wires token cache, Graph client and task store into AppState,
- refuses to build any network component while settings are incomplete.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import TokenSource
from ..core.state import AppState, ConsoleNotifier
from ..graph.auth import CachedTokenProvider, StaticTokenSource
from ..graph.client import GraphClient, ListEndpoints, make_timeout
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def create_initial_state(*, settings=None, token_source: TokenSource | None = None, transport=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    settings.data_dir.mkdir(parents=True, exist_ok=True)
    notifier = ConsoleNotifier()

    missing = settings.missing_required()
    if missing:
        logger.warning("Configuration incomplete, staying offline. Missing: %s", ", ".join(missing))
        return AppState(settings=settings, notifier=notifier, missing_settings=missing)

    tokens = CachedTokenProvider(token_source or StaticTokenSource(settings.access_token))
    graph = GraphClient(
        tokens,
        timeout=make_timeout(settings.http_connect_timeout, settings.http_read_timeout),
        transport=transport,
    )
    endpoints = ListEndpoints(settings.site_id, settings.list_id, base_url=settings.graph_base_url)
    store = TaskStore(graph, endpoints, notifier=notifier, page_size=settings.page_size)

    return AppState(
        settings=settings,
        notifier=notifier,
        task_store=store,
        graph=graph,
        tokens=tokens,
    )


async def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    if state.graph is None:
        return
    try:
        await state.graph.aclose()
    except Exception:
        logger.debug("HTTP client close failed.", exc_info=True)
