# src/cockpit_central/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field

from ..graph.auth import CachedTokenProvider
from ..graph.client import GraphClient
from ..tasks.task_store import TaskStore


@dataclass
class ConsoleNotifier:
    """Collects toast-like messages; the console prints and clears them after each command."""

    pending: list[tuple[str, str]] = field(default_factory=list)

    def notify(self, message: str, level: str = "info") -> None:
        self.pending.append((level, message))

    def drain(self) -> list[tuple[str, str]]:
        out, self.pending = self.pending, []
        return out


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    notifier: ConsoleNotifier

    # None while the app is waiting for configuration.
    task_store: TaskStore | None = None
    graph: GraphClient | None = None
    tokens: CachedTokenProvider | None = None

    missing_settings: list[str] = field(default_factory=list)

    @property
    def needs_configuration(self) -> bool:
        return self.task_store is None

    def reset_session(self) -> None:
        """Drop discovered schema, loaded tasks and the cached token."""
        if self.task_store is not None:
            self.task_store.reset()
        if self.tokens is not None:
            self.tokens.clear()
