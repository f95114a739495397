"""Chat sessions: one history, one provider adapter and one tool registry."""

from __future__ import annotations

import threading

from ..config import ProviderConfig
from ..conversation.history import History, Turn
from ..errors import SessionBusyError
from ..models.adapter import ModelSettings, ProviderAdapter
from ..models.resolve import resolve_adapter
from ..tools.registry import Registry
from .loop import DEFAULT_MAX_ROUNDS, LoopOutcome, OrchestrationLoop


class Session:
    """Binds a (history, adapter, registry) triple to a chat entry point.

    Only one chat call may be in flight at a time; a concurrent call is
    rejected with SessionBusyError rather than interleaved.
    """

    def __init__(
        self,
        adapter: ProviderAdapter,
        registry: Registry | None = None,
        history: History | None = None,
        max_rounds: int = DEFAULT_MAX_ROUNDS,
        max_workers: int = 4,
    ):
        self.adapter = adapter
        self.registry = registry if registry is not None else Registry()
        self._history = history if history is not None else History()
        self._loop = OrchestrationLoop(
            adapter=adapter,
            registry=self.registry,
            history=self._history,
            max_rounds=max_rounds,
            max_workers=max_workers,
        )
        self._in_flight = threading.Lock()

    @property
    def history(self) -> History:
        return self._history

    @property
    def max_rounds(self) -> int:
        return self._loop.max_rounds

    def send(self, message: str, cancel: threading.Event | None = None) -> LoopOutcome:
        """Run the loop for one user message and return the full outcome."""
        if not self._in_flight.acquire(blocking=False):
            raise SessionBusyError("A chat call is already in progress for this session")
        try:
            return self._loop.run(message, cancel=cancel)
        finally:
            self._in_flight.release()

    def chat(self, message: str) -> str:
        """Send a user message and return the response text."""
        return self.send(message).text

    def clear_history(self) -> None:
        if not self._in_flight.acquire(blocking=False):
            raise SessionBusyError("Cannot clear history while a chat call is in progress")
        try:
            self._history.clear()
        finally:
            self._in_flight.release()

    def history_dump(self) -> tuple[Turn, ...]:
        return self._history.snapshot()


def create_session(
    config: ProviderConfig,
    registry: Registry | None = None,
    *,
    settings: ModelSettings | None = None,
    system_prompt: str | None = None,
    max_rounds: int = DEFAULT_MAX_ROUNDS,
    history: History | None = None,
) -> Session:
    """Create a session whose adapter is resolved from ``config``."""
    adapter = resolve_adapter(config, settings, system_prompt=system_prompt)
    return Session(adapter=adapter, registry=registry, history=history, max_rounds=max_rounds)
