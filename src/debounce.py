# src/debounce.py
from __future__ import annotations

import asyncio
from typing import Any, Callable, Protocol

from src.logging_utils import log_event


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything with asyncio's loop.call_later shape."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> TimerHandle: ...


class Debouncer:
    """
    Turns raw search input into a committed query after a quiet period.

    At most one timer is pending; each on_input() cancels it and schedules a
    new one, so only the last input before the delay elapses is committed.
    """

    def __init__(
        self,
        on_commit: Callable[[str], None] | None = None,
        *,
        delay_ms: int = 500,
        scheduler: Scheduler | None = None,
    ):
        self.delay_ms = delay_ms
        self.raw_input = ""
        self.committed_query = ""
        self._on_commit = on_commit
        self._scheduler = scheduler
        self._pending: TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def on_input(self, text: str) -> None:
        self.raw_input = text
        self.cancel()
        # Default to the running loop, resolved at call time
        scheduler = self._scheduler or asyncio.get_running_loop()
        self._pending = scheduler.call_later(self.delay_ms / 1000, self._fire, text)

    def _fire(self, text: str) -> None:
        self._pending = None
        self.committed_query = text.strip()
        log_event("query_committed", query=self.committed_query)
        if self._on_commit is not None:
            self._on_commit(self.committed_query)

    def cancel(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def close(self) -> None:
        """Teardown: drop any pending commit."""
        self.cancel()
