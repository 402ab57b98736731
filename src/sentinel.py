# src/sentinel.py
from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol

from src.feed_controller import FeedController
from src.logging_utils import log_event
from src.schemas import ViewMode


VisibleCallback = Callable[[], Awaitable[Any]]


class VisibilitySensor(Protocol):
    """Emits "marker entered the viewport" edge events. The returned unsubscribe is idempotent."""

    def subscribe(self, callback: VisibleCallback) -> Callable[[], None]: ...


class ViewportSensor:
    """
    Push-driven sensor: the client reports whether the end-of-list marker is
    within `root_margin` of the viewport, and subscribers are notified only on
    a not-visible -> visible edge.
    """

    def __init__(self, *, root_margin: int = 200):
        self.root_margin = root_margin
        self.visible = False
        self._subscribers: list[VisibleCallback] = []

    def subscribe(self, callback: VisibleCallback) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def report(self, visible: bool) -> int:
        """Record the marker's visibility. Returns how many subscribers were notified."""
        entered = visible and not self.visible
        self.visible = visible
        if not entered:
            return 0
        notified = 0
        for callback in list(self._subscribers):
            await callback()
            notified += 1
        return notified


class ScrollSentinel:
    """Requests the next page whenever the end-of-list marker becomes visible."""

    def __init__(
        self,
        controller: FeedController,
        sensor: VisibilitySensor,
        *,
        view_mode: Callable[[], ViewMode] | None = None,
    ):
        self._controller = controller
        self._sensor = sensor
        self._view_mode = view_mode or (lambda: ViewMode.FEED)
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def attached(self) -> bool:
        return self._unsubscribe is not None

    def attach(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self._sensor.subscribe(self.on_visible)

    def dispose(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    async def on_visible(self) -> bool:
        if not self.attached or self._view_mode() is ViewMode.FAVORITES:
            return False
        state = self._controller.state
        if state.loading:
            log_event("sentinel_skipped", reason="loading")
            return False
        if not state.has_more:
            log_event("sentinel_skipped", reason="no_more_pages", items=len(state.items),
                      total_results=state.total_results)
            return False
        return await self._controller.load_next()
