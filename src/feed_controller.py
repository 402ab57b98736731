# src/feed_controller.py
"""
Feed pagination state machine.

FeedController is the only writer of FeedState. Two rules keep the list
consistent while fetches, resets and scroll requests interleave on one event
loop:

- In-flight guard: at most one fetch runs at a time. load_page() rejects a
  request while one is outstanding; reset() queues its page-1 fetch behind the
  superseded one.
- Session tags: every fetch carries the Session it was issued for. A result
  is applied only if that session is still current when it arrives.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Protocol

from src.errors import NetworkError
from src.logging_utils import log_event
from src.schemas import PAGE_SIZE, Article, Category, FeedPage


class FetchClient(Protocol):
    async def fetch_page(self, category: Category, page: int, page_size: int = PAGE_SIZE) -> FeedPage: ...


@dataclass(frozen=True)
class Session:
    """Identifies one reset: the category plus a monotonically increasing generation."""

    category: Category
    generation: int


@dataclass
class FeedState:
    category: Category
    cursor: int = 1
    total_results: int | None = None
    items: list[Article] = field(default_factory=list)
    loading: bool = False
    error: str | None = None

    @property
    def has_more(self) -> bool:
        return self.total_results is not None and len(self.items) < self.total_results


def merge_page(existing: list[Article], incoming: list[Article], *, replace: bool) -> list[Article]:
    """
    Combine a fetched page with the current list.
    replace=True (page 1) starts from nothing. Arrival order is kept and
    ids already present are skipped.
    """
    base = [] if replace else list(existing)
    seen = {a.id for a in base}
    for article in incoming:
        if article.id in seen:
            continue
        seen.add(article.id)
        base.append(article)
    return base


class FeedController:
    def __init__(self, client: FetchClient, *, category: Category = Category.GENERAL, page_size: int = PAGE_SIZE):
        self._client = client
        self.page_size = page_size
        self._generation = 0
        self._session = Session(Category(category), 0)
        self._inflight: Session | None = None
        self._reset_pending = False
        self._idle = asyncio.Event()
        self._idle.set()
        self.state = FeedState(category=self._session.category)

    @property
    def session(self) -> Session:
        return self._session

    @property
    def in_flight(self) -> bool:
        return self._inflight is not None

    @property
    def has_more(self) -> bool:
        return self.state.has_more

    def _new_session(self, category: Category, *, loading: bool) -> Session:
        self._generation += 1
        self._session = Session(Category(category), self._generation)
        # Swapped in whole, never cleared field by field
        self.state = FeedState(category=self._session.category, loading=loading)
        return self._session

    def invalidate(self, category: Category | None = None) -> None:
        """Start an empty session without fetching (favorites view). Late results are discarded."""
        self._reset_pending = False
        self._new_session(category or self._session.category, loading=False)
        log_event("feed_invalidated", category=self._session.category.value, generation=self._generation)

    async def reset(self, category: Category) -> bool:
        """
        Clear the feed for `category` and load page 1.

        The clear happens before the first await. If a superseded fetch is
        still running, wait for it to settle (it will be discarded) and then
        fetch, unless a newer reset has taken over meanwhile.
        """
        session = self._new_session(category, loading=True)
        self._reset_pending = True
        log_event("feed_reset", category=session.category.value, generation=session.generation)

        try:
            while self._inflight is not None:
                await self._idle.wait()
                if self._session != session:
                    return False
        except asyncio.CancelledError:
            if self._session == session:
                self._reset_pending = False
                self.state.loading = False
            raise

        if self._session != session:
            return False
        self._reset_pending = False
        return await self._fetch(session, 1)

    async def load_page(self, page: int) -> bool:
        """
        Load `page` for the current session. Returns True if the page was applied.
        No-op (False) while another fetch is in flight, or while a reset is
        waiting to fetch page 1 (the reset owns the next fetch).
        """
        if self._inflight is not None:
            log_event("fetch_rejected", reason="in_flight", page=page,
                      category=self._session.category.value)
            return False
        if self._reset_pending:
            log_event("fetch_rejected", reason="reset_pending", page=page,
                      category=self._session.category.value)
            return False
        return await self._fetch(self._session, page)

    async def load_next(self) -> bool:
        if not self.state.has_more or self.state.loading:
            return False
        return await self.load_page(self.state.cursor + 1)

    async def _fetch(self, session: Session, page: int) -> bool:
        # Guard is set before the first await
        self._inflight = session
        self._idle.clear()
        self.state.loading = True
        log_event("fetch_started", category=session.category.value, page=page, generation=session.generation)

        try:
            result = await self._client.fetch_page(session.category, page, self.page_size)
        except NetworkError as exc:
            if session != self._session:
                log_event("fetch_stale_discarded", category=session.category.value, page=page, outcome="error")
                return False
            self.state.error = exc.message
            log_event("fetch_failed", level=logging.WARNING, category=session.category.value, page=page,
                      error_code=exc.code, error=exc.message)
            return False
        else:
            if session != self._session:
                log_event("fetch_stale_discarded", category=session.category.value, page=page, outcome="ok")
                return False
            self._apply(page, result)
            return True
        finally:
            self._inflight = None
            self._idle.set()
            # A superseded fetch leaves the newer session's flag alone
            if session == self._session:
                self.state.loading = False

    def _apply(self, page: int, result: FeedPage) -> None:
        state = self.state
        before = len(state.items)
        items = merge_page(state.items, result.articles, replace=page == 1)
        total = result.total_results

        # Source claims more but gave nothing new: treat as the last page
        if page > 1 and len(items) == before and len(items) < total:
            total = len(items)
        if len(items) > total:
            items = items[:total]

        state.items = items
        state.total_results = total
        state.cursor = page
        state.error = None
        log_event("fetch_finished", category=state.category.value, page=page,
                  received=len(result.articles), items=len(items), total_results=total)
