# tests/conftest.py
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import pytest

from src.kv_store import SqliteKVStore
from src.schemas import PAGE_SIZE, Article, Category, FeedPage


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path, monkeypatch):
    monkeypatch.setenv("FEED_DB_PATH", str(tmp_path / "test.db"))
    monkeypatch.delenv("NEWS_API_KEY", raising=False)


@pytest.fixture
def store(tmp_path):
    return SqliteKVStore(str(tmp_path / "kv.db"))


def make_article(n: int, category: str = "general", *, title: str | None = None, **fields) -> Article:
    """Article with a url derived from category + n, so ids never collide across categories."""
    return Article(
        id=f"https://example.com/{category}/{n}",
        title=title if title is not None else f"{category.title()} story {n}",
        description=fields.pop("description", f"Description {n}"),
        published_at=fields.pop("published_at", datetime(2026, 1, 14, 12, 0, tzinfo=timezone.utc) - timedelta(minutes=n)),
        source_name=fields.pop("source_name", "Example Wire"),
        **fields,
    )


def make_page(category: str, start: int, count: int, total: int) -> FeedPage:
    return FeedPage(
        articles=[make_article(n, category) for n in range(start, start + count)],
        total_results=total,
    )


class FakeFetchClient:
    """
    Stand-in for NewsApiClient.

    Default mode answers from `pages` ({(category, page): FeedPage | Exception})
    immediately. manual=True parks every call on a future the test resolves,
    so interleavings can be driven step by step.
    """

    def __init__(self, pages: dict | None = None, *, manual: bool = False):
        self.pages = pages or {}
        self.manual = manual
        self.calls: list[tuple[Category, int]] = []
        self.pending: list[tuple[Category, int, asyncio.Future]] = []

    async def fetch_page(self, category, page, page_size=PAGE_SIZE):
        category = Category(category)
        self.calls.append((category, page))
        if self.manual:
            fut = asyncio.get_running_loop().create_future()
            self.pending.append((category, page, fut))
            result = await fut
        else:
            result = self.pages.get((category, page), FeedPage(articles=[], total_results=0))
        if isinstance(result, Exception):
            raise result
        return result

    def resolve(self, index: int, result) -> None:
        _, _, fut = self.pending[index]
        fut.set_result(result)


class FakeTimer:
    def __init__(self, when: float, callback, args):
        self.when = when
        self.callback = callback
        self.args = args
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Manual clock with loop.call_later's shape. advance() fires due timers in order."""

    def __init__(self):
        self.now = 0.0
        self.timers: list[FakeTimer] = []

    def call_later(self, delay, callback, *args):
        timer = FakeTimer(self.now + delay, callback, args)
        self.timers.append(timer)
        return timer

    @property
    def active(self) -> list[FakeTimer]:
        return [t for t in self.timers if not t.cancelled]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = sorted((t for t in self.active if t.when <= target), key=lambda t: t.when)
            if not due:
                break
            timer = due[0]
            # Fired timers leave the queue
            timer.cancelled = True
            self.now = timer.when
            timer.callback(*timer.args)
        self.now = target


async def settle(rounds: int = 10) -> None:
    """Let every ready task run until they block again."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture
def scheduler():
    return FakeScheduler()
