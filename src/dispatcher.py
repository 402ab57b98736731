# src/dispatcher.py
"""
Central event dispatcher for the viewer.

Each user or sensor event maps to one named handler. Handlers run on the
event loop; the only suspension points are fetches inside FeedController.
"""
from __future__ import annotations

from src.bookmarks import BookmarkStore
from src.debounce import Debouncer, Scheduler
from src.feed_controller import FeedController, FetchClient
from src.kv_store import KVStore
from src.logging_utils import log_event
from src.preferences import ThemeStore
from src.schemas import Article, Category, ViewMode
from src.sentinel import ScrollSentinel, ViewportSensor
from src.views import build_feed_view, visible_list


class FeedDispatcher:
    def __init__(
        self,
        client: FetchClient,
        store: KVStore,
        *,
        debounce_ms: int = 500,
        scheduler: Scheduler | None = None,
        sensor: ViewportSensor | None = None,
        category: Category = Category.GENERAL,
    ):
        self.mode = ViewMode.FEED
        self.category = Category(category)
        self.controller = FeedController(client, category=self.category)
        self.debouncer = Debouncer(delay_ms=debounce_ms, scheduler=scheduler)
        self.bookmarks = BookmarkStore(store)
        self.theme = ThemeStore(store)
        self.sensor = sensor or ViewportSensor()
        self.sentinel = ScrollSentinel(self.controller, self.sensor, view_mode=lambda: self.mode)

    # --- lifecycle ---

    async def mount(self) -> None:
        log_event("viewer_mounted", category=self.category.value, bookmarks=len(self.bookmarks))
        if self.mode is ViewMode.FEED:
            self.sentinel.attach()
            await self.controller.reset(self.category)

    def close(self) -> None:
        self.debouncer.close()
        self.sentinel.dispose()
        log_event("viewer_closed")

    # --- events ---

    async def select_category(self, category: Category) -> None:
        """
        Favorites view only remembers the choice; it is loaded on return to the feed.
        Picking the current category again is a no-op unless its first page failed.
        """
        category = Category(category)
        state = self.controller.state
        failed_empty = state.error is not None and not state.items
        if category is self.category and self.mode is ViewMode.FEED and not failed_empty:
            return
        self.category = category
        if self.mode is ViewMode.FEED:
            await self.controller.reset(category)

    def search_input(self, text: str) -> None:
        self.debouncer.on_input(text)

    async def toggle_favorites(self) -> ViewMode:
        if self.mode is ViewMode.FEED:
            self.mode = ViewMode.FAVORITES
            self.sentinel.dispose()
            self.controller.invalidate(self.category)
        else:
            self.mode = ViewMode.FEED
            self.sentinel.attach()
            await self.controller.reset(self.category)
        log_event("view_mode_changed", mode=self.mode.value)
        return self.mode

    async def sentinel_visible(self, visible: bool) -> int:
        return await self.sensor.report(visible)

    def find_article(self, article_id: str) -> Article | None:
        saved = self.bookmarks.get(article_id)
        if saved is not None:
            return saved
        return next((a for a in self.controller.state.items if a.id == article_id), None)

    def toggle_bookmark(self, article: Article) -> bool:
        """Returns whether the article is bookmarked afterwards."""
        self.bookmarks.toggle(article)
        return self.bookmarks.is_bookmarked(article.id)

    def toggle_theme(self) -> bool:
        return self.theme.toggle()

    # --- reads ---

    def visible(self) -> list[Article]:
        return visible_list(self.mode, self.controller.state, self.bookmarks.items,
                            self.debouncer.committed_query)

    def snapshot(self) -> dict:
        return build_feed_view(
            mode=self.mode,
            category=self.category,
            feed_state=self.controller.state,
            bookmarks=self.bookmarks.items,
            committed_query=self.debouncer.committed_query,
            raw_query=self.debouncer.raw_input,
            dark_mode=self.theme.dark_mode,
            root_margin=self.sensor.root_margin,
        )
