"""
View/presentation helpers for building display objects.

visible_list() is the view model proper: a pure selection + title filter.
The build_* helpers turn engine state into plain dicts for the HTTP layer,
so display changes don't require editing main.py.
"""
from __future__ import annotations

from src.feed_controller import FeedState
from src.schemas import PAGE_SIZE, Article, Category, ViewMode
from src.text_clean import clean_content, truncate


EMPTY_FAVORITES = "No favorites saved."
EMPTY_FEED = "No articles found."


def visible_list(
    mode: ViewMode,
    feed_state: FeedState,
    bookmarks: list[Article],
    committed_query: str,
) -> list[Article]:
    """
    Articles to display right now.

    Source is the bookmark collection in favorites view, else the feed. Kept
    when the committed query is a case-insensitive substring of the title.
    No matches and an empty source both give [].
    """
    source = bookmarks if mode is ViewMode.FAVORITES else feed_state.items
    needle = committed_query.lower()
    return [a for a in source if needle in a.title.lower()]


def build_card(article: Article, *, bookmarked: bool) -> dict:
    return {
        "id": article.id,
        "title": article.title,
        "teaser": truncate(article.description),
        "image_url": article.image_url,
        "published": article.published_at.date().isoformat(),
        "source": article.source_name,
        "bookmarked": bookmarked,
    }


def build_detail(article: Article, *, bookmarked: bool) -> dict:
    """Full article for the details modal."""
    return {
        "id": article.id,
        "title": article.title,
        "image_url": article.image_url,
        "published_at": article.published_at.isoformat(),
        "source": article.source_name,
        "body": clean_content(article.content, article.description),
        "url": article.id,
        "bookmarked": bookmarked,
    }


def build_feed_view(
    *,
    mode: ViewMode,
    category: Category,
    feed_state: FeedState,
    bookmarks: list[Article],
    committed_query: str,
    raw_query: str,
    dark_mode: bool,
    root_margin: int = 200,
) -> dict:
    """
    Everything the page needs in one dict.

    - skeletons: placeholder count while a session's first page loads
    - empty_message: only when nothing is loading and nothing is visible
    - root_margin: px ahead of the viewport at which the end-of-list marker counts as visible
    """
    visible = visible_list(mode, feed_state, bookmarks, committed_query)
    bookmarked_ids = {a.id for a in bookmarks}
    favorites = mode is ViewMode.FAVORITES

    first_page_loading = feed_state.loading and not favorites and not feed_state.items
    empty_message = None
    if not visible and not (feed_state.loading and not favorites):
        empty_message = EMPTY_FAVORITES if favorites else EMPTY_FEED

    return {
        "mode": mode.value,
        "category": category.value,
        "query": {"raw": raw_query, "committed": committed_query},
        "loading": feed_state.loading,
        "error": feed_state.error,
        "cursor": feed_state.cursor,
        "total_results": feed_state.total_results,
        "has_more": feed_state.has_more and not favorites,
        "skeletons": PAGE_SIZE if first_page_loading else 0,
        "empty_message": empty_message,
        "favorites_count": len(bookmarks),
        "dark_mode": dark_mode,
        "root_margin": root_margin,
        "articles": [build_card(a, bookmarked=a.id in bookmarked_ids) for a in visible],
    }
