# src/bookmarks.py
"""
Saved articles ("favorites").

The collection is ordered newest-saved first and holds at most one entry per
article id. Every mutation is written through to the key/value store before
toggle() returns.
"""
from __future__ import annotations

import logging

from pydantic import ValidationError

from src.error_codes import STORAGE_READ_FAIL
from src.errors import PersistenceError
from src.json_utils import dump_json, safe_load_json
from src.kv_store import KVStore
from src.logging_utils import log_event
from src.schemas import Article


BOOKMARKS_KEY = "bookmarks"


def load_bookmarks(store: KVStore, *, key: str = BOOKMARKS_KEY) -> list[Article]:
    """
    Read the persisted collection.

    Missing, unreadable or malformed data -> empty list (logged, never raised).
    Malformed entries are skipped; repeated ids keep the first occurrence.
    """
    try:
        raw = store.get(key)
    except PersistenceError as exc:
        log_event("bookmarks_load_failed", level=logging.WARNING, error_code=exc.code, error=exc.message)
        return []

    data = safe_load_json(raw)
    if data is None:
        if raw is not None:
            log_event("bookmarks_load_failed", level=logging.WARNING, error_code=STORAGE_READ_FAIL,
                      error="malformed JSON")
        return []
    if not isinstance(data, list):
        log_event("bookmarks_load_failed", level=logging.WARNING, error_code=STORAGE_READ_FAIL,
                  error=f"expected list, got {type(data).__name__}")
        return []

    seen: set[str] = set()
    out: list[Article] = []
    skipped = 0
    for entry in data:
        try:
            article = Article.model_validate(entry)
        except ValidationError:
            skipped += 1
            continue
        if article.id in seen:
            skipped += 1
            continue
        seen.add(article.id)
        out.append(article)

    if skipped:
        log_event("bookmarks_entries_skipped", level=logging.WARNING, skipped=skipped, kept=len(out))
    return out


class BookmarkStore:
    def __init__(self, store: KVStore, *, key: str = BOOKMARKS_KEY):
        self._store = store
        self._key = key
        self._items: list[Article] = load_bookmarks(store, key=key)
        self._ids: set[str] = {a.id for a in self._items}

    @property
    def items(self) -> list[Article]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def is_bookmarked(self, article_id: str) -> bool:
        return article_id in self._ids

    def get(self, article_id: str) -> Article | None:
        if article_id not in self._ids:
            return None
        return next(a for a in self._items if a.id == article_id)

    def toggle(self, article: Article) -> list[Article]:
        """
        Remove the article if saved, else prepend it. Returns the new collection.

        The full collection is persisted in one write before returning. If the
        write fails the in-memory collection is left as it was and the
        PersistenceError propagates.
        """
        if article.id in self._ids:
            updated = [a for a in self._items if a.id != article.id]
            action = "removed"
        else:
            updated = [article, *self._items]
            action = "added"

        try:
            self._store.set(self._key, dump_json([a.model_dump(mode="json") for a in updated]))
        except PersistenceError as exc:
            log_event("bookmark_write_failed", level=logging.ERROR, article_id=article.id,
                      error_code=exc.code, error=exc.message)
            raise

        self._items = updated
        self._ids = {a.id for a in updated}
        log_event("bookmark_toggled", article_id=article.id, action=action, count=len(updated))
        return list(updated)
