import json

import pytest

from src.bookmarks import BOOKMARKS_KEY, BookmarkStore, load_bookmarks
from src.errors import PersistenceError
from src.kv_store import SqliteKVStore

from conftest import make_article


class CountingStore(SqliteKVStore):
    """Real sqlite store that records every write."""

    def __init__(self, path):
        super().__init__(path)
        self.writes: list[tuple[str, bytes]] = []

    def set(self, key, value):
        super().set(key, value)
        self.writes.append((key, value))


class FailingWriteStore(SqliteKVStore):
    def set(self, key, value):
        raise PersistenceError("disk full")


def test_empty_store_loads_empty_collection(store):
    assert BookmarkStore(store).items == []


def test_toggle_adds_then_removes(store):
    bookmarks = BookmarkStore(store)
    article = make_article(1)

    assert bookmarks.toggle(article) == [article]
    assert bookmarks.is_bookmarked(article.id)

    assert bookmarks.toggle(article) == []
    assert not bookmarks.is_bookmarked(article.id)


def test_toggle_prepends_newest_first(store):
    bookmarks = BookmarkStore(store)
    a, b, c = make_article(1), make_article(2), make_article(3)

    bookmarks.toggle(a)
    bookmarks.toggle(b)
    bookmarks.toggle(c)

    assert [x.id for x in bookmarks.items] == [c.id, b.id, a.id]


def test_toggle_twice_restores_collection_and_writes_twice(tmp_path):
    store = CountingStore(str(tmp_path / "kv.db"))
    bookmarks = BookmarkStore(store)
    existing = make_article(7)
    bookmarks.toggle(existing)
    store.writes.clear()
    before = bookmarks.items

    article = make_article(1).model_copy(update={"id": "http://x"})
    bookmarks.toggle(article)
    bookmarks.toggle(article)

    assert bookmarks.items == before
    assert len(store.writes) == 2
    assert all(key == BOOKMARKS_KEY for key, _ in store.writes)


def test_toggle_keeps_one_entry_per_id(store):
    bookmarks = BookmarkStore(store)
    article = make_article(1)
    same_id = article.model_copy(update={"title": "Retitled"})

    bookmarks.toggle(article)
    bookmarks.toggle(same_id)  # same id -> removal, not a second entry

    assert bookmarks.items == []


def test_toggle_persists_before_returning(store):
    bookmarks = BookmarkStore(store)
    article = make_article(1)

    bookmarks.toggle(article)

    # A fresh store reading the same db sees the toggle
    reloaded = BookmarkStore(store)
    assert [a.id for a in reloaded.items] == [article.id]
    assert reloaded.items[0] == article


def test_failed_write_leaves_memory_unchanged(tmp_path):
    store = FailingWriteStore(str(tmp_path / "kv.db"))
    bookmarks = BookmarkStore(store)

    with pytest.raises(PersistenceError):
        bookmarks.toggle(make_article(1))

    assert bookmarks.items == []
    assert not bookmarks.is_bookmarked(make_article(1).id)


@pytest.mark.parametrize("raw", [b"not json", b'{"id": "x"}', b"42", b"", b"\xff\xfe"])
def test_malformed_data_loads_empty(store, raw):
    store.set(BOOKMARKS_KEY, raw)
    assert load_bookmarks(store) == []


def test_load_skips_bad_entries_and_duplicates(store):
    good = make_article(1).model_dump(mode="json")
    other = make_article(2).model_dump(mode="json")
    store.set(BOOKMARKS_KEY, json.dumps([good, {"title": "no id"}, "junk", good, other]).encode())

    items = load_bookmarks(store)

    assert [a.id for a in items] == [good["id"], other["id"]]


def test_unreadable_storage_loads_empty(tmp_path):
    path = tmp_path / "garbage.db"
    path.write_bytes(b"not a database" * 200)

    assert BookmarkStore(SqliteKVStore(str(path))).items == []


def test_get_returns_saved_article(store):
    bookmarks = BookmarkStore(store)
    article = make_article(3)
    bookmarks.toggle(article)

    assert bookmarks.get(article.id) == article
    assert bookmarks.get("https://example.com/missing") is None
    assert len(bookmarks) == 1
