# src/preferences.py
from __future__ import annotations

import logging

from src.errors import PersistenceError
from src.json_utils import dump_json, safe_load_json
from src.kv_store import KVStore
from src.logging_utils import log_event


THEME_KEY = "darkMode"


class ThemeStore:
    """Persisted dark-mode flag. Anything but a stored JSON `true` reads as light mode."""

    def __init__(self, store: KVStore, *, key: str = THEME_KEY):
        self._store = store
        self._key = key
        try:
            raw = store.get(key)
        except PersistenceError as exc:
            log_event("theme_load_failed", level=logging.WARNING, error_code=exc.code, error=exc.message)
            raw = None
        self._dark = safe_load_json(raw) is True

    @property
    def dark_mode(self) -> bool:
        return self._dark

    def set_dark_mode(self, value: bool) -> bool:
        self._store.set(self._key, dump_json(bool(value)))
        self._dark = bool(value)
        return self._dark

    def toggle(self) -> bool:
        return self.set_dark_mode(not self._dark)
