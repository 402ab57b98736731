# src/config.py
"""
Runtime configuration.

Everything is read from environment variables (a local .env file is loaded
first). The resulting Settings object is handed to constructors; the engine
modules never read os.environ themselves.
"""
from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field


NEWS_API_URL = "https://newsapi.org/v2/top-headlines"
DEFAULT_DB_PATH = "./data/feed.db"


class Settings(BaseModel):
    news_api_key: str | None = None
    news_api_url: str = NEWS_API_URL
    country: str = "us"
    debounce_ms: int = Field(500, ge=0)
    db_path: str = DEFAULT_DB_PATH
    fetch_timeout_s: float = Field(10.0, gt=0)
    fetch_attempts: int = Field(2, ge=1)


def load_settings(*, env_file: str | None = None) -> Settings:
    """
    Build Settings from the environment.

    Env vars:
        NEWS_API_KEY      credential for the news source (no default)
        NEWS_API_URL      top-headlines endpoint
        NEWS_COUNTRY      country filter sent with every request
        DEBOUNCE_MS       search quiet period
        FEED_DB_PATH      sqlite file holding bookmarks + theme
        FETCH_TIMEOUT_S   per-request timeout
        FETCH_ATTEMPTS    attempts for timeouts / 5xx
    """
    load_dotenv(env_file)

    values: dict[str, str] = {}
    mapping = {
        "news_api_key": "NEWS_API_KEY",
        "news_api_url": "NEWS_API_URL",
        "country": "NEWS_COUNTRY",
        "debounce_ms": "DEBOUNCE_MS",
        "db_path": "FEED_DB_PATH",
        "fetch_timeout_s": "FETCH_TIMEOUT_S",
        "fetch_attempts": "FETCH_ATTEMPTS",
    }
    for field, env_name in mapping.items():
        raw = os.environ.get(env_name)
        if raw is not None and raw.strip():
            values[field] = raw.strip()

    return Settings(**values)
