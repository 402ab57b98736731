# Enable type hint syntax from future Python versions (allows using | for union types)
from __future__ import annotations

import asyncio
import http.client
import json
import urllib.error
import urllib.request
from urllib.parse import urlencode

from src.error_codes import (
    FETCH_DISABLED,
    FETCH_PERMANENT,
    FETCH_TIMEOUT,
    FETCH_TRANSIENT,
    PARSE_ERROR,
    RATE_LIMITED,
)
from src.errors import NetworkError
from src.logging_utils import log_event
from src.news_parse import parse_page
from src.schemas import PAGE_SIZE, Category, FeedPage


def classify_status(status: int) -> str:
    """Map a non-200 HTTP status onto the fetch failure taxonomy."""
    if status == 429:
        return RATE_LIMITED
    if 500 <= status < 600:
        return FETCH_TRANSIENT
    return FETCH_PERMANENT


class NewsApiClient:
    """
    Page fetcher for the top-headlines endpoint.

    The credential is injected by the caller and sent as a header, so it never
    appears in request URLs or logs.
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = "https://newsapi.org/v2/top-headlines",
        country: str = "us",
        timeout_s: float = 10.0,
        attempts: int = 2,
        base_sleep_s: float = 0.5,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.country = country
        self.timeout_s = timeout_s
        self.attempts = max(1, attempts)
        self.base_sleep_s = base_sleep_s

    @classmethod
    def from_settings(cls, settings) -> NewsApiClient:
        return cls(
            settings.news_api_key,
            base_url=settings.news_api_url,
            country=settings.country,
            timeout_s=settings.fetch_timeout_s,
            attempts=settings.fetch_attempts,
        )

    def build_url(self, category: Category, page: int, page_size: int = PAGE_SIZE) -> str:
        query = urlencode({
            "country": self.country,
            "category": Category(category).value,
            "pageSize": page_size,
            "page": page,
        })
        return f"{self.base_url}?{query}"

    # Blocking request - runs on a worker thread via fetch_page
    def get_json(self, url: str) -> object:
        req = urllib.request.Request(
            url,
            headers={
                "User-Agent": "headlines-viewer/0.1",
                "X-Api-Key": self.api_key or "",
            },
        )

        try:
            with urllib.request.urlopen(req, timeout=self.timeout_s) as resp:
                status = getattr(resp, "status", None)
                body = resp.read().decode("utf-8", errors="replace")
        # HTTPError first: it is a URLError subclass
        except urllib.error.HTTPError as exc:
            raise NetworkError(f"Error {exc.code}", code=classify_status(exc.code), status=exc.code) from exc
        except urllib.error.URLError as exc:
            if isinstance(exc.reason, TimeoutError):
                raise NetworkError("Error: timeout", code=FETCH_TIMEOUT) from exc
            raise NetworkError(f"Error: {exc.reason}", code=FETCH_TRANSIENT) from exc
        except TimeoutError as exc:
            raise NetworkError("Error: timeout", code=FETCH_TIMEOUT) from exc
        # Dropped connections and short reads surface outside URLError
        except (http.client.HTTPException, OSError) as exc:
            raise NetworkError(f"Error: {str(exc) or type(exc).__name__}", code=FETCH_TRANSIENT) from exc

        if status != 200:
            raise NetworkError(f"Error {status}", code=classify_status(status or 0), status=status)

        try:
            return json.loads(body)
        except json.JSONDecodeError as exc:
            raise NetworkError("Error: unreadable response", code=PARSE_ERROR, status=status) from exc

    async def fetch_page(self, category: Category, page: int, page_size: int = PAGE_SIZE) -> FeedPage:
        """
        Fetch one page of headlines.

        Retries timeouts and 5xx with exponential backoff; 429 and other 4xx
        fail immediately. Raises NetworkError when the page can't be had.
        """
        if not self.api_key:
            log_event("fetch_disabled", reason="NEWS_API_KEY not set")
            raise NetworkError("Error: NEWS_API_KEY not set", code=FETCH_DISABLED)
        if page < 1:
            raise ValueError(f"page must be positive, got {page}")

        url = self.build_url(category, page, page_size)

        for i in range(self.attempts):
            try:
                payload = await asyncio.to_thread(self.get_json, url)
                return parse_page(payload)
            except NetworkError as exc:
                should_retry = exc.code in (FETCH_TIMEOUT, FETCH_TRANSIENT) and i < self.attempts - 1
                if not should_retry:
                    raise
                log_event("fetch_retry", category=Category(category).value, page=page,
                          attempt=i + 1, error_code=exc.code)
                await asyncio.sleep(self.base_sleep_s * (2 ** i))

        # Fallback (loop always returns or raises)
        raise NetworkError("Error: unknown", code=FETCH_TRANSIENT)
