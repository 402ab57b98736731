# src/news_parse.py
from __future__ import annotations

from pydantic import ValidationError

from src.error_codes import PARSE_ERROR
from src.errors import NetworkError
from src.schemas import Article, FeedPage


REMOVED_TITLE = "[Removed]"


def parse_page(payload: object) -> FeedPage:
    """
    Convert a decoded top-headlines JSON payload into a FeedPage.

    Rules:
    - status "error" -> NetworkError carrying the source's message
    - url + publishedAt required, else skip the article
    - "[Removed]" placeholder articles are skipped
    - missing strings default to ""
    - duplicate urls within one page keep the first occurrence
    - Preserve order
    - Anything that isn't an object with an articles list -> NetworkError(PARSE_ERROR)
    """
    if not isinstance(payload, dict):
        raise NetworkError("Error: unreadable response", code=PARSE_ERROR)

    if payload.get("status") == "error":
        message = payload.get("message") or payload.get("code") or "unknown error"
        raise NetworkError(f"Error: {message}", code=PARSE_ERROR)

    raw_articles = payload.get("articles")
    if not isinstance(raw_articles, list):
        raise NetworkError("Error: response has no articles", code=PARSE_ERROR)

    def text_of(raw: dict, key: str) -> str:
        value = raw.get(key)
        return value.strip() if isinstance(value, str) else ""

    seen: set[str] = set()
    out: list[Article] = []

    for raw in raw_articles:
        if not isinstance(raw, dict):
            continue

        url = text_of(raw, "url")
        title = text_of(raw, "title")
        if not url or url in seen or title == REMOVED_TITLE:
            continue

        source = raw.get("source")
        source_name = text_of(source, "name") if isinstance(source, dict) else ""

        try:
            article = Article(
                id=url,
                title=title,
                description=text_of(raw, "description"),
                content=text_of(raw, "content"),
                image_url=text_of(raw, "urlToImage") or None,
                published_at=raw.get("publishedAt"),
                source_name=source_name,
            )
        except ValidationError:
            continue

        seen.add(url)
        out.append(article)

    total = payload.get("totalResults")
    if not isinstance(total, int) or isinstance(total, bool) or total < 0:
        total = len(out)

    return FeedPage(articles=out, total_results=total)
