from __future__ import annotations

import argparse
import asyncio

from dotenv import load_dotenv

from src.config import load_settings
from src.feed_controller import FeedController
from src.logging_utils import log_event
from src.news_fetch import NewsApiClient
from src.schemas import Category, ViewMode
from src.views import visible_list


async def collect(controller: FeedController, category: Category, pages: int) -> None:
    """Reset to `category`, then page forward until `pages` are loaded or the feed ends."""
    await controller.reset(category)
    while controller.state.cursor < pages and controller.has_more and controller.state.error is None:
        if not await controller.load_next():
            break


def main(argv: list[str] | None = None, *, client=None) -> int:
    load_dotenv()

    p = argparse.ArgumentParser(description="Print top headlines for one category.")
    p.add_argument("--category", default=Category.GENERAL.value, choices=[c.value for c in Category])
    p.add_argument("--pages", type=int, default=1, help="pages of 9 to load")
    p.add_argument("--query", default="", help="case-insensitive title filter")
    args = p.parse_args(argv)

    if client is None:
        client = NewsApiClient.from_settings(load_settings())

    controller = FeedController(client)
    category = Category(args.category)
    asyncio.run(collect(controller, category, max(1, args.pages)))

    state = controller.state
    if state.error:
        log_event("headlines_failed", category=category.value, error=state.error)
        print(state.error)
        return 1

    shown = visible_list(ViewMode.FEED, state, [], args.query.strip())
    for article in shown:
        print(f"{article.published_at.date().isoformat()}  [{article.source_name}]  {article.title}")
        print(f"    {article.id}")

    log_event("headlines_printed", category=category.value, pages=state.cursor,
              loaded=len(state.items), shown=len(shown), total_results=state.total_results)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
