from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


PAGE_SIZE = 9


class Category(str, Enum):
    GENERAL = "general"
    BUSINESS = "business"
    ENTERTAINMENT = "entertainment"
    HEALTH = "health"
    SCIENCE = "science"
    SPORTS = "sports"
    TECHNOLOGY = "technology"


class ViewMode(str, Enum):
    FEED = "feed"
    FAVORITES = "favorites"


class Article(BaseModel):
    """One headline. `id` is the article url and is the only identity key."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    title: str = ""
    description: str = ""
    content: str = ""
    image_url: str | None = None
    published_at: datetime
    source_name: str = ""


class FeedPage(BaseModel):
    articles: list[Article]
    total_results: int = Field(..., ge=0)


# --- Request bodies ---

class CategoryRequest(BaseModel):
    category: Category


class SearchRequest(BaseModel):
    text: str = Field("", max_length=500)


class SentinelRequest(BaseModel):
    visible: bool


class BookmarkToggleRequest(BaseModel):
    id: str = Field(..., min_length=1)
