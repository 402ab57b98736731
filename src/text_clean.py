import re


# NewsAPI cuts `content` and appends e.g. "… [+1234 chars]"
TRUNCATION_MARKER = r'\s*\[\+.*?\]$'


def clean_content(content: str | None, description: str | None = None) -> str:
    """Body text for the detail view: content, else description, minus the truncation marker."""
    raw = content or description or ""
    return re.sub(TRUNCATION_MARKER, '', raw).strip()


def truncate(text: str | None, limit: int = 120) -> str:
    """Card teaser: first `limit` characters followed by an ellipsis."""
    return f"{(text or '')[:limit]}…"
