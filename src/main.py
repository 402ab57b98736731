# Load .env file BEFORE other imports (so env vars are available)
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError

from src.middleware import request_id_middleware
from src.logging_utils import log_event
from src.errors import PersistenceError, problem

from src.config import load_settings
from src.dispatcher import FeedDispatcher
from src.kv_store import SqliteKVStore
from src.news_fetch import NewsApiClient
from src.schemas import BookmarkToggleRequest, CategoryRequest, SearchRequest, SentinelRequest
from src.views import build_detail


def build_dispatcher() -> FeedDispatcher:
    """Wire the production dispatcher from environment settings."""
    settings = load_settings()
    return FeedDispatcher(
        NewsApiClient.from_settings(settings),
        SqliteKVStore(settings.db_path),
        debounce_ms=settings.debounce_ms,
    )


def _error_response(request: Request, *, status: int, code: str, message: str) -> JSONResponse:
    rid = getattr(request.state, "request_id", "")
    payload = problem(status=status, code=code, message=message, request_id=rid)
    resp = JSONResponse(status_code=status, content=payload.model_dump(exclude_none=True))
    resp.headers["X-Request-ID"] = rid
    return resp


def create_app(dispatcher: FeedDispatcher | None = None) -> FastAPI:
    """
    Build the HTTP surface.

    The dispatcher is created and mounted on startup (first page fetched) and
    closed on shutdown. Pass one in to run against a different fetch client
    or store.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        feed = dispatcher or build_dispatcher()
        app.state.dispatcher = feed
        await feed.mount()
        try:
            yield
        finally:
            feed.close()

    app = FastAPI(lifespan=lifespan)

    #Register middleware
    app.middleware("http")(request_id_middleware)

    def get_dispatcher(request: Request) -> FeedDispatcher:
        feed = getattr(request.app.state, "dispatcher", None)
        if feed is None:
            raise HTTPException(status_code=503, detail="Viewer not started")
        return feed

    @app.get("/health")
    def health(request: Request):
        request_id = request.state.request_id
        log_event("health_check", request_id=request_id)
        return {"status": "ok"}

    @app.get("/feed")
    async def get_feed(request: Request):
        return get_dispatcher(request).snapshot()

    @app.post("/feed/category")
    async def select_category(request: Request, body: CategoryRequest):
        feed = get_dispatcher(request)
        await feed.select_category(body.category)
        return feed.snapshot()

    @app.post("/feed/search")
    async def search(request: Request, body: SearchRequest):
        """Records raw input; the committed query follows after the debounce delay."""
        feed = get_dispatcher(request)
        feed.search_input(body.text)
        return {"raw": feed.debouncer.raw_input, "committed": feed.debouncer.committed_query}

    @app.post("/feed/sentinel")
    async def sentinel(request: Request, body: SentinelRequest):
        """Client reports end-of-list marker visibility (IntersectionObserver, rootMargin 200px)."""
        feed = get_dispatcher(request)
        await feed.sentinel_visible(body.visible)
        return feed.snapshot()

    @app.post("/view/favorites")
    async def toggle_favorites(request: Request):
        feed = get_dispatcher(request)
        await feed.toggle_favorites()
        return feed.snapshot()

    @app.get("/bookmarks")
    async def list_bookmarks(request: Request):
        feed = get_dispatcher(request)
        items = feed.bookmarks.items
        return {"count": len(items), "items": [a.model_dump(mode="json") for a in items]}

    @app.post("/bookmarks/toggle")
    async def toggle_bookmark(request: Request, body: BookmarkToggleRequest):
        feed = get_dispatcher(request)
        article = feed.find_article(body.id)
        if article is None:
            raise HTTPException(status_code=404, detail=f"Unknown article: {body.id}")
        bookmarked = feed.toggle_bookmark(article)
        return {"id": article.id, "bookmarked": bookmarked, "favorites_count": len(feed.bookmarks)}

    @app.get("/articles/detail")
    async def article_detail(request: Request, id: str):
        feed = get_dispatcher(request)
        article = feed.find_article(id)
        if article is None:
            raise HTTPException(status_code=404, detail=f"Unknown article: {id}")
        return build_detail(article, bookmarked=feed.bookmarks.is_bookmarked(article.id))

    @app.get("/theme")
    async def get_theme(request: Request):
        return {"dark_mode": get_dispatcher(request).theme.dark_mode}

    @app.post("/theme/toggle")
    async def toggle_theme(request: Request):
        return {"dark_mode": get_dispatcher(request).toggle_theme()}

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        log_event("http_error", request_id=getattr(request.state, "request_id", None),
                  status=exc.status_code, message=str(exc.detail))
        return _error_response(request, status=exc.status_code, code="http_error", message=str(exc.detail))

    @app.exception_handler(PersistenceError)
    async def persistence_exception_handler(request: Request, exc: PersistenceError):
        log_event("storage_error", request_id=getattr(request.state, "request_id", None),
                  error_code=exc.code, message=exc.message)
        return _error_response(request, status=503, code=exc.code, message="Local storage unavailable")

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """Return ProblemDetails for Pydantic validation errors."""
        # Extract first error for a clean message
        errors = exc.errors()
        if errors:
            first = errors[0]
            loc = ".".join(str(x) for x in first.get("loc", []))  #e.g., "body.category"
            message = f"{loc}: {first.get('msg', 'Validation error')}"
        else:
            message = "Validation error"

        log_event("validation_error", request_id=getattr(request.state, "request_id", None), message=message)
        return _error_response(request, status=422, code="validation_error", message=message)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        # Don't leak details to the client, but do log them
        log_event("internal_error", request_id=getattr(request.state, "request_id", None),
                  error_type=type(exc).__name__)
        return _error_response(request, status=500, code="internal_error", message="Internal server error")

    return app


app = create_app()
