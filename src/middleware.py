import time
import uuid

from fastapi import Request

from src.logging_utils import log_event


async def request_id_middleware(request: Request, call_next):
    #1. Generate a unique request ID
    request_id = uuid.uuid4().hex

    #2. Attach it to the request state (lives for this request only)
    request.state.request_id = request_id

    #3. Let the request continue through the rest of the app
    t0 = time.perf_counter()
    response = await call_next(request)

    #4. Add the request ID to the response headers
    response.headers['X-Request-ID'] = request_id

    log_event("http_request", request_id=request_id, method=request.method, path=request.url.path,
              status=response.status_code, latency_ms=int((time.perf_counter() - t0) * 1000))
    return response
