import time
import uuid
import logging
from contextvars import ContextVar
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

log = logging.getLogger("finguard.req")

# Correlation id for the request being served; read by the JSON log formatter
request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    return request_id.get()


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Assigns or propagates X-Request-ID and logs one line per request.

    Precedence for the id: incoming X-Request-ID header, else a fresh UUID4.
    """

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        t0 = time.perf_counter()
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        token = request_id.set(rid)
        try:
            response: Response = await call_next(request)
            dt_ms = int((time.perf_counter() - t0) * 1000)
            log.info(
                "%s %s -> %s in %dms",
                request.method,
                request.url.path,
                response.status_code,
                dt_ms,
            )
        finally:
            request_id.reset(token)
        response.headers["X-Request-ID"] = rid
        return response
