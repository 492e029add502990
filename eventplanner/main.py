import logging
import time
from uuid import uuid4

from fastapi import FastAPI
from fastapi import HTTPException
from fastapi import Request, Response
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import OperationalError

from eventplanner.api.v1.auth import router as auth_router
from eventplanner.api.v1.events import router as events_router
from eventplanner.api.v1.users import router as users_router
from eventplanner.api.v1.waitlist import router as waitlist_router
from eventplanner.core.exceptions import (
    http_exception_handler,
    store_unavailable_handler,
    validation_exception_handler,
)
from eventplanner.core.logging import setup_logging
from eventplanner.core.metrics import REQUEST_COUNT, REQUEST_LATENCY, render_metrics
from eventplanner.core.request_context import request_id_ctx_var

app = FastAPI(title="Event Planner API", version="0.1.0")
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(OperationalError, store_unavailable_handler)
setup_logging()
logger = logging.getLogger("eventplanner.request")

app.include_router(auth_router)
app.include_router(users_router)
app.include_router(events_router)
app.include_router(waitlist_router)


def _route_label(request: Request) -> str:
    # Entry and event ids live in the path; label by template to bound cardinality.
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


@app.middleware("http")
async def observability_middleware(request: Request, call_next):
    request_id = request.headers.get("x-request-id") or str(uuid4())
    token = request_id_ctx_var.set(request_id)
    start = time.perf_counter()
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        response.headers["X-Request-ID"] = request_id
        return response
    except Exception:
        logger.exception("request_failed method=%s path=%s", method, request.url.path)
        raise
    finally:
        elapsed = time.perf_counter() - start
        route = _route_label(request)
        REQUEST_COUNT.labels(method=method, path=route, status_code=status_code).inc()
        REQUEST_LATENCY.labels(method=method, path=route).observe(elapsed)
        logger.info(
            "request_completed method=%s route=%s status=%s duration_ms=%.2f",
            method,
            route,
            status_code,
            elapsed * 1000,
        )
        request_id_ctx_var.reset(token)


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/metrics", tags=["observability"])
def metrics() -> Response:
    payload, content_type = render_metrics()
    return Response(content=payload, media_type=content_type)
