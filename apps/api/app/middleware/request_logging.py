from __future__ import annotations

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.metrics import observe_http_request, resolve_http_path_label


logger = logging.getLogger("app.request")

# Probe endpoints are still counted, but only logged at DEBUG.
_PROBE_PATHS = frozenset({"/health", "/metrics"})


def _tenant_of(request: Request) -> str | None:
    context = getattr(request.state, "context", None)
    if context is not None and context.tenant_id:
        return context.tenant_id
    return (request.headers.get("x-tenant-id") or "").strip() or None


def _record(request: Request, status_code: int, started: float, *, failed: bool = False) -> None:
    # The route is only resolved once the router has run.
    path = resolve_http_path_label(request)
    duration_ms = round((time.perf_counter() - started) * 1000, 2)
    observe_http_request(method=request.method, path=path, status=status_code, duration=duration_ms / 1000)

    if failed:
        level = logging.ERROR
    elif status_code >= 500:
        level = logging.WARNING
    elif path in _PROBE_PATHS:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logger.log(
        level,
        "http.error" if failed else "http.request",
        exc_info=failed,
        extra={
            "method": request.method,
            "path": path,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "tenant_id": _tenant_of(request),
        },
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            _record(request, 500, started, failed=True)
            raise

        _record(request, response.status_code, started)
        return response
