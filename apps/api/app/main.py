from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.context import RequestContextMiddleware
from app.core.events import InternalEvent, event_bus
from app.logging import configure_logging
from app.middleware.correlation_id import CorrelationIdMiddleware
from app.middleware.request_logging import RequestLoggingMiddleware
from app.otel import get_fastapi_server_request_hook, setup_otel
from app.platform.errors import AppError, InfrastructureError
from app.platform.storage import get_storage_service


configure_logging()
logger = logging.getLogger("app.lifecycle")
_subscriptions_registered = False

_logged_event_types = [
    "catalog.product.created",
    "catalog.product.updated",
    "catalog.product.deleted",
    "quote.created",
    "quote.status_changed",
]


def _on_system_started(event: InternalEvent) -> None:
    logger.info("system_event", extra={"event_name": event.name, "event_payload": event.payload})


def _on_domain_event(event: InternalEvent) -> None:
    envelope = event.payload
    logger.info(
        "domain_event",
        extra={
            "event_name": event.name,
            "tenant_id": envelope.get("tenant_id"),
            "event_payload": envelope.get("payload"),
        },
    )


def _ensure_buckets() -> None:
    settings = get_settings()
    storage = get_storage_service()
    for bucket in (settings.minio_bucket_catalog, settings.minio_bucket_quotes):
        storage.ensure_bucket_exists(bucket)


@asynccontextmanager
async def lifespan(app: FastAPI):
    global _subscriptions_registered
    if not _subscriptions_registered:
        event_bus.subscribe("system.started", _on_system_started)
        event_bus.subscribe_many(_logged_event_types, _on_domain_event)
        _subscriptions_registered = True
    if get_settings().minio_ensure_buckets:
        _ensure_buckets()
    event_bus.publish("system.started", {"service": "api"})
    yield


async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    if isinstance(exc, InfrastructureError) or exc.status_code >= 500:
        logger.error(
            "request.failed",
            exc_info=exc.__cause__ or exc,
            extra={"op": exc.op, "kind": exc.kind, "error": str(exc)},
        )
        return JSONResponse(status_code=exc.status_code, content={"detail": "internal error", "kind": exc.kind})
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "kind": exc.kind})


app = FastAPI(title="Fieldservice API", version="0.1.0", lifespan=lifespan)
app.add_exception_handler(AppError, handle_app_error)  # type: ignore[arg-type]
app.add_middleware(RequestContextMiddleware)
app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(CorrelationIdMiddleware)
app.include_router(api_router)

setup_otel(get_settings())

if not getattr(app, "_is_instrumented_by_opentelemetry", False):
    FastAPIInstrumentor().instrument_app(app, server_request_hook=get_fastapi_server_request_hook())
