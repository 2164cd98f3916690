from dataclasses import dataclass

from fastapi import Depends, Header, Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.context import get_correlation_id
from app.core.auth import AuthUser, get_current_user
from app.platform.errors import ValidationError


@dataclass
class RequestContext:
    request_id: str
    correlation_id: str
    user_id: str | None
    tenant_id: str | None


@dataclass(frozen=True)
class TenantContext:
    tenant_id: str
    user_id: str
    correlation_id: str | None = None


class RequestContextMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):  # type: ignore[no-untyped-def]
        correlation_id = getattr(request.state, "correlation_id", None)
        tenant_id = (request.headers.get("x-tenant-id") or "").strip() or None
        request.state.context = RequestContext(
            request_id=correlation_id or "",
            correlation_id=correlation_id or "",
            user_id=None,
            tenant_id=tenant_id,
        )
        response = await call_next(request)
        response.headers["x-request-id"] = request.state.context.request_id
        return response


def get_tenant_context(
    request: Request,
    auth_user: AuthUser = Depends(get_current_user),
    tenant_id_header: str | None = Header(default=None, alias="x-tenant-id"),
) -> TenantContext:
    tenant_id = (tenant_id_header or "").strip()
    if not tenant_id:
        raise ValidationError("x-tenant-id header is required")
    correlation_id = get_correlation_id() or getattr(getattr(request.state, "context", None), "request_id", None)
    return TenantContext(tenant_id=tenant_id, user_id=auth_user.sub, correlation_id=correlation_id)
