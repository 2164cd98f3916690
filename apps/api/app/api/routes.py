from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from app.business.catalog import router as catalog_router
from app.business.quotes import router as quotes_router
from app.core.auth import AuthUser, get_current_user
from app.core.config import get_settings
from app.metrics import generate_metrics_payload, metrics_content_type
from app.platform.storage import allowed_content_types

METRICS_ROLE = "system.metrics.read"

router = APIRouter()
router.include_router(catalog_router)
router.include_router(quotes_router)


@router.get("/health", tags=["system"])
def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
    }


@router.get("/me", tags=["auth"])
async def me(user: AuthUser = Depends(get_current_user)) -> dict[str, str | list[str]]:
    return {
        "sub": user.sub,
        "roles": user.roles,
    }


@router.get("/storage/allowed-content-types", tags=["storage"])
def storage_policy() -> dict[str, list[str] | int]:
    settings = get_settings()
    return {
        "content_types": allowed_content_types(),
        "max_file_size": settings.minio_max_file_size,
    }


@router.get("/metrics", tags=["system"])
def metrics(user: AuthUser = Depends(get_current_user)) -> Response:
    settings = get_settings()
    if not settings.metrics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    if not user.has_role(METRICS_ROLE):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=f"Missing permission: {METRICS_ROLE}")
    return Response(content=generate_metrics_payload(), media_type=metrics_content_type())
