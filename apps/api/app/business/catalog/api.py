from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.business.catalog.schemas import (
    AssetCreate,
    AssetDownload,
    AssetPresignRequest,
    AssetRead,
    AutocompleteItem,
    NextProductReference,
    ProductCreate,
    ProductMaterialRead,
    ProductMaterialsAdd,
    ProductMaterialsRemove,
    ProductPatch,
    ProductRead,
    UrlAssetCreate,
    VatRateCreate,
    VatRatePatch,
    VatRateRead,
)
from app.business.catalog.service import catalog_service
from app.core.context import TenantContext, get_tenant_context
from app.core.database import get_db
from app.platform.query import Page
from app.platform.storage import PresignedGrant, StorageService, get_storage_service


router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("/vat-rates", response_model=Page[VatRateRead])
def list_vat_rates(
    search: str | None = Query(default=None),
    page: int | None = Query(default=None),
    page_size: int | None = Query(default=None),
    sort_by: str | None = Query(default=None),
    sort_order: str | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> Page[VatRateRead]:
    return catalog_service.list_vat_rates(
        db,
        ctx,
        search=search,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post("/vat-rates", response_model=VatRateRead, status_code=status.HTTP_201_CREATED)
def create_vat_rate(
    payload: VatRateCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> VatRateRead:
    return catalog_service.create_vat_rate(db, ctx, payload)


@router.post("/vat-rates/seed-defaults", response_model=list[VatRateRead])
def seed_default_vat_rates(
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> list[VatRateRead]:
    return catalog_service.seed_default_vat_rates(db, ctx)


@router.get("/vat-rates/{vat_rate_id}", response_model=VatRateRead)
def get_vat_rate(
    vat_rate_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> VatRateRead:
    return catalog_service.get_vat_rate(db, ctx, vat_rate_id)


@router.patch("/vat-rates/{vat_rate_id}", response_model=VatRateRead)
def update_vat_rate(
    vat_rate_id: UUID,
    payload: VatRatePatch,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> VatRateRead:
    return catalog_service.update_vat_rate(db, ctx, vat_rate_id, payload)


@router.delete("/vat-rates/{vat_rate_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_vat_rate(
    vat_rate_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> Response:
    catalog_service.delete_vat_rate(db, ctx, vat_rate_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/products", response_model=Page[ProductRead])
def list_products(
    search: str | None = Query(default=None),
    title: str | None = Query(default=None),
    reference: str | None = Query(default=None),
    type: str | None = Query(default=None),
    is_draft: bool | None = Query(default=None),
    vat_rate_id: UUID | None = Query(default=None),
    created_at_from: str | None = Query(default=None),
    created_at_to: str | None = Query(default=None),
    updated_at_from: str | None = Query(default=None),
    updated_at_to: str | None = Query(default=None),
    page: int | None = Query(default=None),
    page_size: int | None = Query(default=None),
    sort_by: str | None = Query(default=None),
    sort_order: str | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> Page[ProductRead]:
    return catalog_service.list_products(
        db,
        ctx,
        search=search,
        title=title,
        reference=reference,
        product_type=type,
        is_draft=is_draft,
        vat_rate_id=vat_rate_id,
        created_at_from=created_at_from,
        created_at_to=created_at_to,
        updated_at_from=updated_at_from,
        updated_at_to=updated_at_to,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post("/products", response_model=ProductRead, status_code=status.HTTP_201_CREATED)
def create_product(
    payload: ProductCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> ProductRead:
    return catalog_service.create_product(db, ctx, payload)


@router.get("/products/next-reference", response_model=NextProductReference)
def next_product_reference(
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> NextProductReference:
    return catalog_service.next_product_reference(db, ctx)


@router.get("/products/search", response_model=list[AutocompleteItem])
def search_products(
    query: str | None = Query(default=None, alias="q"),
    limit: int | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> list[AutocompleteItem]:
    return catalog_service.search_for_autocomplete(db, ctx, query=query, limit=limit)


@router.get("/products/{product_id}", response_model=ProductRead)
def get_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> ProductRead:
    return catalog_service.get_product(db, ctx, product_id)


@router.patch("/products/{product_id}", response_model=ProductRead)
def update_product(
    product_id: UUID,
    payload: ProductPatch,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> ProductRead:
    return catalog_service.update_product(db, ctx, product_id, payload)


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> Response:
    catalog_service.delete_product(db, ctx, product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/products/{product_id}/materials", response_model=list[ProductMaterialRead])
def list_product_materials(
    product_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> list[ProductMaterialRead]:
    return catalog_service.list_product_materials(db, ctx, product_id)


@router.post("/products/{product_id}/materials", response_model=list[ProductMaterialRead])
def add_product_materials(
    product_id: UUID,
    payload: ProductMaterialsAdd,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> list[ProductMaterialRead]:
    return catalog_service.add_product_materials(db, ctx, product_id, payload)


@router.delete("/products/{product_id}/materials", status_code=status.HTTP_204_NO_CONTENT)
def remove_product_materials(
    product_id: UUID,
    payload: ProductMaterialsRemove,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> Response:
    catalog_service.remove_product_materials(db, ctx, product_id, payload)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/products/{product_id}/assets/presign", response_model=PresignedGrant)
def presign_asset_upload(
    product_id: UUID,
    payload: AssetPresignRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
    storage: StorageService = Depends(get_storage_service),
) -> PresignedGrant:
    return catalog_service.presign_asset_upload(db, ctx, storage, product_id, payload)


@router.post("/products/{product_id}/assets", response_model=AssetRead, status_code=status.HTTP_201_CREATED)
def create_asset(
    product_id: UUID,
    payload: AssetCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
    storage: StorageService = Depends(get_storage_service),
) -> AssetRead:
    return catalog_service.create_asset(db, ctx, storage, product_id, payload)


@router.post("/products/{product_id}/assets/url", response_model=AssetRead, status_code=status.HTTP_201_CREATED)
def create_url_asset(
    product_id: UUID,
    payload: UrlAssetCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> AssetRead:
    return catalog_service.create_url_asset(db, ctx, product_id, payload)


@router.get("/products/{product_id}/assets", response_model=list[AssetRead])
def list_assets(
    product_id: UUID,
    asset_type: str | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> list[AssetRead]:
    return catalog_service.list_assets(db, ctx, product_id, asset_type=asset_type)


@router.get("/products/{product_id}/assets/{asset_id}/download", response_model=AssetDownload)
def get_asset_download_url(
    product_id: UUID,
    asset_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
    storage: StorageService = Depends(get_storage_service),
) -> AssetDownload:
    return catalog_service.get_asset_download_url(db, ctx, storage, product_id, asset_id)


@router.delete("/products/{product_id}/assets/{asset_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_asset(
    product_id: UUID,
    asset_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
    storage: StorageService = Depends(get_storage_service),
) -> Response:
    catalog_service.delete_asset(db, ctx, storage, product_id, asset_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
