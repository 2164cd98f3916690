from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Body, Depends, Query, status
from fastapi.responses import Response
from sqlalchemy.orm import Session

from app.business.quotes.schemas import (
    QuoteCalculation,
    QuoteCalculationRequest,
    QuoteCreate,
    QuoteDocumentDownload,
    QuoteRead,
    QuoteStatusUpdate,
    QuoteSummary,
    QuoteUpdate,
)
from app.business.quotes.service import PDF_CONTENT_TYPE, quote_service
from app.core.context import TenantContext, get_tenant_context
from app.core.database import get_db
from app.platform.query import Page
from app.platform.storage import StorageService, get_storage_service


router = APIRouter(prefix="/quotes", tags=["quotes"])


@router.post("/calculate", response_model=QuoteCalculation)
def calculate_quote(
    payload: QuoteCalculationRequest,
    ctx: TenantContext = Depends(get_tenant_context),
) -> QuoteCalculation:
    return quote_service.calculate(payload)


@router.get("", response_model=Page[QuoteSummary])
def list_quotes(
    status_filter: str | None = Query(default=None, alias="status"),
    search: str | None = Query(default=None),
    created_at_from: str | None = Query(default=None),
    created_at_to: str | None = Query(default=None),
    valid_until_from: str | None = Query(default=None),
    valid_until_to: str | None = Query(default=None),
    total_from: int | None = Query(default=None),
    total_to: int | None = Query(default=None),
    page: int | None = Query(default=None),
    page_size: int | None = Query(default=None),
    sort_by: str | None = Query(default=None),
    sort_order: str | None = Query(default=None),
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> Page[QuoteSummary]:
    return quote_service.list_quotes(
        db,
        ctx,
        status=status_filter,
        search=search,
        created_at_from=created_at_from,
        created_at_to=created_at_to,
        valid_until_from=valid_until_from,
        valid_until_to=valid_until_to,
        total_from=total_from,
        total_to=total_to,
        page=page,
        page_size=page_size,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.post("", response_model=QuoteRead, status_code=status.HTTP_201_CREATED)
def create_quote(
    payload: QuoteCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> QuoteRead:
    return quote_service.create_quote(db, ctx, payload)


@router.get("/{quote_id}", response_model=QuoteRead)
def get_quote(
    quote_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> QuoteRead:
    return quote_service.get_quote(db, ctx, quote_id)


@router.put("/{quote_id}", response_model=QuoteRead)
def update_quote(
    quote_id: UUID,
    payload: QuoteUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> QuoteRead:
    return quote_service.update_quote(db, ctx, quote_id, payload)


@router.post("/{quote_id}/status", response_model=QuoteRead)
def update_quote_status(
    quote_id: UUID,
    payload: QuoteStatusUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> QuoteRead:
    return quote_service.update_quote_status(db, ctx, quote_id, payload)


@router.delete("/{quote_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_quote(
    quote_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
) -> Response:
    quote_service.delete_quote(db, ctx, quote_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{quote_id}/pdf", response_model=QuoteRead)
def upload_quote_pdf(
    quote_id: UUID,
    content: bytes = Body(..., media_type=PDF_CONTENT_TYPE),
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
    storage: StorageService = Depends(get_storage_service),
) -> QuoteRead:
    return quote_service.store_quote_pdf(db, ctx, storage, quote_id, content)


@router.get("/{quote_id}/pdf", response_model=QuoteDocumentDownload)
def get_quote_pdf(
    quote_id: UUID,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context),
    storage: StorageService = Depends(get_storage_service),
) -> QuoteDocumentDownload:
    return quote_service.get_quote_pdf_download_url(db, ctx, storage, quote_id)
