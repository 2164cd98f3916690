from __future__ import annotations

import io
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from app.business.catalog.repository import ProductRepository
from app.business.quotes.calculator import calculate_quote
from app.business.quotes.models import Quote, QuoteItem
from app.business.quotes.repository import QuoteRepository
from app.business.quotes.schemas import (
    QuoteCalculation,
    QuoteCalculationRequest,
    QuoteCreate,
    QuoteDocumentDownload,
    QuoteItemInput,
    QuoteRead,
    QuoteStatusUpdate,
    QuoteSummary,
    QuoteUpdate,
)
from app.core.config import get_settings
from app.core.context import TenantContext
from app.events import publish_domain_event
from app.metrics import observe_quote_status_transition
from app.platform.errors import ConflictError, NotFoundError, StorageError, ValidationError
from app.platform.query import Page, PageRequest, optional_equals, optional_range, optional_search, parse_date_filter
from app.platform.repository import store_errors
from app.platform.storage import StorageService


logger = logging.getLogger("app.quotes")

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "Draft": frozenset({"Sent", "Expired"}),
    "Sent": frozenset({"Accepted", "Rejected", "Expired"}),
}
PDF_CONTENT_TYPE = "application/pdf"


def _trim(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def build_items(tenant_id: str, items: list[QuoteItemInput]) -> list[QuoteItem]:
    return [
        QuoteItem(
            tenant_id=tenant_id,
            description=item.description.strip(),
            quantity=item.quantity.strip(),
            unit_price_cents=item.unit_price_cents,
            tax_rate_bps=item.tax_rate_bps,
            is_optional=item.is_optional,
            # Mandatory lines always count towards the total.
            is_selected=item.is_selected if item.is_optional else True,
            sort_order=index,
            catalog_product_id=item.catalog_product_id,
        )
        for index, item in enumerate(items)
    ]


def apply_totals(quote: Quote, calculation: QuoteCalculation) -> None:
    quote.subtotal_cents = calculation.subtotal_cents
    quote.discount_amount_cents = calculation.discount_amount_cents
    quote.tax_total_cents = calculation.vat_total_cents
    quote.total_cents = calculation.total_cents


def _as_inputs(items: list[QuoteItem]) -> list[QuoteItemInput]:
    return [
        QuoteItemInput(
            description=item.description,
            quantity=item.quantity,
            unit_price_cents=item.unit_price_cents,
            tax_rate_bps=item.tax_rate_bps,
            is_optional=item.is_optional,
            is_selected=item.is_selected,
            catalog_product_id=item.catalog_product_id,
        )
        for item in items
    ]


@dataclass(slots=True)
class QuoteService:
    quotes: QuoteRepository = field(default_factory=QuoteRepository)
    products: ProductRepository = field(default_factory=ProductRepository)

    @property
    def document_bucket(self) -> str:
        return get_settings().minio_bucket_quotes

    def calculate(self, dto: QuoteCalculationRequest) -> QuoteCalculation:
        return calculate_quote(dto.items, dto.pricing_mode, dto.discount_type, dto.discount_value)

    def create_quote(self, session: Session, ctx: TenantContext, dto: QuoteCreate) -> QuoteRead:
        self._check_catalog_products(session, ctx, dto.items)
        calculation = calculate_quote(dto.items, dto.pricing_mode, dto.discount_type, dto.discount_value)
        quote_number = self.quotes.mint_quote_number(session, ctx.tenant_id, datetime.now(timezone.utc).year)

        quote = Quote(
            tenant_id=ctx.tenant_id,
            quote_number=quote_number,
            status="Draft",
            customer_name=_trim(dto.customer_name),
            pricing_mode=dto.pricing_mode,
            discount_type=dto.discount_type,
            discount_value=dto.discount_value,
            valid_until=dto.valid_until,
            notes=_trim(dto.notes),
            items=build_items(ctx.tenant_id, dto.items),
        )
        apply_totals(quote, calculation)
        self.quotes.add(session, quote, conflict_message="quote number already exists")
        self._commit(session, "create quote", conflict_message="quote number already exists")
        session.refresh(quote)

        logger.info("quote.created", extra={"tenant_id": ctx.tenant_id, "resource_id": str(quote.id)})
        publish_domain_event(
            "quote.created",
            ctx.tenant_id,
            {"quote_id": str(quote.id), "quote_number": quote.quote_number, "total_cents": quote.total_cents},
        )
        return QuoteRead.model_validate(quote)

    def get_quote(self, session: Session, ctx: TenantContext, quote_id: uuid.UUID) -> QuoteRead:
        return QuoteRead.model_validate(self.quotes.get(session, ctx.tenant_id, quote_id))

    def list_quotes(
        self,
        session: Session,
        ctx: TenantContext,
        *,
        status: str | None = None,
        search: str | None = None,
        created_at_from: str | None = None,
        created_at_to: str | None = None,
        valid_until_from: str | None = None,
        valid_until_to: str | None = None,
        total_from: int | None = None,
        total_to: int | None = None,
        page: int | None = None,
        page_size: int | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> Page[QuoteSummary]:
        request = PageRequest.normalize(page, page_size)
        filters = [
            optional_equals(Quote.status, _trim(status)),
            optional_search(search, Quote.quote_number, Quote.notes, Quote.customer_name),
            optional_range(
                Quote.created_at,
                parse_date_filter(created_at_from),
                parse_date_filter(created_at_to, end_of_day=True),
                upper_inclusive=True,
            ),
            optional_range(
                Quote.valid_until,
                parse_date_filter(valid_until_from),
                parse_date_filter(valid_until_to, end_of_day=True),
                upper_inclusive=True,
            ),
            optional_range(Quote.total_cents, total_from, total_to, upper_inclusive=True),
        ]
        items, total = self.quotes.list(
            session,
            ctx.tenant_id,
            filters=filters,
            sort_by=sort_by,
            sort_order=sort_order,
            page=request,
        )
        return Page[QuoteSummary].build([QuoteSummary.model_validate(item) for item in items], total, request)

    def update_quote(
        self,
        session: Session,
        ctx: TenantContext,
        quote_id: uuid.UUID,
        dto: QuoteUpdate,
    ) -> QuoteRead:
        quote = self.quotes.get(session, ctx.tenant_id, quote_id)
        if quote.status != "Draft":
            raise ConflictError("only draft quotes can be edited")
        if dto.items is not None:
            self._check_catalog_products(session, ctx, dto.items)

        changes = dto.model_dump(exclude_unset=True, exclude={"items"})
        for key in ("pricing_mode", "discount_type", "discount_value"):
            if changes.get(key) is not None:
                setattr(quote, key, changes[key])
        if "customer_name" in changes:
            quote.customer_name = _trim(changes["customer_name"])
        if "notes" in changes:
            quote.notes = _trim(changes["notes"])
        if "valid_until" in changes:
            quote.valid_until = changes["valid_until"]

        if dto.items is not None:
            quote.items = build_items(ctx.tenant_id, dto.items)
            inputs = dto.items
        else:
            inputs = _as_inputs(quote.items)
        apply_totals(
            quote,
            calculate_quote(inputs, quote.pricing_mode, quote.discount_type, quote.discount_value),
        )
        self._commit(session, "update quote")
        session.refresh(quote)

        logger.info("quote.updated", extra={"tenant_id": ctx.tenant_id, "resource_id": str(quote.id)})
        return QuoteRead.model_validate(quote)

    def update_quote_status(
        self,
        session: Session,
        ctx: TenantContext,
        quote_id: uuid.UUID,
        dto: QuoteStatusUpdate,
    ) -> QuoteRead:
        quote = self.quotes.get(session, ctx.tenant_id, quote_id)
        previous = quote.status
        if previous == dto.status:
            return QuoteRead.model_validate(quote)
        if dto.status not in ALLOWED_TRANSITIONS.get(previous, frozenset()):
            raise ConflictError(f"cannot change quote status from {previous} to {dto.status}")

        now = datetime.now(timezone.utc)
        quote.status = dto.status
        if dto.status == "Accepted":
            quote.accepted_at = now
        elif dto.status == "Rejected":
            quote.rejected_at = now
            quote.rejection_reason = _trim(dto.rejection_reason)
        self._commit(session, "update quote status")
        session.refresh(quote)

        observe_quote_status_transition(previous, dto.status)
        logger.info(
            "quote.status_changed",
            extra={
                "tenant_id": ctx.tenant_id,
                "resource_id": str(quote.id),
                "from_status": previous,
                "to_status": dto.status,
            },
        )
        publish_domain_event(
            "quote.status_changed",
            ctx.tenant_id,
            {"quote_id": str(quote.id), "old_status": previous, "new_status": dto.status},
        )
        return QuoteRead.model_validate(quote)

    def delete_quote(self, session: Session, ctx: TenantContext, quote_id: uuid.UUID) -> None:
        quote = self.quotes.get(session, ctx.tenant_id, quote_id)
        self.quotes.delete(session, quote)
        self._commit(session, "delete quote")

        logger.info("quote.deleted", extra={"tenant_id": ctx.tenant_id, "resource_id": str(quote_id)})

    def store_quote_pdf(
        self,
        session: Session,
        ctx: TenantContext,
        storage: StorageService,
        quote_id: uuid.UUID,
        content: bytes,
    ) -> QuoteRead:
        quote = self.quotes.get(session, ctx.tenant_id, quote_id)
        storage.validate_file_size(len(content))
        if not content.startswith(b"%PDF"):
            raise ValidationError("content is not a PDF document")

        previous_key = quote.pdf_file_key
        file_key = storage.upload_file(
            self.document_bucket,
            f"{ctx.tenant_id}/quotes/{quote_id}",
            f"{quote.quote_number}.pdf",
            PDF_CONTENT_TYPE,
            io.BytesIO(content),
            len(content),
        )
        quote.pdf_file_key = file_key
        self._commit(session, "store quote pdf")
        session.refresh(quote)

        if previous_key and previous_key != file_key:
            try:
                storage.delete_object(self.document_bucket, previous_key)
            except StorageError:
                # The row already points at the new document; the old object is left orphaned.
                logger.warning(
                    "quote.pdf_cleanup_failed",
                    extra={"tenant_id": ctx.tenant_id, "resource_id": str(quote_id), "file_key": previous_key},
                )

        logger.info("quote.pdf_stored", extra={"tenant_id": ctx.tenant_id, "resource_id": str(quote_id)})
        return QuoteRead.model_validate(quote)

    def get_quote_pdf_download_url(
        self,
        session: Session,
        ctx: TenantContext,
        storage: StorageService,
        quote_id: uuid.UUID,
    ) -> QuoteDocumentDownload:
        quote = self.quotes.get(session, ctx.tenant_id, quote_id)
        if not quote.pdf_file_key:
            raise NotFoundError("quote pdf not found")
        grant = storage.generate_download_url(self.document_bucket, quote.pdf_file_key)
        return QuoteDocumentDownload(download_url=grant.url, expires_at=grant.expires_at)

    def _check_catalog_products(self, session: Session, ctx: TenantContext, items: list[QuoteItemInput]) -> None:
        product_ids = {item.catalog_product_id for item in items if item.catalog_product_id is not None}
        if not product_ids:
            return
        found = self.products.get_many(session, ctx.tenant_id, list(product_ids))
        if len(found) != len(product_ids):
            raise ValidationError("one or more catalog products were not found")

    @staticmethod
    def _commit(session: Session, op: str, *, conflict_message: str | None = None) -> None:
        with store_errors(session, op, conflict_message=conflict_message):
            session.commit()


quote_service = QuoteService()
