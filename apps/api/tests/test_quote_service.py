from __future__ import annotations

import uuid
from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import Session

from app import events
from app.business.catalog.schemas import ProductCreate, VatRateCreate
from app.business.catalog.service import CatalogService
from app.business.quotes.schemas import QuoteCreate, QuoteItemInput, QuoteStatusUpdate, QuoteUpdate
from app.business.quotes.service import QuoteService
from app.core.context import TenantContext
from app.platform.errors import ConflictError, FileSizeRejected, InvalidSortField, NotFoundError, ValidationError

from conftest import FakeStorageService


PDF = b"%PDF-1.7\n1 0 obj\n<<>>\nendobj\n%%EOF"


@pytest.fixture()
def service() -> QuoteService:
    return QuoteService()


def _line(unit_price_cents: int, tax_rate_bps: int = 2100, quantity: str = "1", **extra) -> QuoteItemInput:
    return QuoteItemInput(
        description="Boiler service",
        quantity=quantity,
        unit_price_cents=unit_price_cents,
        tax_rate_bps=tax_rate_bps,
        **extra,
    )


def _create(service: QuoteService, session: Session, ctx: TenantContext, *items: QuoteItemInput, **extra):
    return service.create_quote(session, ctx, QuoteCreate(items=list(items or (_line(10000),)), **extra))


def _numbers_year() -> int:
    return datetime.now(timezone.utc).year


def test_create_quote_numbers_and_totals(
    service: QuoteService,
    db_session: Session,
    tenant_a: TenantContext,
    tenant_b: TenantContext,
) -> None:
    year = _numbers_year()
    first = _create(
        service,
        db_session,
        tenant_a,
        _line(10000),
        _line(5000, is_optional=True, is_selected=False),
        _line(2000, 900, is_selected=False),
        customer_name="  Jansen B.V.  ",
        discount_type="fixed",
        discount_value=1000,
    )
    second = _create(service, db_session, tenant_a)
    other = _create(service, db_session, tenant_b)

    assert first.quote_number == f"OFF-{year}-0001"
    assert second.quote_number == f"OFF-{year}-0002"
    assert other.quote_number == f"OFF-{year}-0001"
    assert first.status == "Draft"
    assert first.customer_name == "Jansen B.V."
    assert [item.sort_order for item in first.items] == [0, 1, 2]
    assert [item.is_selected for item in first.items] == [True, False, True]
    assert first.subtotal_cents == 12000
    assert first.discount_amount_cents == 1000
    assert first.total_cents == first.subtotal_cents - 1000 + first.tax_total_cents

    created = [item for item in events.published_events if item["event_type"] == "quote.created"]
    assert [item["payload"]["quote_number"] for item in created] == [f"OFF-{year}-0001", f"OFF-{year}-0002", f"OFF-{year}-0001"]


def test_list_quotes_filters_and_sorting(
    service: QuoteService,
    db_session: Session,
    tenant_a: TenantContext,
    tenant_b: TenantContext,
) -> None:
    small = _create(service, db_session, tenant_a, _line(1000), customer_name="Bakker")
    large = _create(service, db_session, tenant_a, _line(50000), customer_name="Jansen", notes="roof repair")
    sent = _create(service, db_session, tenant_a, _line(20000), customer_name="de Vries")
    service.update_quote_status(db_session, tenant_a, sent.id, QuoteStatusUpdate(status="Sent"))
    _create(service, db_session, tenant_b, _line(50000), customer_name="Jansen")

    by_total = service.list_quotes(db_session, tenant_a, sort_by="total", sort_order="asc")
    drafts = service.list_quotes(db_session, tenant_a, status="Draft")
    search = service.list_quotes(db_session, tenant_a, search="ROOF")
    ranged = service.list_quotes(db_session, tenant_a, total_from=large.total_cents, total_to=large.total_cents)

    assert by_total.total == 3
    assert [item.id for item in by_total.items] == [small.id, sent.id, large.id]
    assert {item.id for item in drafts.items} == {small.id, large.id}
    assert [item.id for item in search.items] == [large.id]
    assert [item.id for item in ranged.items] == [large.id]

    with pytest.raises(InvalidSortField):
        service.list_quotes(db_session, tenant_a, sort_by="tenant_id")


def test_update_replaces_items_and_recalculates(
    service: QuoteService,
    db_session: Session,
    tenant_a: TenantContext,
) -> None:
    quote = _create(service, db_session, tenant_a, _line(10000))

    discounted = service.update_quote(
        db_session,
        tenant_a,
        quote.id,
        QuoteUpdate(discount_type="percentage", discount_value=10),
    )
    assert discounted.subtotal_cents == 10000
    assert discounted.discount_amount_cents == 1000
    assert discounted.total_cents == 10890

    replaced = service.update_quote(
        db_session,
        tenant_a,
        quote.id,
        QuoteUpdate(items=[_line(1000, quantity="3,5 uur"), _line(2000, 0)], notes="  "),
    )
    assert [item.quantity for item in replaced.items] == ["3,5 uur", "1"]
    assert replaced.subtotal_cents == 5500
    assert replaced.discount_amount_cents == 550
    assert replaced.notes is None


def test_only_draft_quotes_can_be_edited(
    service: QuoteService,
    db_session: Session,
    tenant_a: TenantContext,
) -> None:
    quote = _create(service, db_session, tenant_a)
    service.update_quote_status(db_session, tenant_a, quote.id, QuoteStatusUpdate(status="Sent"))

    with pytest.raises(ConflictError, match="only draft quotes can be edited"):
        service.update_quote(db_session, tenant_a, quote.id, QuoteUpdate(notes="late change"))


def test_status_lifecycle(
    service: QuoteService,
    db_session: Session,
    tenant_a: TenantContext,
) -> None:
    quote = _create(service, db_session, tenant_a)

    with pytest.raises(ConflictError, match="cannot change quote status from Draft to Accepted"):
        service.update_quote_status(db_session, tenant_a, quote.id, QuoteStatusUpdate(status="Accepted"))

    sent = service.update_quote_status(db_session, tenant_a, quote.id, QuoteStatusUpdate(status="Sent"))
    unchanged = service.update_quote_status(db_session, tenant_a, quote.id, QuoteStatusUpdate(status="Sent"))
    accepted = service.update_quote_status(db_session, tenant_a, quote.id, QuoteStatusUpdate(status="Accepted"))

    assert sent.status == unchanged.status == "Sent"
    assert accepted.accepted_at is not None
    changes = [item["payload"] for item in events.published_events if item["event_type"] == "quote.status_changed"]
    assert changes == [
        {"quote_id": str(quote.id), "old_status": "Draft", "new_status": "Sent"},
        {"quote_id": str(quote.id), "old_status": "Sent", "new_status": "Accepted"},
    ]

    with pytest.raises(ConflictError):
        service.update_quote_status(db_session, tenant_a, quote.id, QuoteStatusUpdate(status="Expired"))


def test_rejection_keeps_reason(
    service: QuoteService,
    db_session: Session,
    tenant_a: TenantContext,
) -> None:
    quote = _create(service, db_session, tenant_a)
    service.update_quote_status(db_session, tenant_a, quote.id, QuoteStatusUpdate(status="Sent"))

    rejected = service.update_quote_status(
        db_session,
        tenant_a,
        quote.id,
        QuoteStatusUpdate(status="Rejected", rejection_reason=" too expensive "),
    )

    assert rejected.rejected_at is not None
    assert rejected.rejection_reason == "too expensive"


def test_quotes_are_invisible_to_other_tenants(
    service: QuoteService,
    db_session: Session,
    tenant_a: TenantContext,
    tenant_b: TenantContext,
) -> None:
    quote = _create(service, db_session, tenant_a)

    with pytest.raises(NotFoundError, match="quote not found"):
        service.get_quote(db_session, tenant_b, quote.id)
    with pytest.raises(NotFoundError):
        service.delete_quote(db_session, tenant_b, quote.id)

    service.delete_quote(db_session, tenant_a, quote.id)
    with pytest.raises(NotFoundError):
        service.get_quote(db_session, tenant_a, quote.id)


def test_quote_lines_must_reference_own_catalog_products(
    service: QuoteService,
    db_session: Session,
    tenant_a: TenantContext,
    tenant_b: TenantContext,
) -> None:
    catalog = CatalogService()
    vat_rate = catalog.create_vat_rate(db_session, tenant_b, VatRateCreate(name="BTW 21%", rate_bps=2100))
    foreign = catalog.create_product(
        db_session,
        tenant_b,
        ProductCreate(vat_rate_id=vat_rate.id, title="Boiler service", type="service"),
    )
    own = catalog.create_product(
        db_session,
        tenant_b,
        ProductCreate(vat_rate_id=vat_rate.id, title="Radiator flush", type="service"),
    )

    for product_id in (uuid.uuid4(), foreign.id):
        with pytest.raises(ValidationError, match="one or more catalog products were not found"):
            _create(service, db_session, tenant_a, _line(10000, catalog_product_id=product_id))
    assert service.list_quotes(db_session, tenant_a).total == 0

    quote = _create(service, db_session, tenant_a)
    with pytest.raises(ValidationError, match="one or more catalog products were not found"):
        service.update_quote(
            db_session,
            tenant_a,
            quote.id,
            QuoteUpdate(items=[_line(10000), _line(500, catalog_product_id=foreign.id)]),
        )
    assert [item.catalog_product_id for item in service.get_quote(db_session, tenant_a, quote.id).items] == [None]

    linked = _create(service, db_session, tenant_b, _line(10000, catalog_product_id=own.id))
    assert [item.catalog_product_id for item in linked.items] == [own.id]


def test_pdf_upload_replaces_previous_document(
    service: QuoteService,
    db_session: Session,
    tenant_a: TenantContext,
    storage: FakeStorageService,
) -> None:
    quote = _create(service, db_session, tenant_a)

    with pytest.raises(NotFoundError, match="quote pdf not found"):
        service.get_quote_pdf_download_url(db_session, tenant_a, storage, quote.id)

    first = service.store_quote_pdf(db_session, tenant_a, storage, quote.id, PDF)
    second = service.store_quote_pdf(db_session, tenant_a, storage, quote.id, PDF)

    assert first.pdf_file_key.startswith(f"tenant-a/quotes/{quote.id}/{quote.quote_number}_")
    assert first.pdf_file_key.endswith(".pdf")
    assert second.pdf_file_key != first.pdf_file_key
    assert storage.deleted == [("quote-documents", first.pdf_file_key)]
    assert storage.objects == {("quote-documents", second.pdf_file_key): PDF}

    download = service.get_quote_pdf_download_url(db_session, tenant_a, storage, quote.id)
    assert second.pdf_file_key in download.download_url


def test_pdf_cleanup_failure_keeps_new_document(
    service: QuoteService,
    db_session: Session,
    tenant_a: TenantContext,
    storage: FakeStorageService,
) -> None:
    quote = _create(service, db_session, tenant_a)
    first = service.store_quote_pdf(db_session, tenant_a, storage, quote.id, PDF)
    storage.fail_deletes = True

    second = service.store_quote_pdf(db_session, tenant_a, storage, quote.id, PDF)

    assert service.get_quote(db_session, tenant_a, quote.id).pdf_file_key == second.pdf_file_key
    assert ("quote-documents", first.pdf_file_key) in storage.objects


def test_pdf_upload_validation(
    service: QuoteService,
    db_session: Session,
    tenant_a: TenantContext,
) -> None:
    storage = FakeStorageService(max_file_size=len(PDF))
    quote = _create(service, db_session, tenant_a)

    with pytest.raises(ValidationError, match="content is not a PDF document"):
        service.store_quote_pdf(db_session, tenant_a, storage, quote.id, b"<html></html>")
    with pytest.raises(FileSizeRejected):
        service.store_quote_pdf(db_session, tenant_a, storage, quote.id, PDF + b"\n")
    with pytest.raises(FileSizeRejected):
        service.store_quote_pdf(db_session, tenant_a, storage, quote.id, b"")
    with pytest.raises(NotFoundError):
        service.store_quote_pdf(db_session, tenant_a, storage, uuid.uuid4(), PDF)

    assert storage.objects == {}
