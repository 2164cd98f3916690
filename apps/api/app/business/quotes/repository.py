from __future__ import annotations

from sqlalchemy.orm import Session

from app.business.quotes.models import Quote, QuoteCounter
from app.platform.query import SortConfig
from app.platform.repository import TenantRepository, store_errors


QUOTE_SORT = SortConfig(
    fields={
        "quoteNumber": Quote.quote_number,
        "status": Quote.status,
        "total": Quote.total_cents,
        "validUntil": Quote.valid_until,
        "customerName": Quote.customer_name,
        "createdAt": Quote.created_at,
        "updatedAt": Quote.updated_at,
    },
    default_field="createdAt",
    tie_breaker=Quote.id,
    default_order="desc",
)


def format_quote_number(year: int, number: int) -> str:
    return f"OFF-{year}-{number:04d}"


class QuoteRepository(TenantRepository[Quote]):
    resource = "quotes"
    not_found_message = "quote not found"

    def __init__(self) -> None:
        super().__init__(Quote, QUOTE_SORT)

    def mint_quote_number(self, session: Session, tenant_id: str, year: int) -> str:
        with store_errors(session, "mint quote number"):
            counter = session.get(QuoteCounter, tenant_id, with_for_update=True)
            if counter is None:
                counter = QuoteCounter(tenant_id=tenant_id, last_number=0)
                session.add(counter)
            counter.last_number += 1
            session.flush()
            return format_quote_number(year, counter.last_number)
