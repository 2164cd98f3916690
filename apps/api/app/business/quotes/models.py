from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.business.catalog.models import utcnow
from app.core.database import Base


QUOTE_STATUSES = ("Draft", "Sent", "Accepted", "Rejected", "Expired")


class Quote(Base):
    __tablename__ = "quote"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[str] = mapped_column(String(128), nullable=False)
    quote_number: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(String(16), nullable=False, default="Draft")
    customer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    pricing_mode: Mapped[str] = mapped_column(String(16), nullable=False, default="exclusive")
    discount_type: Mapped[str] = mapped_column(String(16), nullable=False, default="percentage")
    discount_value: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    subtotal_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    discount_amount_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    tax_total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    total_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    valid_until: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    pdf_file_key: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejected_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    items: Mapped[list[QuoteItem]] = relationship(
        "QuoteItem",
        back_populates="quote",
        cascade="all, delete-orphan",
        order_by="QuoteItem.sort_order",
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "quote_number", name="uq_quote_number"),
        CheckConstraint(
            "status IN ('Draft', 'Sent', 'Accepted', 'Rejected', 'Expired')",
            name="ck_quote_status",
        ),
        CheckConstraint("pricing_mode IN ('exclusive', 'inclusive')", name="ck_quote_pricing_mode"),
        CheckConstraint("discount_type IN ('percentage', 'fixed')", name="ck_quote_discount_type"),
        Index("ix_quote_tenant_status", "tenant_id", "status"),
        Index("ix_quote_tenant_created", "tenant_id", "created_at"),
    )


class QuoteItem(Base):
    __tablename__ = "quote_item"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[str] = mapped_column(String(128), nullable=False)
    quote_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("quote.id", ondelete="CASCADE"),
        nullable=False,
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    quantity: Mapped[str] = mapped_column(String(64), nullable=False)
    unit_price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False)
    tax_rate_bps: Mapped[int] = mapped_column(Integer, nullable=False)
    is_optional: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    is_selected: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, server_default="true")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    catalog_product_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("catalog_product.id", ondelete="SET NULL"),
        nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    quote: Mapped[Quote] = relationship("Quote", back_populates="items")

    __table_args__ = (Index("ix_quote_item_quote", "tenant_id", "quote_id", "sort_order"),)


class QuoteCounter(Base):
    __tablename__ = "quote_counter"

    tenant_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    last_number: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
