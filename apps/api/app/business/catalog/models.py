from __future__ import annotations

import uuid
from datetime import datetime, timezone

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

from app.core.database import Base


PRODUCT_TYPES = ("digital_service", "service", "product", "material")
PERIOD_UNITS = ("day", "week", "month", "quarter", "year")
MATERIAL_PRICING_MODES = ("included", "additional", "optional")
ASSET_TYPES = ("image", "document", "terms_url")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CatalogVatRate(Base):
    __tablename__ = "catalog_vat_rate"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    rate_bps: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        UniqueConstraint("tenant_id", "name", name="uq_catalog_vat_rate_name"),
        CheckConstraint("rate_bps >= 0 AND rate_bps <= 10000", name="ck_catalog_vat_rate_bps"),
        Index("ix_catalog_vat_rate_tenant", "tenant_id"),
    )


class CatalogProduct(Base):
    __tablename__ = "catalog_product"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[str] = mapped_column(String(128), nullable=False)
    vat_rate_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("catalog_vat_rate.id"),
        nullable=False,
    )
    is_draft: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    reference: Mapped[str] = mapped_column(String(128), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    unit_price_cents: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    unit_label: Mapped[str | None] = mapped_column(String(64), nullable=True)
    labor_time_text: Mapped[str | None] = mapped_column(String(255), nullable=True)
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    period_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    period_unit: Mapped[str | None] = mapped_column(String(16), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    vat_rate: Mapped[CatalogVatRate] = relationship("CatalogVatRate")
    assets: Mapped[list[CatalogProductAsset]] = relationship(
        "CatalogProductAsset",
        back_populates="product",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "reference", name="uq_catalog_product_reference"),
        CheckConstraint(
            "type IN ('digital_service', 'service', 'product', 'material')",
            name="ck_catalog_product_type",
        ),
        CheckConstraint(
            "(period_count IS NULL AND period_unit IS NULL) OR "
            "(period_count IS NOT NULL AND period_count > 0 AND "
            "period_unit IN ('day', 'week', 'month', 'quarter', 'year'))",
            name="ck_catalog_product_period",
        ),
        Index("ix_catalog_product_tenant", "tenant_id"),
        Index("ix_catalog_product_tenant_type", "tenant_id", "type"),
        Index("ix_catalog_product_tenant_vat", "tenant_id", "vat_rate_id"),
    )


class CatalogProductCounter(Base):
    __tablename__ = "catalog_product_counter"

    tenant_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    last_value: Mapped[int] = mapped_column(Integer, nullable=False, default=0)


class CatalogProductMaterial(Base):
    __tablename__ = "catalog_product_material"

    tenant_id: Mapped[str] = mapped_column(String(128), primary_key=True)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("catalog_product.id", ondelete="CASCADE"),
        primary_key=True,
    )
    material_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("catalog_product.id", ondelete="CASCADE"),
        primary_key=True,
    )
    pricing_mode: Mapped[str] = mapped_column(String(16), nullable=False, default="additional")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    material: Mapped[CatalogProduct] = relationship("CatalogProduct", foreign_keys=[material_id])

    __table_args__ = (
        CheckConstraint("product_id <> material_id", name="ck_catalog_product_material_no_self"),
        CheckConstraint(
            "pricing_mode IN ('included', 'additional', 'optional')",
            name="ck_catalog_product_material_pricing_mode",
        ),
        Index("ix_catalog_product_material_product", "tenant_id", "product_id"),
        Index("ix_catalog_product_material_material", "tenant_id", "material_id"),
    )


class CatalogProductAsset(Base):
    __tablename__ = "catalog_product_asset"

    id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[str] = mapped_column(String(128), nullable=False)
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("catalog_product.id", ondelete="CASCADE"),
        nullable=False,
    )
    asset_type: Mapped[str] = mapped_column(String(16), nullable=False)
    file_key: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    content_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    size_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    url: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    product: Mapped[CatalogProduct] = relationship("CatalogProduct", back_populates="assets")

    __table_args__ = (
        CheckConstraint(
            "asset_type IN ('image', 'document', 'terms_url')",
            name="ck_catalog_product_asset_type",
        ),
        CheckConstraint(
            "(file_key IS NOT NULL AND url IS NULL) OR (file_key IS NULL AND url IS NOT NULL)",
            name="ck_catalog_product_asset_source",
        ),
        Index("ix_catalog_product_asset_product", "tenant_id", "product_id"),
    )
