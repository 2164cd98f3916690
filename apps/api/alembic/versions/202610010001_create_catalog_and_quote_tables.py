"""create catalog and quote tables

Revision ID: 202610010001
Revises:
Create Date: 2026-10-01 09:00:00
"""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa


revision: str = "202610010001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "catalog_vat_rate",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.String(length=128), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("rate_bps", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "name", name="uq_catalog_vat_rate_name"),
        sa.CheckConstraint("rate_bps >= 0 AND rate_bps <= 10000", name="ck_catalog_vat_rate_bps"),
    )
    op.create_index("ix_catalog_vat_rate_tenant", "catalog_vat_rate", ["tenant_id"])

    op.create_table(
        "catalog_product",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.String(length=128), nullable=False),
        sa.Column("vat_rate_id", sa.Uuid(), nullable=False),
        sa.Column("is_draft", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("reference", sa.String(length=128), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price_cents", sa.BigInteger(), nullable=False),
        sa.Column("unit_price_cents", sa.BigInteger(), nullable=False),
        sa.Column("unit_label", sa.String(length=64), nullable=True),
        sa.Column("labor_time_text", sa.String(length=255), nullable=True),
        sa.Column("type", sa.String(length=32), nullable=False),
        sa.Column("period_count", sa.Integer(), nullable=True),
        sa.Column("period_unit", sa.String(length=16), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["vat_rate_id"], ["catalog_vat_rate.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "reference", name="uq_catalog_product_reference"),
        sa.CheckConstraint(
            "type IN ('digital_service', 'service', 'product', 'material')",
            name="ck_catalog_product_type",
        ),
        sa.CheckConstraint(
            "(period_count IS NULL AND period_unit IS NULL) OR "
            "(period_count IS NOT NULL AND period_count > 0 AND "
            "period_unit IN ('day', 'week', 'month', 'quarter', 'year'))",
            name="ck_catalog_product_period",
        ),
    )
    op.create_index("ix_catalog_product_tenant", "catalog_product", ["tenant_id"])
    op.create_index("ix_catalog_product_tenant_type", "catalog_product", ["tenant_id", "type"])
    op.create_index("ix_catalog_product_tenant_vat", "catalog_product", ["tenant_id", "vat_rate_id"])

    op.create_table(
        "catalog_product_counter",
        sa.Column("tenant_id", sa.String(length=128), nullable=False),
        sa.Column("last_value", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("tenant_id"),
    )

    op.create_table(
        "catalog_product_material",
        sa.Column("tenant_id", sa.String(length=128), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("material_id", sa.Uuid(), nullable=False),
        sa.Column("pricing_mode", sa.String(length=16), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["catalog_product.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["material_id"], ["catalog_product.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("tenant_id", "product_id", "material_id"),
        sa.CheckConstraint("product_id <> material_id", name="ck_catalog_product_material_no_self"),
        sa.CheckConstraint(
            "pricing_mode IN ('included', 'additional', 'optional')",
            name="ck_catalog_product_material_pricing_mode",
        ),
    )
    op.create_index(
        "ix_catalog_product_material_product",
        "catalog_product_material",
        ["tenant_id", "product_id"],
    )
    op.create_index(
        "ix_catalog_product_material_material",
        "catalog_product_material",
        ["tenant_id", "material_id"],
    )

    op.create_table(
        "catalog_product_asset",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.String(length=128), nullable=False),
        sa.Column("product_id", sa.Uuid(), nullable=False),
        sa.Column("asset_type", sa.String(length=16), nullable=False),
        sa.Column("file_key", sa.String(length=1024), nullable=True),
        sa.Column("file_name", sa.String(length=255), nullable=True),
        sa.Column("content_type", sa.String(length=255), nullable=True),
        sa.Column("size_bytes", sa.BigInteger(), nullable=True),
        sa.Column("url", sa.String(length=2048), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["catalog_product.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "asset_type IN ('image', 'document', 'terms_url')",
            name="ck_catalog_product_asset_type",
        ),
        sa.CheckConstraint(
            "(file_key IS NOT NULL AND url IS NULL) OR (file_key IS NULL AND url IS NOT NULL)",
            name="ck_catalog_product_asset_source",
        ),
    )
    op.create_index("ix_catalog_product_asset_product", "catalog_product_asset", ["tenant_id", "product_id"])

    op.create_table(
        "quote",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.String(length=128), nullable=False),
        sa.Column("quote_number", sa.String(length=32), nullable=False),
        sa.Column("status", sa.String(length=16), nullable=False),
        sa.Column("customer_name", sa.String(length=255), nullable=True),
        sa.Column("pricing_mode", sa.String(length=16), nullable=False),
        sa.Column("discount_type", sa.String(length=16), nullable=False),
        sa.Column("discount_value", sa.BigInteger(), nullable=False),
        sa.Column("subtotal_cents", sa.BigInteger(), nullable=False),
        sa.Column("discount_amount_cents", sa.BigInteger(), nullable=False),
        sa.Column("tax_total_cents", sa.BigInteger(), nullable=False),
        sa.Column("total_cents", sa.BigInteger(), nullable=False),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("pdf_file_key", sa.String(length=1024), nullable=True),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejected_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("tenant_id", "quote_number", name="uq_quote_number"),
        sa.CheckConstraint(
            "status IN ('Draft', 'Sent', 'Accepted', 'Rejected', 'Expired')",
            name="ck_quote_status",
        ),
        sa.CheckConstraint("pricing_mode IN ('exclusive', 'inclusive')", name="ck_quote_pricing_mode"),
        sa.CheckConstraint("discount_type IN ('percentage', 'fixed')", name="ck_quote_discount_type"),
    )
    op.create_index("ix_quote_tenant_status", "quote", ["tenant_id", "status"])
    op.create_index("ix_quote_tenant_created", "quote", ["tenant_id", "created_at"])

    op.create_table(
        "quote_item",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.String(length=128), nullable=False),
        sa.Column("quote_id", sa.Uuid(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("quantity", sa.String(length=64), nullable=False),
        sa.Column("unit_price_cents", sa.BigInteger(), nullable=False),
        sa.Column("tax_rate_bps", sa.Integer(), nullable=False),
        sa.Column("is_optional", sa.Boolean(), nullable=False, server_default="false"),
        sa.Column("is_selected", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("catalog_product_id", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["quote_id"], ["quote.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["catalog_product_id"], ["catalog_product.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_quote_item_quote", "quote_item", ["tenant_id", "quote_id", "sort_order"])

    op.create_table(
        "quote_counter",
        sa.Column("tenant_id", sa.String(length=128), nullable=False),
        sa.Column("last_number", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("tenant_id"),
    )


def downgrade() -> None:
    op.drop_table("quote_counter")
    op.drop_index("ix_quote_item_quote", table_name="quote_item")
    op.drop_table("quote_item")
    op.drop_index("ix_quote_tenant_created", table_name="quote")
    op.drop_index("ix_quote_tenant_status", table_name="quote")
    op.drop_table("quote")
    op.drop_index("ix_catalog_product_asset_product", table_name="catalog_product_asset")
    op.drop_table("catalog_product_asset")
    op.drop_index("ix_catalog_product_material_material", table_name="catalog_product_material")
    op.drop_index("ix_catalog_product_material_product", table_name="catalog_product_material")
    op.drop_table("catalog_product_material")
    op.drop_table("catalog_product_counter")
    op.drop_index("ix_catalog_product_tenant_vat", table_name="catalog_product")
    op.drop_index("ix_catalog_product_tenant_type", table_name="catalog_product")
    op.drop_index("ix_catalog_product_tenant", table_name="catalog_product")
    op.drop_table("catalog_product")
    op.drop_index("ix_catalog_vat_rate_tenant", table_name="catalog_vat_rate")
    op.drop_table("catalog_vat_rate")
