from __future__ import annotations

import uuid
from collections.abc import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.business.catalog.models import (
    CatalogProduct,
    CatalogProductAsset,
    CatalogProductCounter,
    CatalogProductMaterial,
    CatalogVatRate,
)
from app.platform.query import SortConfig, in_ids
from app.platform.repository import TenantRepository, store_errors


PRODUCT_REFERENCE_PREFIX = "PRD-"

VAT_RATE_SORT = SortConfig(
    fields={
        "name": CatalogVatRate.name,
        "rateBps": CatalogVatRate.rate_bps,
        "createdAt": CatalogVatRate.created_at,
        "updatedAt": CatalogVatRate.updated_at,
    },
    default_field="name",
    tie_breaker=CatalogVatRate.id,
    default_order="asc",
)

PRODUCT_SORT = SortConfig(
    fields={
        "title": CatalogProduct.title,
        "reference": CatalogProduct.reference,
        "priceCents": CatalogProduct.price_cents,
        "type": CatalogProduct.type,
        "vatRateId": CatalogProduct.vat_rate_id,
        "createdAt": CatalogProduct.created_at,
        "updatedAt": CatalogProduct.updated_at,
    },
    default_field="createdAt",
    tie_breaker=CatalogProduct.id,
    default_order="desc",
)

ASSET_SORT = SortConfig(
    fields={"createdAt": CatalogProductAsset.created_at},
    default_field="createdAt",
    tie_breaker=CatalogProductAsset.id,
    default_order="desc",
)


def format_product_reference(number: int) -> str:
    return f"{PRODUCT_REFERENCE_PREFIX}{number:05d}"


class VatRateRepository(TenantRepository[CatalogVatRate]):
    resource = "vat rates"
    not_found_message = "vat rate not found"

    def __init__(self) -> None:
        super().__init__(CatalogVatRate, VAT_RATE_SORT)

    def count(self, session: Session, tenant_id: str) -> int:
        stmt = self.query.scoped(tenant_id, select(func.count(CatalogVatRate.id)))
        with store_errors(session, "count vat rates"):
            return int(session.scalar(stmt) or 0)

    def is_in_use(self, session: Session, tenant_id: str, vat_rate_id: uuid.UUID) -> bool:
        stmt = (
            select(CatalogProduct.id)
            .where(CatalogProduct.tenant_id == tenant_id, CatalogProduct.vat_rate_id == vat_rate_id)
            .limit(1)
        )
        with store_errors(session, "check vat rate usage"):
            return session.scalar(stmt) is not None


class ProductRepository(TenantRepository[CatalogProduct]):
    resource = "products"
    not_found_message = "product not found"

    def __init__(self) -> None:
        super().__init__(CatalogProduct, PRODUCT_SORT)

    def peek_reference(self, session: Session, tenant_id: str) -> str:
        with store_errors(session, "read product counter"):
            counter = session.get(CatalogProductCounter, tenant_id)
        last_value = counter.last_value if counter is not None else 0
        return format_product_reference(last_value + 1)

    def mint_reference(self, session: Session, tenant_id: str) -> str:
        """Consume the next free reference number for the tenant."""

        with store_errors(session, "mint product reference"):
            counter = session.get(CatalogProductCounter, tenant_id, with_for_update=True)
            if counter is None:
                counter = CatalogProductCounter(tenant_id=tenant_id, last_value=0)
                session.add(counter)
            while True:
                counter.last_value += 1
                reference = format_product_reference(counter.last_value)
                taken = session.scalar(
                    select(CatalogProduct.id).where(
                        CatalogProduct.tenant_id == tenant_id,
                        CatalogProduct.reference == reference,
                    )
                )
                if taken is None:
                    break
            session.flush()
        return reference


class ProductMaterialRepository:
    def has_materials(self, session: Session, tenant_id: str, product_id: uuid.UUID) -> bool:
        stmt = (
            select(CatalogProductMaterial.material_id)
            .where(
                CatalogProductMaterial.tenant_id == tenant_id,
                CatalogProductMaterial.product_id == product_id,
            )
            .limit(1)
        )
        with store_errors(session, "check product materials"):
            return session.scalar(stmt) is not None

    def products_with_materials(
        self,
        session: Session,
        tenant_id: str,
        product_ids: Sequence[uuid.UUID],
    ) -> set[uuid.UUID]:
        stmt = (
            select(CatalogProductMaterial.product_id)
            .where(
                CatalogProductMaterial.tenant_id == tenant_id,
                in_ids(CatalogProductMaterial.product_id, product_ids),
            )
            .distinct()
        )
        with store_errors(session, "check product materials"):
            return set(session.scalars(stmt).all())

    def add_links(
        self,
        session: Session,
        tenant_id: str,
        product_id: uuid.UUID,
        links: Sequence[tuple[uuid.UUID, str]],
    ) -> None:
        """Upsert every link inside the caller's transaction.

        The caller commits; a failure on any link rolls back the whole batch.
        """

        with store_errors(session, "add product materials"):
            for material_id, pricing_mode in links:
                existing = session.get(CatalogProductMaterial, (tenant_id, product_id, material_id))
                if existing is not None:
                    existing.pricing_mode = pricing_mode
                    continue
                session.add(
                    CatalogProductMaterial(
                        tenant_id=tenant_id,
                        product_id=product_id,
                        material_id=material_id,
                        pricing_mode=pricing_mode,
                    )
                )
                session.flush()
            session.flush()

    def remove_links(
        self,
        session: Session,
        tenant_id: str,
        product_id: uuid.UUID,
        material_ids: Sequence[uuid.UUID],
    ) -> None:
        stmt = delete(CatalogProductMaterial).where(
            CatalogProductMaterial.tenant_id == tenant_id,
            CatalogProductMaterial.product_id == product_id,
            in_ids(CatalogProductMaterial.material_id, material_ids),
        )
        with store_errors(session, "remove product materials"):
            session.execute(stmt)

    def list_for_product(
        self,
        session: Session,
        tenant_id: str,
        product_id: uuid.UUID,
    ) -> list[tuple[CatalogProduct, str]]:
        stmt = (
            select(CatalogProduct, CatalogProductMaterial.pricing_mode)
            .join(CatalogProductMaterial, CatalogProductMaterial.material_id == CatalogProduct.id)
            .where(
                CatalogProductMaterial.tenant_id == tenant_id,
                CatalogProductMaterial.product_id == product_id,
                CatalogProduct.tenant_id == tenant_id,
            )
            .order_by(CatalogProduct.title.asc(), CatalogProduct.id.asc())
        )
        with store_errors(session, "list product materials"):
            return [(product, pricing_mode) for product, pricing_mode in session.execute(stmt).all()]


class ProductAssetRepository(TenantRepository[CatalogProductAsset]):
    resource = "product assets"
    not_found_message = "product asset not found"

    def __init__(self) -> None:
        super().__init__(CatalogProductAsset, ASSET_SORT)

    def list_for_product(
        self,
        session: Session,
        tenant_id: str,
        product_id: uuid.UUID,
        asset_type: str | None = None,
    ) -> list[CatalogProductAsset]:
        stmt = self.query.scoped(tenant_id).where(CatalogProductAsset.product_id == product_id)
        if asset_type is not None:
            stmt = stmt.where(CatalogProductAsset.asset_type == asset_type)
        stmt = stmt.order_by(*ASSET_SORT.order_by(None, None))
        with store_errors(session, "list product assets"):
            return list(session.scalars(stmt).all())
