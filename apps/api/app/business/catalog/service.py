from __future__ import annotations

import logging
import posixpath
import uuid
from dataclasses import dataclass, field, fields, replace
from urllib.parse import urlparse

from sqlalchemy import delete, or_
from sqlalchemy.orm import Session

from app.business.catalog.models import (
    MATERIAL_PRICING_MODES,
    PERIOD_UNITS,
    CatalogProduct,
    CatalogProductAsset,
    CatalogProductMaterial,
    CatalogVatRate,
)
from app.business.catalog.repository import (
    ProductAssetRepository,
    ProductMaterialRepository,
    ProductRepository,
    VatRateRepository,
)
from app.business.catalog.schemas import (
    AssetCreate,
    AssetDownload,
    AssetPresignRequest,
    AssetRead,
    AutocompleteDocument,
    AutocompleteItem,
    AutocompleteUrl,
    MaterialLink,
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
from app.core.config import get_settings
from app.core.context import TenantContext
from app.events import publish_domain_event
from app.platform.errors import ConflictError, NotFoundError, ValidationError
from app.platform.query import (
    Page,
    PageRequest,
    in_ids,
    optional_equals,
    optional_range,
    optional_search,
    parse_date_filter,
)
from app.platform.repository import store_errors
from app.platform.storage import (
    PresignedGrant,
    StorageService,
    is_document_content_type,
    is_image_content_type,
)
from app.platform.storage.validation import normalize_content_type


logger = logging.getLogger("app.catalog")

DEFAULT_VAT_RATES: tuple[tuple[str, int], ...] = (
    ("BTW 21%", 2100),
    ("BTW 9%", 900),
    ("BTW 0%", 0),
)
DEFAULT_URL_ASSET_LABEL = "Voorwaarden"
AUTOCOMPLETE_LIMIT = 5


def _trim(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def validate_period(count: int | None, unit: str | None) -> None:
    if count is None and unit is None:
        return
    if count is None or unit is None:
        raise ValidationError("periodCount and periodUnit must be provided together")
    if count <= 0:
        raise ValidationError("periodCount must be greater than 0")
    if unit not in PERIOD_UNITS:
        raise ValidationError("invalid periodUnit")


def validate_pricing(price_cents: int, unit_price_cents: int, unit_label: str | None) -> None:
    if price_cents < 0 or unit_price_cents < 0:
        raise ValidationError("priceCents and unitPriceCents must be 0 or greater")
    if price_cents > 0 and unit_price_cents > 0:
        raise ValidationError("choose either priceCents or unitPriceCents")
    if unit_price_cents > 0 and not unit_label:
        raise ValidationError("unitLabel is required when unitPriceCents is set")


def validate_asset_type(asset_type: str, content_type: str) -> None:
    normalized = normalize_content_type(content_type)
    if asset_type == "image":
        if not is_image_content_type(normalized):
            raise ValidationError("assetType image requires image content type")
    elif asset_type == "document":
        if not is_document_content_type(normalized):
            raise ValidationError("assetType document requires document content type")
    else:
        raise ValidationError("invalid assetType")


@dataclass(frozen=True)
class VatRateState:
    name: str
    rate_bps: int


def merge_vat_rate_patch(current: VatRateState, patch: VatRatePatch) -> VatRateState:
    changes = {key: value for key, value in patch.model_dump(exclude_unset=True).items() if value is not None}
    if "name" in changes:
        changes["name"] = changes["name"].strip()
        if not changes["name"]:
            raise ValidationError("name is required")
    return replace(current, **changes)


@dataclass(frozen=True)
class ProductState:
    vat_rate_id: uuid.UUID
    is_draft: bool
    title: str
    reference: str
    description: str | None
    price_cents: int
    unit_price_cents: int
    unit_label: str | None
    labor_time_text: str | None
    type: str
    period_count: int | None
    period_unit: str | None

    @classmethod
    def of(cls, product: CatalogProduct) -> ProductState:
        return cls(**{item.name: getattr(product, item.name) for item in fields(cls)})


_REQUIRED_PRODUCT_FIELDS = frozenset(
    {"vat_rate_id", "is_draft", "title", "reference", "price_cents", "unit_price_cents", "type"}
)
_TRIMMED_PRODUCT_FIELDS = ("title", "reference", "description", "unit_label", "labor_time_text")


def merge_product_patch(current: ProductState, patch: ProductPatch) -> ProductState:
    """Apply the fields present in ``patch`` to ``current``.

    An explicit null clears an optional field and is ignored for required ones.
    """

    changes = patch.model_dump(exclude_unset=True)
    for key in list(changes):
        if changes[key] is None and key in _REQUIRED_PRODUCT_FIELDS:
            del changes[key]
    for key in _TRIMMED_PRODUCT_FIELDS:
        if key in changes:
            changes[key] = _trim(changes[key])
            if changes[key] is None and key in _REQUIRED_PRODUCT_FIELDS:
                raise ValidationError(f"{key} must not be blank")
    return replace(current, **changes)


def _normalize_material_links(product_id: uuid.UUID, links: list[MaterialLink]) -> list[tuple[uuid.UUID, str]]:
    if not links:
        raise ValidationError("at least one material is required")

    seen: set[uuid.UUID] = set()
    normalized: list[tuple[uuid.UUID, str]] = []
    for link in links:
        if link.material_id == product_id:
            raise ValidationError("product cannot reference itself as a material")
        if link.pricing_mode not in MATERIAL_PRICING_MODES:
            raise ValidationError("invalid pricingMode")
        if link.material_id in seen:
            continue
        seen.add(link.material_id)
        normalized.append((link.material_id, link.pricing_mode))
    return normalized


@dataclass(slots=True)
class CatalogService:
    vat_rates: VatRateRepository = field(default_factory=VatRateRepository)
    products: ProductRepository = field(default_factory=ProductRepository)
    materials: ProductMaterialRepository = field(default_factory=ProductMaterialRepository)
    assets: ProductAssetRepository = field(default_factory=ProductAssetRepository)

    @property
    def asset_bucket(self) -> str:
        return get_settings().minio_bucket_catalog

    # VAT rates

    def list_vat_rates(
        self,
        session: Session,
        ctx: TenantContext,
        *,
        search: str | None = None,
        page: int | None = None,
        page_size: int | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> Page[VatRateRead]:
        request = PageRequest.normalize(page, page_size)
        items, total = self.vat_rates.list(
            session,
            ctx.tenant_id,
            filters=[optional_search(search, CatalogVatRate.name)],
            sort_by=sort_by,
            sort_order=sort_order,
            page=request,
        )
        return Page[VatRateRead].build([VatRateRead.model_validate(item) for item in items], total, request)

    def get_vat_rate(self, session: Session, ctx: TenantContext, vat_rate_id: uuid.UUID) -> VatRateRead:
        return VatRateRead.model_validate(self.vat_rates.get(session, ctx.tenant_id, vat_rate_id))

    def create_vat_rate(self, session: Session, ctx: TenantContext, dto: VatRateCreate) -> VatRateRead:
        name = dto.name.strip()
        if not name:
            raise ValidationError("name is required")

        rate = CatalogVatRate(tenant_id=ctx.tenant_id, name=name, rate_bps=dto.rate_bps)
        self.vat_rates.add(session, rate, conflict_message="vat rate name already exists")
        self._commit(session, "create vat rate", conflict_message="vat rate name already exists")
        session.refresh(rate)

        logger.info("catalog.vat_rate.created", extra={"tenant_id": ctx.tenant_id, "resource_id": str(rate.id)})
        return VatRateRead.model_validate(rate)

    def update_vat_rate(
        self,
        session: Session,
        ctx: TenantContext,
        vat_rate_id: uuid.UUID,
        patch: VatRatePatch,
    ) -> VatRateRead:
        rate = self.vat_rates.get(session, ctx.tenant_id, vat_rate_id)
        merged = merge_vat_rate_patch(VatRateState(name=rate.name, rate_bps=rate.rate_bps), patch)
        rate.name = merged.name
        rate.rate_bps = merged.rate_bps
        self._commit(session, "update vat rate", conflict_message="vat rate name already exists")
        session.refresh(rate)

        logger.info("catalog.vat_rate.updated", extra={"tenant_id": ctx.tenant_id, "resource_id": str(rate.id)})
        return VatRateRead.model_validate(rate)

    def delete_vat_rate(self, session: Session, ctx: TenantContext, vat_rate_id: uuid.UUID) -> None:
        rate = self.vat_rates.get(session, ctx.tenant_id, vat_rate_id)
        if self.vat_rates.is_in_use(session, ctx.tenant_id, vat_rate_id):
            raise ConflictError("vat rate is in use")
        self.vat_rates.delete(session, rate, conflict_message="vat rate is in use")
        self._commit(session, "delete vat rate", conflict_message="vat rate is in use")

        logger.info("catalog.vat_rate.deleted", extra={"tenant_id": ctx.tenant_id, "resource_id": str(vat_rate_id)})

    def seed_default_vat_rates(self, session: Session, ctx: TenantContext) -> list[VatRateRead]:
        """Create the standard Dutch VAT rates for a tenant that has none yet."""

        if self.vat_rates.count(session, ctx.tenant_id) > 0:
            return []

        created = [CatalogVatRate(tenant_id=ctx.tenant_id, name=name, rate_bps=bps) for name, bps in DEFAULT_VAT_RATES]
        with store_errors(session, "seed vat rates", conflict_message="vat rates already seeded"):
            session.add_all(created)
            session.commit()
        for rate in created:
            session.refresh(rate)

        logger.info("catalog.vat_rate.seeded", extra={"tenant_id": ctx.tenant_id, "count": len(created)})
        return [VatRateRead.model_validate(rate) for rate in created]

    # Products

    def list_products(
        self,
        session: Session,
        ctx: TenantContext,
        *,
        search: str | None = None,
        title: str | None = None,
        reference: str | None = None,
        product_type: str | None = None,
        is_draft: bool | None = None,
        vat_rate_id: uuid.UUID | None = None,
        created_at_from: str | None = None,
        created_at_to: str | None = None,
        updated_at_from: str | None = None,
        updated_at_to: str | None = None,
        page: int | None = None,
        page_size: int | None = None,
        sort_by: str | None = None,
        sort_order: str | None = None,
    ) -> Page[ProductRead]:
        request = PageRequest.normalize(page, page_size)
        filters = [
            optional_search(search, CatalogProduct.title, CatalogProduct.reference),
            optional_search(title, CatalogProduct.title),
            optional_search(reference, CatalogProduct.reference),
            optional_equals(CatalogProduct.type, _trim(product_type)),
            optional_equals(CatalogProduct.is_draft, is_draft),
            optional_equals(CatalogProduct.vat_rate_id, vat_rate_id),
            optional_range(
                CatalogProduct.created_at,
                parse_date_filter(created_at_from),
                parse_date_filter(created_at_to, end_of_day=True),
                upper_inclusive=True,
            ),
            optional_range(
                CatalogProduct.updated_at,
                parse_date_filter(updated_at_from),
                parse_date_filter(updated_at_to, end_of_day=True),
                upper_inclusive=True,
            ),
        ]
        items, total = self.products.list(
            session,
            ctx.tenant_id,
            filters=filters,
            sort_by=sort_by,
            sort_order=sort_order,
            page=request,
        )
        return Page[ProductRead].build([ProductRead.model_validate(item) for item in items], total, request)

    def get_product(self, session: Session, ctx: TenantContext, product_id: uuid.UUID) -> ProductRead:
        return ProductRead.model_validate(self.products.get(session, ctx.tenant_id, product_id))

    def next_product_reference(self, session: Session, ctx: TenantContext) -> NextProductReference:
        return NextProductReference(reference=self.products.peek_reference(session, ctx.tenant_id))

    def create_product(self, session: Session, ctx: TenantContext, dto: ProductCreate) -> ProductRead:
        unit_label = _trim(dto.unit_label)
        validate_period(dto.period_count, dto.period_unit)
        validate_pricing(dto.price_cents, dto.unit_price_cents, unit_label)
        title = dto.title.strip()
        if not title:
            raise ValidationError("title is required")
        self.vat_rates.get(session, ctx.tenant_id, dto.vat_rate_id)

        reference = _trim(dto.reference) or self.products.mint_reference(session, ctx.tenant_id)
        product = CatalogProduct(
            tenant_id=ctx.tenant_id,
            vat_rate_id=dto.vat_rate_id,
            is_draft=dto.is_draft,
            title=title,
            reference=reference,
            description=_trim(dto.description),
            price_cents=dto.price_cents,
            unit_price_cents=dto.unit_price_cents,
            unit_label=unit_label,
            labor_time_text=_trim(dto.labor_time_text),
            type=dto.type,
            period_count=dto.period_count,
            period_unit=dto.period_unit,
        )
        self.products.add(session, product, conflict_message="product reference already exists")
        self._commit(session, "create product", conflict_message="product reference already exists")
        session.refresh(product)

        logger.info("catalog.product.created", extra={"tenant_id": ctx.tenant_id, "resource_id": str(product.id)})
        publish_domain_event(
            "catalog.product.created",
            ctx.tenant_id,
            {"product_id": str(product.id), "reference": product.reference, "type": product.type},
        )
        return ProductRead.model_validate(product)

    def update_product(
        self,
        session: Session,
        ctx: TenantContext,
        product_id: uuid.UUID,
        patch: ProductPatch,
    ) -> ProductRead:
        product = self.products.get(session, ctx.tenant_id, product_id)
        current = ProductState.of(product)
        merged = merge_product_patch(current, patch)

        validate_period(merged.period_count, merged.period_unit)
        validate_pricing(merged.price_cents, merged.unit_price_cents, merged.unit_label)
        if merged.vat_rate_id != current.vat_rate_id:
            self.vat_rates.get(session, ctx.tenant_id, merged.vat_rate_id)
        if merged.type != current.type and merged.type != "service":
            if self.materials.has_materials(session, ctx.tenant_id, product_id):
                raise ConflictError("product has materials and cannot change type")

        for item in fields(ProductState):
            setattr(product, item.name, getattr(merged, item.name))
        self._commit(session, "update product", conflict_message="product reference already exists")
        session.refresh(product)

        logger.info("catalog.product.updated", extra={"tenant_id": ctx.tenant_id, "resource_id": str(product.id)})
        publish_domain_event(
            "catalog.product.updated",
            ctx.tenant_id,
            {"product_id": str(product.id), "reference": product.reference, "type": product.type},
        )
        return ProductRead.model_validate(product)

    def delete_product(self, session: Session, ctx: TenantContext, product_id: uuid.UUID) -> None:
        product = self.products.get(session, ctx.tenant_id, product_id)
        with store_errors(session, "delete product links"):
            session.execute(
                delete(CatalogProductMaterial).where(
                    CatalogProductMaterial.tenant_id == ctx.tenant_id,
                    or_(
                        CatalogProductMaterial.product_id == product_id,
                        CatalogProductMaterial.material_id == product_id,
                    ),
                )
            )
        self.products.delete(session, product)
        self._commit(session, "delete product")

        logger.info("catalog.product.deleted", extra={"tenant_id": ctx.tenant_id, "resource_id": str(product_id)})
        publish_domain_event("catalog.product.deleted", ctx.tenant_id, {"product_id": str(product_id)})

    def search_for_autocomplete(
        self,
        session: Session,
        ctx: TenantContext,
        *,
        query: str | None,
        limit: int | None = None,
    ) -> list[AutocompleteItem]:
        request = PageRequest.normalize(1, limit if limit and limit > 0 else AUTOCOMPLETE_LIMIT)
        products, _ = self.products.list(
            session,
            ctx.tenant_id,
            filters=[optional_search(query, CatalogProduct.title, CatalogProduct.reference)],
            sort_by="title",
            sort_order="asc",
            page=request,
        )
        if not products:
            return []

        product_ids = [product.id for product in products]
        with store_errors(session, "load autocomplete assets"):
            assets = session.scalars(
                self.assets.query.scoped(ctx.tenant_id)
                .where(
                    in_ids(CatalogProductAsset.product_id, product_ids),
                    CatalogProductAsset.asset_type.in_(("document", "terms_url")),
                )
                .order_by(CatalogProductAsset.created_at.desc(), CatalogProductAsset.id.asc())
            ).all()
        rates = {
            rate.id: rate.rate_bps
            for rate in self.vat_rates.get_many(session, ctx.tenant_id, list({p.vat_rate_id for p in products}))
        }

        items: list[AutocompleteItem] = []
        for product in products:
            own = [asset for asset in assets if asset.product_id == product.id]
            documents = [
                AutocompleteDocument(id=asset.id, file_name=asset.file_name, file_key=asset.file_key)
                for asset in own
                if asset.asset_type == "document" and asset.file_key and asset.file_name
            ]
            urls = [
                AutocompleteUrl(label=asset.file_name or DEFAULT_URL_ASSET_LABEL, href=asset.url)
                for asset in own
                if asset.asset_type == "terms_url" and asset.url
            ]
            items.append(
                AutocompleteItem(
                    id=product.id,
                    title=product.title,
                    description=product.description,
                    price_cents=product.price_cents,
                    unit_price_cents=product.unit_price_cents,
                    unit_label=product.unit_label,
                    vat_rate_id=product.vat_rate_id,
                    vat_rate_bps=rates.get(product.vat_rate_id, 0),
                    documents=documents,
                    urls=urls,
                )
            )
        return items

    # Materials

    def list_product_materials(
        self,
        session: Session,
        ctx: TenantContext,
        product_id: uuid.UUID,
    ) -> list[ProductMaterialRead]:
        self.products.get(session, ctx.tenant_id, product_id)
        rows = self.materials.list_for_product(session, ctx.tenant_id, product_id)
        return [
            ProductMaterialRead.model_validate(
                {**ProductRead.model_validate(material).model_dump(), "pricing_mode": pricing_mode}
            )
            for material, pricing_mode in rows
        ]

    def add_product_materials(
        self,
        session: Session,
        ctx: TenantContext,
        product_id: uuid.UUID,
        dto: ProductMaterialsAdd,
    ) -> list[ProductMaterialRead]:
        product = self.products.get(session, ctx.tenant_id, product_id)
        if product.type != "service":
            raise ValidationError("materials can only be linked to service products")

        links = _normalize_material_links(product_id, dto.materials)
        material_ids = [material_id for material_id, _ in links]
        materials = self.products.get_many(session, ctx.tenant_id, material_ids)
        if len(materials) != len(material_ids):
            raise ValidationError("one or more materials were not found")
        if any(material.type != "material" for material in materials):
            raise ValidationError("only material products can be linked")
        # Only service products accept links, so a material owning links means a
        # row whose type changed outside this service. Refuse to nest it.
        if self.materials.products_with_materials(session, ctx.tenant_id, material_ids):
            raise ValidationError("cannot add a material that is composed of other materials")

        self.materials.add_links(session, ctx.tenant_id, product_id, links)
        self._commit(session, "add product materials")

        logger.info(
            "catalog.product.materials_added",
            extra={"tenant_id": ctx.tenant_id, "resource_id": str(product_id), "count": len(links)},
        )
        return self.list_product_materials(session, ctx, product_id)

    def remove_product_materials(
        self,
        session: Session,
        ctx: TenantContext,
        product_id: uuid.UUID,
        dto: ProductMaterialsRemove,
    ) -> None:
        self.products.get(session, ctx.tenant_id, product_id)
        self.materials.remove_links(session, ctx.tenant_id, product_id, dto.material_ids)
        self._commit(session, "remove product materials")

        logger.info(
            "catalog.product.materials_removed",
            extra={"tenant_id": ctx.tenant_id, "resource_id": str(product_id), "count": len(dto.material_ids)},
        )

    # Assets

    def presign_asset_upload(
        self,
        session: Session,
        ctx: TenantContext,
        storage: StorageService,
        product_id: uuid.UUID,
        dto: AssetPresignRequest,
    ) -> PresignedGrant:
        self.products.get(session, ctx.tenant_id, product_id)
        storage.validate_content_type(dto.content_type)
        storage.validate_file_size(dto.size_bytes)
        validate_asset_type(dto.asset_type, dto.content_type)

        folder = self._asset_folder(ctx, product_id, dto.asset_type)
        return storage.generate_upload_url(
            self.asset_bucket,
            folder,
            dto.file_name,
            dto.content_type,
            dto.size_bytes,
        )

    def create_asset(
        self,
        session: Session,
        ctx: TenantContext,
        storage: StorageService,
        product_id: uuid.UUID,
        dto: AssetCreate,
    ) -> AssetRead:
        self.products.get(session, ctx.tenant_id, product_id)
        storage.validate_content_type(dto.content_type)
        storage.validate_file_size(dto.size_bytes)
        validate_asset_type(dto.asset_type, dto.content_type)

        file_key = dto.file_key.strip()
        # Traversal segments would let a key escape the product folder.
        folder = self._asset_folder(ctx, product_id, dto.asset_type)
        if posixpath.normpath(file_key) != file_key or not file_key.startswith(f"{folder}/"):
            raise ValidationError("file key does not belong to this product")

        asset = CatalogProductAsset(
            tenant_id=ctx.tenant_id,
            product_id=product_id,
            asset_type=dto.asset_type,
            file_key=file_key,
            file_name=dto.file_name.strip(),
            content_type=dto.content_type.strip(),
            size_bytes=dto.size_bytes,
        )
        self.assets.add(session, asset)
        self._commit(session, "create product asset")
        session.refresh(asset)

        logger.info("catalog.asset.created", extra={"tenant_id": ctx.tenant_id, "resource_id": str(asset.id)})
        return AssetRead.model_validate(asset)

    def create_url_asset(
        self,
        session: Session,
        ctx: TenantContext,
        product_id: uuid.UUID,
        dto: UrlAssetCreate,
    ) -> AssetRead:
        self.products.get(session, ctx.tenant_id, product_id)
        if dto.asset_type != "terms_url":
            raise ValidationError("invalid assetType")

        url = dto.url.strip()
        parsed = urlparse(url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValidationError("url must be an absolute http or https URL")

        asset = CatalogProductAsset(
            tenant_id=ctx.tenant_id,
            product_id=product_id,
            asset_type="terms_url",
            file_name=_trim(dto.label),
            url=url,
        )
        self.assets.add(session, asset)
        self._commit(session, "create product url asset")
        session.refresh(asset)

        logger.info("catalog.asset.created", extra={"tenant_id": ctx.tenant_id, "resource_id": str(asset.id)})
        return AssetRead.model_validate(asset)

    def list_assets(
        self,
        session: Session,
        ctx: TenantContext,
        product_id: uuid.UUID,
        *,
        asset_type: str | None = None,
    ) -> list[AssetRead]:
        self.products.get(session, ctx.tenant_id, product_id)
        asset_type = _trim(asset_type)
        if asset_type is not None and asset_type not in {"image", "document", "terms_url"}:
            raise ValidationError("invalid assetType")
        rows = self.assets.list_for_product(session, ctx.tenant_id, product_id, asset_type)
        return [AssetRead.model_validate(row) for row in rows]

    def get_asset_download_url(
        self,
        session: Session,
        ctx: TenantContext,
        storage: StorageService,
        product_id: uuid.UUID,
        asset_id: uuid.UUID,
    ) -> AssetDownload:
        asset = self._get_product_asset(session, ctx, product_id, asset_id)
        if asset.url is not None:
            return AssetDownload(download_url=asset.url)
        if asset.file_key is None:
            raise ValidationError("missing file key")

        grant = storage.generate_download_url(self.asset_bucket, asset.file_key)
        return AssetDownload(download_url=grant.url, expires_at=grant.expires_at)

    def delete_asset(
        self,
        session: Session,
        ctx: TenantContext,
        storage: StorageService,
        product_id: uuid.UUID,
        asset_id: uuid.UUID,
    ) -> None:
        asset = self._get_product_asset(session, ctx, product_id, asset_id)
        if asset.file_key is not None:
            storage.delete_object(self.asset_bucket, asset.file_key)
        self.assets.delete(session, asset)
        self._commit(session, "delete product asset")

        logger.info("catalog.asset.deleted", extra={"tenant_id": ctx.tenant_id, "resource_id": str(asset_id)})

    def _get_product_asset(
        self,
        session: Session,
        ctx: TenantContext,
        product_id: uuid.UUID,
        asset_id: uuid.UUID,
    ) -> CatalogProductAsset:
        asset = self.assets.get(session, ctx.tenant_id, asset_id)
        if asset.product_id != product_id:
            raise NotFoundError("product asset not found")
        return asset

    @staticmethod
    def _asset_folder(ctx: TenantContext, product_id: uuid.UUID, asset_type: str) -> str:
        return f"{ctx.tenant_id}/{product_id}/{asset_type}"

    @staticmethod
    def _commit(session: Session, op: str, *, conflict_message: str | None = None) -> None:
        with store_errors(session, op, conflict_message=conflict_message):
            session.commit()


catalog_service = CatalogService()
