from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


ProductType = Literal["digital_service", "service", "product", "material"]
AssetType = Literal["image", "document", "terms_url"]


class VatRateCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    rate_bps: int = Field(ge=0, le=10000)


class VatRatePatch(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    rate_bps: int | None = Field(default=None, ge=0, le=10000)


class VatRateRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    rate_bps: int
    created_at: datetime
    updated_at: datetime


class ProductCreate(BaseModel):
    vat_rate_id: UUID
    is_draft: bool = False
    title: str = Field(min_length=1, max_length=255)
    reference: str | None = Field(default=None, max_length=128)
    description: str | None = None
    price_cents: int = 0
    unit_price_cents: int = 0
    unit_label: str | None = None
    labor_time_text: str | None = None
    type: ProductType
    period_count: int | None = None
    period_unit: str | None = None


class ProductPatch(BaseModel):
    """Partial product update. Only fields present in the request are applied."""

    vat_rate_id: UUID | None = None
    is_draft: bool | None = None
    title: str | None = Field(default=None, min_length=1, max_length=255)
    reference: str | None = Field(default=None, min_length=1, max_length=128)
    description: str | None = None
    price_cents: int | None = None
    unit_price_cents: int | None = None
    unit_label: str | None = None
    labor_time_text: str | None = None
    type: ProductType | None = None
    period_count: int | None = None
    period_unit: str | None = None


class ProductRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    vat_rate_id: UUID
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
    created_at: datetime
    updated_at: datetime


class NextProductReference(BaseModel):
    reference: str


class MaterialLink(BaseModel):
    material_id: UUID
    pricing_mode: str = "additional"


class ProductMaterialsAdd(BaseModel):
    materials: list[MaterialLink]


class ProductMaterialsRemove(BaseModel):
    material_ids: list[UUID] = Field(min_length=1)


class ProductMaterialRead(ProductRead):
    pricing_mode: str


class AssetPresignRequest(BaseModel):
    file_name: str = Field(min_length=1, max_length=255)
    content_type: str = Field(min_length=1)
    size_bytes: int
    asset_type: str


class AssetCreate(BaseModel):
    asset_type: str
    file_key: str = Field(min_length=1)
    file_name: str = Field(min_length=1, max_length=255)
    content_type: str = Field(min_length=1)
    size_bytes: int


class UrlAssetCreate(BaseModel):
    asset_type: str = "terms_url"
    url: str = Field(min_length=1, max_length=2048)
    label: str | None = Field(default=None, max_length=255)


class AssetRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    product_id: UUID
    asset_type: str
    file_key: str | None
    file_name: str | None
    content_type: str | None
    size_bytes: int | None
    url: str | None
    created_at: datetime


class AssetDownload(BaseModel):
    download_url: str
    expires_at: datetime | None = None


class AutocompleteDocument(BaseModel):
    id: UUID
    file_name: str
    file_key: str


class AutocompleteUrl(BaseModel):
    label: str
    href: str


class AutocompleteItem(BaseModel):
    id: UUID
    title: str
    description: str | None
    price_cents: int
    unit_price_cents: int
    unit_label: str | None
    vat_rate_id: UUID
    vat_rate_bps: int
    documents: list[AutocompleteDocument]
    urls: list[AutocompleteUrl]
