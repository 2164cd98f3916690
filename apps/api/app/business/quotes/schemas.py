from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


QuoteStatus = Literal["Draft", "Sent", "Accepted", "Rejected", "Expired"]
PricingMode = Literal["exclusive", "inclusive"]
DiscountType = Literal["percentage", "fixed"]


class QuoteItemInput(BaseModel):
    description: str = Field(min_length=1)
    quantity: str = Field(min_length=1, max_length=64)
    unit_price_cents: int = Field(ge=0)
    tax_rate_bps: int = Field(ge=0, le=10000)
    is_optional: bool = False
    is_selected: bool = False
    catalog_product_id: UUID | None = None


class QuoteCalculationRequest(BaseModel):
    items: list[QuoteItemInput]
    pricing_mode: PricingMode = "exclusive"
    discount_type: DiscountType = "percentage"
    discount_value: int = Field(default=0, ge=0)


class CalculatedLine(BaseModel):
    description: str
    quantity: str
    unit_price_cents: int
    tax_rate_bps: int
    is_optional: bool
    is_selected: bool
    total_before_tax_cents: int
    total_tax_cents: int
    line_total_cents: int


class VatBreakdownLine(BaseModel):
    rate_bps: int
    amount_cents: int


class QuoteCalculation(BaseModel):
    lines: list[CalculatedLine]
    subtotal_cents: int
    discount_amount_cents: int
    vat_total_cents: int
    vat_breakdown: list[VatBreakdownLine]
    total_cents: int


class QuoteCreate(BaseModel):
    customer_name: str | None = Field(default=None, max_length=255)
    pricing_mode: PricingMode = "exclusive"
    discount_type: DiscountType = "percentage"
    discount_value: int = Field(default=0, ge=0)
    valid_until: datetime | None = None
    notes: str | None = None
    items: list[QuoteItemInput] = Field(min_length=1)


class QuoteUpdate(BaseModel):
    customer_name: str | None = Field(default=None, max_length=255)
    pricing_mode: PricingMode | None = None
    discount_type: DiscountType | None = None
    discount_value: int | None = Field(default=None, ge=0)
    valid_until: datetime | None = None
    notes: str | None = None
    items: list[QuoteItemInput] | None = Field(default=None, min_length=1)


class QuoteStatusUpdate(BaseModel):
    status: QuoteStatus
    rejection_reason: str | None = Field(default=None, max_length=1000)


class QuoteItemRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    description: str
    quantity: str
    unit_price_cents: int
    tax_rate_bps: int
    is_optional: bool
    is_selected: bool
    sort_order: int
    catalog_product_id: UUID | None


class QuoteSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    quote_number: str
    status: str
    customer_name: str | None
    pricing_mode: str
    discount_type: str
    discount_value: int
    subtotal_cents: int
    discount_amount_cents: int
    tax_total_cents: int
    total_cents: int
    valid_until: datetime | None
    created_at: datetime
    updated_at: datetime


class QuoteRead(QuoteSummary):
    notes: str | None
    pdf_file_key: str | None
    accepted_at: datetime | None
    rejected_at: datetime | None
    rejection_reason: str | None
    items: list[QuoteItemRead]


class QuoteDocumentDownload(BaseModel):
    download_url: str
    expires_at: datetime
