"""Quote totals.

VAT is computed per line and summed per rate. A discount is applied to the
subtotal and the VAT is reduced by the same proportion. Optional lines are
priced for display but only count towards the totals when selected.
"""

from __future__ import annotations

import re
from collections import defaultdict
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from app.business.quotes.schemas import (
    CalculatedLine,
    QuoteCalculation,
    QuoteItemInput,
    VatBreakdownLine,
)


_QUANTITY_RE = re.compile(r"^([0-9.,]+)")


def parse_quantity(quantity: str) -> float:
    """Leading number of a free-text quantity: ``"3,5 uur"`` is 3.5, anything unreadable is 1."""

    match = _QUANTITY_RE.match(quantity.strip())
    if match is None:
        return 1.0
    try:
        value = float(match.group(1).replace(",", "."))
    except ValueError:
        return 1.0
    if value <= 0:
        return 1.0
    return value


def round_cents(value: float) -> int:
    # Half away from zero.
    return int(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def net_unit_price(unit_price_cents: int, tax_rate_bps: int, pricing_mode: str) -> float:
    price = float(unit_price_cents)
    if pricing_mode == "inclusive" and tax_rate_bps > 0:
        price /= 1.0 + tax_rate_bps / 10000.0
    return price


def discount_amount(subtotal: float, discount_type: str, discount_value: int) -> float:
    amount = 0.0
    if discount_type == "percentage" and discount_value > 0:
        amount = subtotal * (discount_value / 100.0)
    elif discount_type == "fixed" and discount_value > 0:
        amount = float(discount_value)
    return min(amount, subtotal)


def calculate_quote(
    items: Sequence[QuoteItemInput],
    pricing_mode: str = "exclusive",
    discount_type: str = "percentage",
    discount_value: int = 0,
) -> QuoteCalculation:
    subtotal = 0.0
    vat_by_rate: dict[int, float] = defaultdict(float)
    lines: list[CalculatedLine] = []

    for item in items:
        quantity = parse_quantity(item.quantity)
        line_subtotal = quantity * net_unit_price(item.unit_price_cents, item.tax_rate_bps, pricing_mode)
        line_vat = line_subtotal * (item.tax_rate_bps / 10000.0)

        lines.append(
            CalculatedLine(
                description=item.description,
                quantity=item.quantity,
                unit_price_cents=item.unit_price_cents,
                tax_rate_bps=item.tax_rate_bps,
                is_optional=item.is_optional,
                is_selected=item.is_selected,
                total_before_tax_cents=round_cents(line_subtotal),
                total_tax_cents=round_cents(line_vat),
                line_total_cents=round_cents(line_subtotal + line_vat),
            )
        )

        if not item.is_optional or item.is_selected:
            subtotal += line_subtotal
            vat_by_rate[item.tax_rate_bps] += line_vat

    discount = discount_amount(subtotal, discount_type, discount_value)
    multiplier = 1.0
    if subtotal > 0 and discount > 0:
        multiplier = (subtotal - discount) / subtotal

    breakdown = [
        VatBreakdownLine(rate_bps=rate, amount_cents=round_cents(amount * multiplier))
        for rate, amount in sorted(vat_by_rate.items())
    ]
    vat_total = sum(line.amount_cents for line in breakdown)
    subtotal_cents = round_cents(subtotal)
    discount_cents = round_cents(discount)

    return QuoteCalculation(
        lines=lines,
        subtotal_cents=subtotal_cents,
        discount_amount_cents=discount_cents,
        vat_total_cents=vat_total,
        vat_breakdown=breakdown,
        total_cents=subtotal_cents - discount_cents + vat_total,
    )
