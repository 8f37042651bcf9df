# Overview: Pure line pricing and sale totals; no database access.

"""
Pricing rules (all money in integer cents, tax rates in basis points)

Per line:
- subtotal = quantity * unit_price
- discount = discount_cents if > 0, else subtotal * discount_percent / 100
- taxable  = subtotal - discount
- tax      = taxable * tax_rate_bps / 10000   (half-up to the cent)
- total    = taxable + tax

Per sale:
- subtotal = sum(line.subtotal - line.discount)
- tax      = sum(line.tax)
- total    = subtotal - order discount + tax
  which equals sum(line.total) - order discount.

Cash change is only computed for cash payments with cash tendered; otherwise
cash_received and change_given are None, never 0.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Optional


UNKNOWN_PRODUCT_NAME = "Unknown Product"
BPS_DENOMINATOR = 10_000


def round_half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def percent_of(amount_cents: int, percent: Any) -> int:
    if not amount_cents or not percent:
        return 0
    return round_half_up(Decimal(amount_cents) * Decimal(str(percent)) / Decimal(100))


def apply_rate_bps(amount_cents: int, rate_bps: int) -> int:
    if not amount_cents or not rate_bps:
        return 0
    return round_half_up(Decimal(amount_cents) * Decimal(rate_bps) / Decimal(BPS_DENOMINATOR))


@dataclass(frozen=True)
class PricedLine:
    product_id: Optional[int]
    product_name: str
    barcode: Optional[str]
    cost_price_cents: Optional[int]
    quantity: int
    unit_price_cents: int
    discount_percent: float
    discount_cents: int
    tax_rate_bps: int
    tax_cents: int
    subtotal_cents: int
    total_cents: int
    product_found: bool

    @property
    def net_cents(self) -> int:
        return self.subtotal_cents - self.discount_cents


@dataclass(frozen=True)
class SaleTotals:
    subtotal_cents: int
    tax_cents: int
    discount_cents: int
    total_cents: int
    cash_received_cents: Optional[int]
    change_given_cents: Optional[int]


def price_line(item: Mapping[str, Any], product=None, *, default_tax_rate_bps: int) -> PricedLine:
    """
    Price one cart line.

    product is the batch-fetched Product for item["product_id"] (or None).
    A missing product does not stop the line; it is captured as
    "Unknown Product" with no barcode or cost.
    """
    quantity = int(item.get("quantity") or 0)
    unit_price_cents = int(item.get("unit_price_cents") or 0)
    discount_percent = float(item.get("discount_percent") or 0)
    provided_discount = int(item.get("discount_cents") or 0)

    subtotal = quantity * unit_price_cents if quantity else 0

    if provided_discount > 0:
        discount = provided_discount
    else:
        discount = percent_of(subtotal, discount_percent)

    taxable = subtotal - discount

    tax_rate_bps = item.get("tax_rate_bps")
    if tax_rate_bps is None:
        tax_rate_bps = default_tax_rate_bps
    tax_rate_bps = int(tax_rate_bps)

    tax = apply_rate_bps(taxable, tax_rate_bps)

    return PricedLine(
        product_id=item.get("product_id"),
        product_name=product.name if product is not None else UNKNOWN_PRODUCT_NAME,
        barcode=product.barcode if product is not None else None,
        cost_price_cents=product.cost_price_cents if product is not None else None,
        quantity=quantity,
        unit_price_cents=unit_price_cents,
        discount_percent=discount_percent,
        discount_cents=discount,
        tax_rate_bps=tax_rate_bps,
        tax_cents=tax,
        subtotal_cents=subtotal,
        total_cents=taxable + tax,
        product_found=product is not None,
    )


def aggregate_totals(
    lines: Iterable[PricedLine],
    *,
    payment_method: str,
    discount_cents: int = 0,
    cash_received_cents: Optional[int] = None,
) -> SaleTotals:
    lines = list(lines)
    subtotal = sum(line.net_cents for line in lines)
    tax = sum(line.tax_cents for line in lines)
    order_discount = int(discount_cents or 0)
    total = subtotal - order_discount + tax

    cash_received = None
    change_given = None
    if payment_method == "cash" and cash_received_cents and cash_received_cents > 0:
        cash_received = int(cash_received_cents)
        change_given = max(0, cash_received - total)

    return SaleTotals(
        subtotal_cents=subtotal,
        tax_cents=tax,
        discount_cents=order_discount,
        total_cents=total,
        cash_received_cents=cash_received,
        change_given_cents=change_given,
    )
