"""
Sales Service - atomic sale commit

A cart becomes one Sale header, one SaleItem per line and one 'out'
StockMovement per line whose product exists, with Product.stock_quantity
decremented alongside. All of it commits together or not at all.

COMMIT SEQUENCE:
1. Resolve the invoice number (caller-supplied, or generated and probed).
2. Batch-fetch every referenced product in one query.
3. Price each line and aggregate the sale totals (pure).
4. Insert the header and flush for its id.
5. Insert each line; decrement stock + write the movement when the product exists.
6. Commit. Any exception rolls back everything and is re-raised unchanged.

No retry is attempted here: a failed commit is reported once to the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from html import escape
from typing import Any, Callable, Iterable, Mapping, Optional

from flask import current_app

from ..extensions import db
from ..models import Sale, SaleItem
from ..pagination import paginate
from caixa.time_utils import utcnow, day_bounds
from . import stock_service
from .concurrency import lock_for_update
from .held_sale_service import HeldSaleStore
from .invoice_service import generate_invoice_number
from .pricing import PricedLine, price_line, aggregate_totals
from .products_service import get_products_by_ids
from .stock_service import LineStockOutcome


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class SaleNotFoundError(SaleError):
    """Raised when a sale id does not resolve."""


@dataclass
class SaleCommitResult:
    sale: Sale
    stock_outcomes: list[LineStockOutcome] = field(default_factory=list)

    @property
    def skipped_lines(self) -> list[LineStockOutcome]:
        return [o for o in self.stock_outcomes if not o.adjusted]

    def to_dict(self) -> dict:
        return {
            "sale": self.sale.to_dict(),
            "stock_outcomes": [o.to_dict() for o in self.stock_outcomes],
        }


def _default_tax_rate_bps() -> int:
    return int(current_app.config.get("DEFAULT_TAX_RATE_BPS", 1700))


def _build_sale_item(sale_id: int, line: PricedLine) -> SaleItem:
    return SaleItem(
        sale_id=sale_id,
        product_id=line.product_id,
        product_name=line.product_name,
        barcode=line.barcode,
        quantity=line.quantity,
        unit_price_cents=line.unit_price_cents,
        discount_percent=line.discount_percent,
        discount_cents=line.discount_cents,
        tax_rate_bps=line.tax_rate_bps,
        tax_cents=line.tax_cents,
        subtotal_cents=line.subtotal_cents,
        total_cents=line.total_cents,
        cost_price_cents=line.cost_price_cents,
    )


def create_sale(
    *,
    items: Iterable[Mapping[str, Any]],
    payment_method: str,
    customer_id: int | None = None,
    user_id: int | None = None,
    cash_received_cents: int | None = None,
    discount_cents: int = 0,
    notes: str | None = None,
    invoice_number: str | None = None,
    rand_suffix: Optional[Callable[[], int]] = None,
) -> SaleCommitResult:
    """
    Commit a cart as a completed sale.

    Lines whose product_id is missing or unknown are still recorded (as
    "Unknown Product" when unresolved) but leave inventory untouched; the
    returned stock_outcomes say which lines did.

    Raises whatever the storage layer raised (e.g. IntegrityError for a
    duplicate caller-supplied invoice number) after rolling back.
    """
    items = list(items)
    now = utcnow()

    try:
        number = invoice_number or generate_invoice_number(today=now.date(), rand_suffix=rand_suffix)

        products = get_products_by_ids(item.get("product_id") for item in items)

        tax_rate_bps = _default_tax_rate_bps()
        priced = [
            price_line(item, products.get(item.get("product_id")), default_tax_rate_bps=tax_rate_bps)
            for item in items
        ]
        totals = aggregate_totals(
            priced,
            payment_method=payment_method,
            discount_cents=discount_cents,
            cash_received_cents=cash_received_cents,
        )

        sale = Sale(
            invoice_number=number,
            customer_id=customer_id,
            user_id=user_id,
            subtotal_cents=totals.subtotal_cents,
            tax_cents=totals.tax_cents,
            discount_cents=totals.discount_cents,
            total_cents=totals.total_cents,
            payment_method=payment_method,
            cash_received_cents=totals.cash_received_cents,
            change_given_cents=totals.change_given_cents,
            status="completed",
            notes=notes,
            created_at=now,
            completed_at=now,
        )
        db.session.add(sale)
        db.session.flush()

        outcomes: list[LineStockOutcome] = []
        for position, line in enumerate(priced, start=1):
            db.session.add(_build_sale_item(sale.id, line))

            if line.product_id is None:
                outcomes.append(LineStockOutcome(position, None, stock_service.OUTCOME_SKIPPED_NO_PRODUCT))
                continue

            product = products.get(line.product_id)
            movement = None
            if product is not None:
                movement = stock_service.apply_sale_decrement(
                    product,
                    line.quantity,
                    sale_id=sale.id,
                    cost_price_cents=line.cost_price_cents,
                    user_id=user_id,
                    now=now,
                )

            if movement is None:
                outcomes.append(LineStockOutcome(position, line.product_id, stock_service.OUTCOME_SKIPPED_UNKNOWN_PRODUCT))
            else:
                outcomes.append(LineStockOutcome(position, line.product_id, stock_service.OUTCOME_ADJUSTED, movement.id))

        db.session.commit()
    except Exception:
        db.session.rollback()
        current_app.logger.warning("Sale commit rolled back (invoice %s)", invoice_number or "auto")
        raise

    skipped = [o.position for o in outcomes if not o.adjusted]
    if skipped:
        current_app.logger.warning(
            "Sale %s committed; lines %s did not affect inventory", sale.invoice_number, skipped
        )
    current_app.logger.info(
        "Sale %s committed: %d lines, total %d cents", sale.invoice_number, len(priced), sale.total_cents
    )
    return SaleCommitResult(sale=sale, stock_outcomes=outcomes)


def cancel_sale(sale_id: int, reason: str | None = None) -> Sale:
    """
    Mark a sale cancelled and record the reason in notes.

    Stock is NOT restored and movements are left as they are; any
    correction is a separate stock adjustment.
    """
    sale = lock_for_update(db.session.query(Sale).filter_by(id=sale_id)).first()
    if not sale:
        raise SaleNotFoundError("Sale not found", details={"sale_id": sale_id})

    sale.status = "cancelled"
    sale.notes = reason

    db.session.commit()
    current_app.logger.info("Sale %s cancelled", sale.invoice_number)
    return sale


def hold_sale(payload: Any, store: HeldSaleStore) -> str:
    """Park a cart; returns the hold id."""
    return store.hold(payload)


def retrieve_held_sale(hold_id: str, store: HeldSaleStore) -> dict | None:
    return store.retrieve(hold_id)


def get_sale(sale_id: int) -> Sale | None:
    return db.session.get(Sale, sale_id)


def get_sale_items(sale_id: int) -> list[SaleItem]:
    return db.session.query(SaleItem).filter_by(sale_id=sale_id).order_by(SaleItem.id).all()


def list_sales(
    *,
    status: str | None = None,
    start=None,
    end=None,
    page: int | None = None,
    limit: int | None = None,
) -> dict:
    """Sales newest first; start/end are inclusive UTC-naive datetimes."""
    q = db.session.query(Sale)
    if status:
        q = q.filter(Sale.status == status)
    if start is not None:
        q = q.filter(Sale.created_at >= start)
    if end is not None:
        q = q.filter(Sale.created_at <= end)

    q = q.order_by(Sale.created_at.desc(), Sale.id.desc())
    return paginate(q, page=page, limit=limit)


def get_daily_summary(day: date | None = None) -> dict:
    """Completed sales for one UTC day."""
    day = day or utcnow().date()
    start, end = day_bounds(day)

    totals = (
        db.session.query(
            db.func.count(Sale.id),
            db.func.coalesce(db.func.sum(Sale.total_cents), 0),
        )
        .filter(
            Sale.status == "completed",
            Sale.created_at >= start,
            Sale.created_at < end,
        )
        .one()
    )
    transactions, revenue = int(totals[0] or 0), int(totals[1] or 0)

    return {
        "date": day.isoformat(),
        "total_sales_cents": revenue,
        "total_revenue_cents": revenue,
        "transactions": transactions,
    }


def _money(cents: int | None) -> str:
    if cents is None:
        return "-"
    sign = "-" if cents < 0 else ""
    cents = abs(cents)
    return f"{sign}{cents // 100}.{cents % 100:02d}"


def render_receipt(sale_id: int) -> str:
    sale = get_sale(sale_id)
    if not sale:
        raise SaleNotFoundError("Sale not found", details={"sale_id": sale_id})

    rows = "".join(
        f"<tr><td>{escape(item.product_name)}</td><td>{item.quantity}</td>"
        f"<td>{_money(item.unit_price_cents)}</td><td>{_money(item.total_cents)}</td></tr>"
        for item in get_sale_items(sale.id)
    )
    parts = [
        "<html><body>",
        f"<h3>Receipt {escape(sale.invoice_number)}</h3>",
        f"<table>{rows}</table>",
        f"<p>Subtotal: {_money(sale.subtotal_cents)}</p>",
        f"<p>Discount: {_money(sale.discount_cents)}</p>",
        f"<p>IVA: {_money(sale.tax_cents)}</p>",
        f"<p>Total: {_money(sale.total_cents)}</p>",
    ]
    if sale.cash_received_cents is not None:
        parts.append(f"<p>Cash: {_money(sale.cash_received_cents)}</p>")
        parts.append(f"<p>Change: {_money(sale.change_given_cents)}</p>")
    if sale.status != "completed":
        parts.append(f"<p>Status: {escape(sale.status)}</p>")
    parts.append("</body></html>")
    return "".join(parts)
