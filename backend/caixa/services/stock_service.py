# Overview: Service-layer operations for stock levels; encapsulates business logic and database work.

# backend/caixa/services/stock_service.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy import update

from ..extensions import db
from ..models import Product, StockMovement, MOVEMENT_TYPES
from ..pagination import paginate
from caixa.time_utils import utcnow
from .concurrency import lock_for_update, run_with_retry
from .products_service import get_product
"""
Stock Invariants (authoritative)

- Product.stock_quantity is the current level; StockMovement is the
  append-only ledger that explains every change to it.
- Every write to stock_quantity inserts exactly one StockMovement in the same
  DB transaction, with previous_quantity/new_quantity as observed by that
  transaction.
- new_quantity = previous_quantity + signed(quantity):
    in, return                -> +quantity
    out, damage, transfer     -> -quantity
    adjustment                -> level set directly; quantity stores the delta
- Sale decrements never floor at zero. allow_negative_stock is a checkout
  policy evaluated before the sale reaches this service.
- Sale decrements are a single UPDATE ... SET stock_quantity = stock_quantity - :q,
  so concurrent sales of the same product cannot lose a decrement even
  without row locks.
"""


INBOUND_TYPES = ("in", "return")
OUTBOUND_TYPES = ("out", "damage", "transfer")

OUTCOME_ADJUSTED = "adjusted"
OUTCOME_SKIPPED_UNKNOWN_PRODUCT = "skipped_unknown_product"
OUTCOME_SKIPPED_NO_PRODUCT = "skipped_no_product"


class StockError(Exception):
    """Raised for stock operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.details = details or {}


class ProductNotFoundError(StockError):
    """Raised when a stock operation references a missing product."""


@dataclass(frozen=True)
class LineStockOutcome:
    """What a committed sale line did to inventory."""
    position: int
    product_id: Optional[int]
    status: str
    movement_id: Optional[int] = None

    @property
    def adjusted(self) -> bool:
        return self.status == OUTCOME_ADJUSTED

    def to_dict(self) -> dict:
        return {
            "position": self.position,
            "product_id": self.product_id,
            "status": self.status,
            "movement_id": self.movement_id,
        }


def compute_new_quantity(movement_type: str, previous_quantity: int, quantity: int) -> int:
    if movement_type in INBOUND_TYPES:
        return previous_quantity + quantity
    if movement_type in OUTBOUND_TYPES:
        return previous_quantity - quantity
    if movement_type == "adjustment":
        return quantity
    raise StockError(
        f"Invalid movement type: {movement_type}",
        details={"allowed": list(MOVEMENT_TYPES)},
    )


def apply_sale_decrement(
    product: Product,
    quantity: int,
    *,
    sale_id: int,
    cost_price_cents: int | None = None,
    user_id: int | None = None,
    now: datetime | None = None,
) -> StockMovement | None:
    """
    Decrement stock for one sale line and record the 'out' movement.

    Runs inside the caller's transaction; flushes but never commits.
    Returns None if the product row no longer exists.
    """
    now = now or utcnow()

    result = db.session.execute(
        update(Product)
        .where(Product.id == product.id)
        .values(stock_quantity=Product.stock_quantity - quantity, updated_at=now)
        .execution_options(synchronize_session=False)
    )
    if not result.rowcount:
        return None

    # Reload the level this transaction just wrote
    db.session.expire(product, ["stock_quantity", "updated_at"])
    new_quantity = product.stock_quantity

    movement = StockMovement(
        product_id=product.id,
        type="out",
        quantity=quantity,
        previous_quantity=new_quantity + quantity,
        new_quantity=new_quantity,
        reference_type="sale",
        reference_id=sale_id,
        cost_price_cents=cost_price_cents,
        user_id=user_id,
        created_at=now,
    )
    db.session.add(movement)
    db.session.flush()
    return movement


def _get_product_locked(product_id: int) -> Product:
    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if product is None:
        raise ProductNotFoundError("Product not found", details={"product_id": product_id})
    return product


def add_movement(
    *,
    product_id: int,
    movement_type: str,
    quantity: int,
    reference_type: str | None = None,
    reference_id: int | None = None,
    cost_price_cents: int | None = None,
    notes: str | None = None,
    user_id: int | None = None,
) -> StockMovement:
    """
    Record a manual stock movement and apply it to the product level.

    For movement_type='adjustment', quantity is the new absolute level.
    """
    if movement_type not in MOVEMENT_TYPES:
        raise StockError(
            f"Invalid movement type: {movement_type}",
            details={"allowed": list(MOVEMENT_TYPES)},
        )

    def _op():
        product = _get_product_locked(product_id)
        now = utcnow()

        previous = product.stock_quantity or 0
        new = compute_new_quantity(movement_type, previous, quantity)

        product.stock_quantity = new
        product.updated_at = now

        movement = StockMovement(
            product_id=product.id,
            type=movement_type,
            quantity=(new - previous) if movement_type == "adjustment" else quantity,
            previous_quantity=previous,
            new_quantity=new,
            reference_type=reference_type,
            reference_id=reference_id,
            cost_price_cents=cost_price_cents,
            notes=notes,
            user_id=user_id,
            created_at=now,
        )
        db.session.add(movement)
        db.session.commit()
        return movement

    return run_with_retry(_op)


def adjust_stock(
    product_id: int,
    new_quantity: int,
    *,
    notes: str | None = None,
    user_id: int | None = None,
) -> StockMovement:
    """Set the product's level to new_quantity (physical count correction)."""
    product = get_product(product_id)
    if product is None:
        raise ProductNotFoundError("Product not found", details={"product_id": product_id})

    if notes is None:
        notes = f"Manual adjustment from {product.stock_quantity or 0} to {new_quantity}"

    return add_movement(
        product_id=product_id,
        movement_type="adjustment",
        quantity=new_quantity,
        notes=notes,
        user_id=user_id,
    )


def get_current_stock(product_id: int) -> int:
    qty = db.session.query(Product.stock_quantity).filter_by(id=product_id).scalar()
    if qty is None:
        raise ProductNotFoundError("Product not found", details={"product_id": product_id})
    return int(qty)


def list_movements(*, product_id: int | None = None, page: int | None = None, limit: int | None = None) -> dict:
    """Movement history, newest first."""
    q = db.session.query(StockMovement)
    if product_id is not None:
        q = q.filter(StockMovement.product_id == product_id)

    q = q.order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
    return paginate(q, page=page, limit=limit, default_limit=100)


def list_sale_movements(sale_id: int) -> list[StockMovement]:
    return (
        db.session.query(StockMovement)
        .filter_by(reference_type="sale", reference_id=sale_id)
        .order_by(StockMovement.id)
        .all()
    )
