# Overview: Read-side product lookups used by the sale and stock services.

from __future__ import annotations

from typing import Iterable

from ..extensions import db
from ..models import Product


def get_products_by_ids(product_ids: Iterable[int | None]) -> dict[int, Product]:
    """
    Batch-fetch products in one query. None ids are ignored; ids with no row
    are simply absent from the result.
    """
    ids = {pid for pid in product_ids if pid is not None}
    if not ids:
        return {}

    rows = db.session.query(Product).filter(Product.id.in_(ids)).all()
    return {p.id: p for p in rows}


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)
