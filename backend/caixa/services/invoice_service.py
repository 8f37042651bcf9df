# Overview: Service-layer operations for invoice numbers; encapsulates business logic and database work.

"""
Invoice Number Service

FORMAT: INV-YYYYMMDD-NNNN, where NNNN is a random zero-padded 4-digit suffix.

UNIQUENESS:
- Each candidate is probed against sales.invoice_number before use.
- On collision a fresh suffix is drawn, up to max_attempts probes.
- After max_attempts collisions the last candidate is returned anyway; the
  unique constraint on sales.invoice_number is the final guard.

Caller-supplied invoice numbers bypass this module entirely.
"""

from __future__ import annotations

import secrets
from datetime import date
from typing import Callable, Optional

from flask import current_app

from ..extensions import db
from ..models import Sale
from caixa.time_utils import utcnow


INVOICE_PREFIX = "INV"
SUFFIX_SPACE = 10_000
DEFAULT_MAX_ATTEMPTS = 10


def random_suffix() -> int:
    return secrets.randbelow(SUFFIX_SPACE)


def format_invoice_number(day: date, suffix: int) -> str:
    return f"{INVOICE_PREFIX}-{day:%Y%m%d}-{suffix % SUFFIX_SPACE:04d}"


def invoice_number_exists(invoice_number: str) -> bool:
    return db.session.query(Sale.id).filter_by(invoice_number=invoice_number).first() is not None


def generate_invoice_number(
    *,
    today: Optional[date] = None,
    rand_suffix: Optional[Callable[[], int]] = None,
    max_attempts: Optional[int] = None,
) -> str:
    """
    Produce an invoice number not yet used by any persisted sale.

    rand_suffix is the randomness source (returns an int in [0, 10000)); tests
    inject a deterministic one to force collisions.
    """
    day = today or utcnow().date()
    draw = rand_suffix or random_suffix
    if max_attempts is None:
        max_attempts = current_app.config.get("INVOICE_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)
    max_attempts = max(1, max_attempts)

    candidate = format_invoice_number(day, draw())
    for attempt in range(1, max_attempts + 1):
        if not invoice_number_exists(candidate):
            return candidate
        if attempt == max_attempts:
            break
        candidate = format_invoice_number(day, draw())

    current_app.logger.warning(
        "Invoice number %s still collides after %d attempts; using it anyway",
        candidate,
        max_attempts,
    )
    return candidate
