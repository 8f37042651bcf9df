from __future__ import annotations

import math
from typing import Any

from .models import MOVEMENT_TYPES, PAYMENT_METHODS


# Maximum price: 9,999,999.99 (999,999,999 cents)
# This prevents database overflow issues and nonsensical prices
MAX_PRICE_CENTS = 999_999_999

MAX_TAX_RATE_BPS = 10_000


class ValidationError(ValueError):
    """400-level input problem."""


def _coerce_int(key: str, value: Any) -> int:
    # Already an int (but not bool which is a subclass of int)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    # String input - must be plain digits (with optional leading minus)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            raise ValidationError(f"{key} must be an integer")
        # Reject scientific notation (e.g., "1e15", "1E10")
        if 'e' in stripped.lower():
            raise ValidationError(f"{key} must be a plain integer (scientific notation not allowed)")
        # Reject decimal points (e.g., "12.5")
        if '.' in stripped:
            raise ValidationError(f"{key} must be an integer (no decimals)")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    # Reject floats explicitly
    if isinstance(value, float):
        raise ValidationError(f"{key} must be an integer, not a decimal")
    raise ValidationError(f"{key} must be an integer")


def _coerce_number(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            raise ValidationError(f"{key} must be a number")
    else:
        raise ValidationError(f"{key} must be a number")
    # Rejects "nan", "inf" and JSON NaN/Infinity literals
    if not math.isfinite(number):
        raise ValidationError(f"{key} must be a finite number")
    return number


def _optional_int(payload: dict, key: str, *, minimum: int | None = None, maximum: int | None = None, label: str | None = None):
    raw = payload.get(key)
    if raw is None:
        return None
    name = label or key
    val = _coerce_int(name, raw)
    if minimum is not None and val < minimum:
        raise ValidationError(f"{name} must be >= {minimum}")
    if maximum is not None and val > maximum:
        raise ValidationError(f"{name} cannot exceed {maximum}")
    return val


def _optional_text(payload: dict, key: str, max_length: int | None = None):
    raw = payload.get(key)
    if raw is None:
        return None
    val = str(raw).strip()
    if max_length and len(val) > max_length:
        raise ValidationError(f"{key} exceeds max length {max_length}")
    return val or None


def validate_sale_item(raw: Any, position: int) -> dict:
    if not isinstance(raw, dict):
        raise ValidationError(f"items[{position}] must be an object")

    prefix = f"items[{position}]"

    if raw.get("quantity") is None:
        raise ValidationError(f"{prefix}.quantity is required")
    if raw.get("unit_price_cents") is None:
        raise ValidationError(f"{prefix}.unit_price_cents is required")

    item = {
        "product_id": _optional_int(raw, "product_id", minimum=1, label=f"{prefix}.product_id"),
        "quantity": _optional_int(raw, "quantity", minimum=1, label=f"{prefix}.quantity"),
        "unit_price_cents": _optional_int(raw, "unit_price_cents", minimum=0, maximum=MAX_PRICE_CENTS, label=f"{prefix}.unit_price_cents"),
        "discount_cents": _optional_int(raw, "discount_cents", minimum=0, label=f"{prefix}.discount_cents") or 0,
        "tax_rate_bps": _optional_int(raw, "tax_rate_bps", minimum=0, maximum=MAX_TAX_RATE_BPS, label=f"{prefix}.tax_rate_bps"),
    }

    percent = raw.get("discount_percent")
    if percent is None:
        item["discount_percent"] = 0.0
    else:
        percent = _coerce_number(f"{prefix}.discount_percent", percent)
        if percent < 0 or percent > 100:
            raise ValidationError(f"{prefix}.discount_percent must be between 0 and 100")
        item["discount_percent"] = percent

    return item


def validate_sale_payload(payload: Any) -> dict:
    """
    Validates + normalizes a checkout request into keyword arguments for
    sales_service.create_sale.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    items = payload.get("items")
    if not isinstance(items, list) or not items:
        raise ValidationError("At least one item is required")

    method = payload.get("payment_method")
    if method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    return {
        "items": [validate_sale_item(raw, i) for i, raw in enumerate(items)],
        "payment_method": method,
        "customer_id": _optional_int(payload, "customer_id", minimum=1),
        "user_id": _optional_int(payload, "user_id", minimum=1),
        "cash_received_cents": _optional_int(payload, "cash_received_cents", minimum=0),
        "discount_cents": _optional_int(payload, "discount_cents", minimum=0) or 0,
        "notes": _optional_text(payload, "notes"),
        "invoice_number": _optional_text(payload, "invoice_number", max_length=64),
    }


def validate_movement_payload(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if payload.get("product_id") is None:
        raise ValidationError("product_id is required")
    if payload.get("quantity") is None:
        raise ValidationError("quantity is required")

    movement_type = payload.get("type")
    if movement_type not in MOVEMENT_TYPES:
        raise ValidationError(f"type must be one of: {', '.join(MOVEMENT_TYPES)}")

    quantity = _coerce_int("quantity", payload["quantity"])
    if quantity == 0 and movement_type != "adjustment":
        raise ValidationError("quantity cannot be zero")

    return {
        "product_id": _optional_int(payload, "product_id", minimum=1),
        "movement_type": movement_type,
        "quantity": quantity,
        "reference_type": _optional_text(payload, "reference_type", max_length=32),
        "reference_id": _optional_int(payload, "reference_id", minimum=1),
        "notes": _optional_text(payload, "notes", max_length=255),
        "user_id": _optional_int(payload, "user_id", minimum=1),
    }


def validate_adjust_payload(payload: Any) -> dict:
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if payload.get("product_id") is None:
        raise ValidationError("product_id is required")
    if payload.get("new_quantity") is None:
        raise ValidationError("new_quantity is required")

    reason = _optional_text(payload, "reason", max_length=255)
    if not reason:
        raise ValidationError("reason is required")

    return {
        "product_id": _optional_int(payload, "product_id", minimum=1),
        "new_quantity": _coerce_int("new_quantity", payload["new_quantity"]),
        "notes": reason,
        "user_id": _optional_int(payload, "user_id", minimum=1),
    }
