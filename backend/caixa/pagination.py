# Overview: Page/limit normalization and paginated query results for list endpoints.

from __future__ import annotations

import math

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


def normalize_pagination(page: int | None = None, limit: int | None = None, *, default_limit: int = DEFAULT_LIMIT) -> tuple[int, int, int]:
    """Return (page, limit, offset); page >= 1, 1 <= limit <= MAX_LIMIT."""
    page = max(1, page or 1)
    limit = min(MAX_LIMIT, max(1, limit or default_limit))
    return page, limit, (page - 1) * limit


def paginate(query, *, page: int | None = None, limit: int | None = None, default_limit: int = DEFAULT_LIMIT) -> dict:
    """
    Run an ordered query for one page.

    Returns {"items": [...rows], "pagination": {...}}; rows are model objects,
    serialization is left to the caller.
    """
    page, limit, offset = normalize_pagination(page, limit, default_limit=default_limit)

    total = query.order_by(None).count()
    rows = query.limit(limit).offset(offset).all()
    total_pages = math.ceil(total / limit) if total else 0

    return {
        "items": rows,
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "total_pages": total_pages,
            "has_next": page < total_pages,
            "has_prev": page > 1,
        },
    }
