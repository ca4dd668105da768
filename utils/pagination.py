"""Offset pagination for Flask-SQLAlchemy queries."""

from __future__ import annotations

import math
from typing import Callable

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


def paginate(query, page: int, limit: int, serializer: Callable) -> dict:
    """Return one page of ``query`` in the list envelope the client expects."""

    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return {
        "data": [serializer(item) for item in items],
        "total": total,
        "page": page,
        "limit": limit,
        "totalPages": math.ceil(total / limit) if limit else 0,
    }
