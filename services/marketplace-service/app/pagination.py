"""Offset pagination for list endpoints."""

import math
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Query


def page_info(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": math.ceil(total / limit) if limit else 0,
    }


def paginate(query: Query, page: int, limit: int) -> Tuple[List[Any], Dict[str, int]]:
    """
    Fetch one page of an ordered query.

    Args:
        query: Query with ordering already applied
        page: 1-based page number
        limit: Page size

    Returns:
        Tuple of (items, pagination block)
    """
    total = query.order_by(None).count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, page_info(page, limit, total)
