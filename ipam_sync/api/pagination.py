"""Pagination helper for API endpoints."""
from flask import request


def paginate_query(query, default_limit=20, max_limit=200):
    """
    Apply limit/offset pagination to a SQLAlchemy query.

    Reads ?limit= and ?offset= from query string.
    Returns (items, pagination_dict).

    Pagination format:
    {
        "total": 123,
        "limit": 20,
        "offset": 0,
        "hasNext": true
    }
    """
    limit = request.args.get("limit", default_limit, type=int)
    offset = request.args.get("offset", 0, type=int)

    # Clamp values
    limit = max(1, min(limit, max_limit))
    offset = max(0, offset)

    total = query.order_by(None).count()
    items = query.limit(limit).offset(offset).all()

    return items, {
        "total": total,
        "limit": limit,
        "offset": offset,
        "hasNext": offset + limit < total,
    }
