"""
Standard API response helpers for consistent response formatting.

All endpoints use these helpers so responses share one envelope:
- Success: { "success": true, "data": <payload>, "meta": {...} }
- Error: { "success": false, "error": { "code": "...", "message": "...", "details": {...} } }
  (errors are produced by the exception handlers in main.py)
"""
from typing import Any


def success_response(data: Any, meta: dict[str, Any] | None = None) -> dict[str, Any]:
    """
    Create a standardized success response.

    Args:
        data: The response payload
        meta: Optional metadata (pagination, timestamps, etc.)

    Returns:
        dict: { "success": true, "data": <data>, "meta": <meta> }
    """
    response = {"success": True, "data": data}
    if meta:
        response["meta"] = meta
    return response


def offset_meta(*, limit: int, offset: int, total: int) -> dict[str, Any]:
    """Pagination metadata for limit/offset listings."""
    return {
        "limit": limit,
        "offset": offset,
        "total": total,
        "hasMore": (offset + limit) < total,
    }


def page_meta(*, page: int, limit: int, total: int) -> dict[str, Any]:
    """Pagination metadata for page/limit listings (admin tables)."""
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "hasMore": page * limit < total,
    }
