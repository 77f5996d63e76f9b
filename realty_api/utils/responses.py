"""
Builders for the response envelope shared by every endpoint.

    success:   {"success": true, "message": ..., "data": ...}
    paginated: {"success": true, "data": [...], "pagination": {...}}
    failure:   {"success": false, "message": ..., "errors": [...]}
"""

from typing import Any, Dict, List, Optional
import math


def success_response(message: str = "Success", data: Any = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    return body


def pagination_meta(page: int, limit: int, total: int) -> Dict[str, int]:
    return {
        "currentPage": page,
        "totalPages": math.ceil(total / limit) if limit else 0,
        "totalItems": total,
        "itemsPerPage": limit,
    }


def paginated_response(
    items: List[Any],
    page: int,
    limit: int,
    total: int,
    message: Optional[str] = None,
    **extra: Any
) -> Dict[str, Any]:
    """Page of results plus pagination metadata; extra keys are merged into the body."""
    body: Dict[str, Any] = {
        "success": True,
        "data": items,
        "pagination": pagination_meta(page, limit, total),
    }
    if message:
        body["message"] = message
    body.update(extra)
    return body


def error_response(message: str, errors: Optional[List[Dict[str, Any]]] = None, **extra: Any) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    body.update(extra)
    return body
