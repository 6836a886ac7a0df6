from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Sequence, Union


# PUBLIC_INTERFACE
def list_envelope(items: Union[Sequence[Any], Iterable[Any]]) -> Dict[str, Any]:
    """
    Build the standard envelope for list endpoints.

    Args:
        items: The tasks matching the query.

    Returns:
        Dict with keys: success, data, count.
    """
    materialized: List[Any] = list(items) if not isinstance(items, list) else items
    return {
        "success": True,
        "data": materialized,
        "count": len(materialized),
    }


# PUBLIC_INTERFACE
def item_envelope(item: Any, message: Optional[str] = None) -> Dict[str, Any]:
    """Build the envelope for single-task responses; message is omitted when None."""
    body: Dict[str, Any] = {"success": True, "data": item}
    if message is not None:
        body["message"] = message
    return body


# PUBLIC_INTERFACE
def error_body(error: str, message: str) -> Dict[str, Any]:
    """Build the body shared by every failed response."""
    return {"success": False, "error": error, "message": message}
