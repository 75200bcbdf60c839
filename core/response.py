"""
Standardized API response helpers for consistent data structure
"""
from typing import Any, Dict, Optional
from datetime import datetime


def _timestamp() -> str:
    return datetime.utcnow().isoformat()


def success_response(
    data: Any = None,
    message: str = "Operation successful",
    meta: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Create a success response"""
    return {
        "success": True,
        "message": message,
        "data": data,
        "meta": meta,
        "timestamp": _timestamp()
    }


def error_response(
    message: str,
    error_code: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Create an error response"""
    return {
        "success": False,
        "message": message,
        "error_code": error_code,
        "details": details,
        "timestamp": _timestamp()
    }
