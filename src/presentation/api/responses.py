"""
Standard JSON envelope.

    {"success": bool, "data": ..., "error": {...}, "metadata": {...}}

`processingTime` is measured from the moment the request entered the
middleware stack (request.state.started_at).
"""

import time
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from src.utils.security import SecurityManager


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def processing_ms(request: Optional[Request]) -> int:
    started = getattr(request.state, "started_at", None) if request is not None else None
    if started is None:
        return 0
    return int((time.monotonic() - started) * 1000)


def response_metadata(request: Optional[Request], **extra: Any) -> dict[str, Any]:
    return {
        "requestId": SecurityManager.generate_token(16),
        "timestamp": _now_iso(),
        "processingTime": processing_ms(request),
        **extra,
    }


def error_payload(code: str, message: str, details: Any = None) -> dict[str, Any]:
    error = {"code": code, "message": message, "timestamp": _now_iso()}
    if details is not None:
        error["details"] = details
    return error


def success_response(
    request: Request,
    data: Any,
    status_code: int = 200,
    headers: Optional[dict[str, str]] = None,
    metadata: Optional[dict[str, Any]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "data": data,
            "metadata": response_metadata(request, **(metadata or {})),
        },
        headers=headers,
    )


def error_response(
    request: Optional[Request],
    status_code: int,
    code: str,
    message: str,
    details: Any = None,
    headers: Optional[dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": False,
            "error": error_payload(code, message, details),
            "metadata": response_metadata(request),
        },
        headers=headers,
    )
