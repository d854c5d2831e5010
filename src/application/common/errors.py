"""
ApiError - A failure with an explicit HTTP status and machine-readable code.

Handlers raise it when the client needs a specific status (429 with limit
details, 400 for rejected content). The FastAPI exception handler renders it
into the standard error envelope.
"""

from typing import Any, Optional


class ApiError(Exception):
    def __init__(
        self,
        status_code: int,
        code: str,
        message: str,
        details: Optional[Any] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        self.headers = headers or {}
