"""
Security audit trail.

Entries go to the "audit" logger as one JSON object per line. Details are
PII-masked and client IPs are hashed before anything is written.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from starlette.requests import Request

from src.observability.metrics import increment_security_event
from src.utils.pii import PIIProtector
from src.utils.security import SecurityManager

logger = logging.getLogger("audit")

SEVERITIES = ("low", "medium", "high", "critical")
_LEVELS = {
    "low": logging.INFO,
    "medium": logging.INFO,
    "high": logging.WARNING,
    "critical": logging.ERROR,
}


def client_ip(request: Optional[Request]) -> str:
    """First x-forwarded-for hop, then x-real-ip, then the socket peer."""
    if request is None:
        return "unknown"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip() or "unknown"
    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


class AuditLogger:
    @staticmethod
    def log_security_event(
        user_id: str,
        action: str,
        resource: str,
        details: dict[str, Any],
        severity: str = "medium",
        request: Optional[Request] = None,
    ) -> dict[str, Any]:
        if severity not in SEVERITIES:
            severity = "medium"
        entry = {
            "id": SecurityManager.generate_token(16),
            "userId": user_id,
            "action": action,
            "resource": resource,
            "details": PIIProtector.mask_pii(json.dumps(details, default=str)),
            "ipAddress": SecurityManager.hash(client_ip(request)),
            "userAgent": (
                request.headers.get("user-agent", "unknown") if request else "unknown"
            ),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "severity": severity,
        }
        logger.log(_LEVELS[severity], "[AUDIT] %s", json.dumps(entry))
        increment_security_event(severity)
        return entry

    @classmethod
    def log_data_access(
        cls,
        user_id: str,
        data_type: str,
        record_id: str,
        action: str,
        request: Optional[Request] = None,
    ) -> dict[str, Any]:
        return cls.log_security_event(
            user_id,
            f"data_{action}",
            f"{data_type}:{record_id}",
            {"dataType": data_type, "recordId": record_id, "action": action},
            "medium",
            request,
        )
