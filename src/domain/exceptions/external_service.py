"""
ExternalServiceError - Raised when a backing service (Airtable, LLM) fails.
Maps to: HTTP 502 Bad Gateway
"""


class ExternalServiceError(Exception):
    """Raised when an upstream dependency cannot serve the request"""

    def __init__(self, service: str, message: str = "Upstream service failed"):
        super().__init__(f"{service}: {message}")
        self.service = service
