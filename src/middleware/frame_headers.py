"""
Frame headers for the embeddable chat.

Partner sites load /embed and /chat/* inside an iframe, so those responses
must not carry X-Frame-Options and get a frame-ancestors allow-list
instead. Routes that set their own Content-Security-Policy (the /embed
container page) keep it.
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

FRAME_ANCESTORS_CSP = (
    "frame-ancestors 'self' https://*.softr.app https://vadiy.com "
    "https://*.vadiy.com http://localhost:* https://*.softr.io;"
)
EMBED_PREFIX = "/embed"
FRAMED_PREFIXES = (EMBED_PREFIX, "/chat")


class EmbedFrameMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        path = request.url.path
        if not path.startswith(FRAMED_PREFIXES):
            return response

        if "content-security-policy" not in response.headers:
            if "x-frame-options" in response.headers:
                del response.headers["x-frame-options"]
            response.headers["Content-Security-Policy"] = FRAME_ANCESTORS_CSP

        if path.startswith(EMBED_PREFIX):
            response.headers.setdefault("Access-Control-Allow-Origin", "*")
            response.headers.setdefault("Access-Control-Allow-Methods", "GET, POST, OPTIONS")
            response.headers.setdefault("Access-Control-Allow-Headers", "Content-Type")
        return response
