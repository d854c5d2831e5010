"""
Embed API Router - the container page that hosts the chat iframe on
partner sites (Softr pages, vadiy.com).
"""

from urllib.parse import urlparse

from fastapi import APIRouter, Request, Response
from fastapi.responses import HTMLResponse

from src.config.settings import Config

router = APIRouter(prefix="/embed", tags=["embed"])

ALLOWED_DOMAINS = (
    "vadiy.com",
    "vadiy.softr.app",
    "localhost",
    "127.0.0.1",
    "vercel.app",
)

EMBED_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Veteran Chat</title>
  <style>
    body, html {{ margin: 0; padding: 0; height: 100%; width: 100%; overflow: hidden; }}
    .chat-container {{ width: 100%; height: 100%; min-height: 500px; border: none; display: block; }}
    iframe {{ width: 100%; height: 100%; border: none; border-radius: 4px; box-shadow: 0 2px 10px rgba(0, 0, 0, 0.1); }}
  </style>
</head>
<body>
  <div class="chat-container">
    <iframe src="{chat_url}" allow="clipboard-write" title="Veteran Chat Assistant"></iframe>
  </div>
  <script>
    window.addEventListener('message', function(event) {{
      if (!event.data || typeof event.data !== 'object' || event.data.source !== 'veteran-chat') {{
        return;
      }}
      var iframe = document.querySelector('iframe');
      if (!iframe) return;
      switch (event.data.type) {{
        case 'resize':
          if (event.data.data && event.data.data.height) {{
            iframe.style.height = event.data.data.height + 'px';
          }}
          break;
        case 'ready':
          iframe.contentWindow.postMessage({{
            type: 'config',
            data: {{ embedded: true, parentDomain: window.location.hostname }},
            source: 'veteran-embed'
          }}, '*');
          break;
      }}
    }});
    if (window.parent !== window) {{
      window.parent.postMessage({{ type: 'embed_ready', source: 'veteran-embed' }}, '*');
    }}
  </script>
</body>
</html>
"""


def is_allowed_domain(*candidates: str) -> bool:
    """Substring match, so subdomains and ports (localhost:3000) pass too."""
    return any(
        domain in candidate for candidate in candidates if candidate for domain in ALLOWED_DOMAINS
    )


def _referrer_host(request: Request) -> str:
    referrer = request.headers.get("referer", "")
    if not referrer:
        return ""
    return urlparse(referrer).hostname or ""


@router.get("", response_class=HTMLResponse)
async def embed_container(request: Request):
    allowed = is_allowed_domain(_referrer_host(request), request.headers.get("host", ""))
    secure_mode = Config.is_production() and not allowed

    headers = {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type, Authorization",
    }
    if not secure_mode:
        headers["X-Frame-Options"] = "ALLOWALL"
        headers["Content-Security-Policy"] = "frame-ancestors *;"

    origin = f"{request.url.scheme}://{request.url.netloc}"
    return HTMLResponse(
        content=EMBED_PAGE.format(chat_url=f"{origin}/embed/chat"), headers=headers
    )


@router.options("")
async def embed_preflight(request: Request):
    origin = request.headers.get("origin") or "*"
    allowed = is_allowed_domain(origin, request.headers.get("host", ""))
    return Response(
        status_code=200,
        headers={
            "Access-Control-Allow-Origin": (
                origin if allowed or not Config.is_production() else "*"
            ),
            "Access-Control-Allow-Methods": "GET, POST, OPTIONS, PUT, DELETE",
            "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Requested-With",
            "Access-Control-Allow-Credentials": "true",
            "Access-Control-Max-Age": "86400",
        },
    )
