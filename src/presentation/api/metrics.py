"""
Prometheus Metrics Endpoint.

Exposes /metrics for the Prometheus scraper. Metrics are defined and
recorded in src/observability/metrics.py.

    curl http://localhost:3001/metrics
"""

from fastapi import APIRouter, Response
from src.observability.metrics import get_metrics_content


router = APIRouter(prefix="/metrics", tags=["observability"])


@router.get("")
async def metrics():
    """Return metrics in Prometheus text format."""
    content, content_type = get_metrics_content()
    return Response(content=content, media_type=content_type)
