"""
Prometheus metrics endpoint for monitoring infrastructure.

Public, unauthenticated, following standard Prometheus practice. Exposes
the service operation timings and calendar cache counters.
"""

from fastapi import APIRouter, Response

from app.monitoring.prometheus_metrics import prometheus_metrics

router = APIRouter()


@router.get("/prometheus", include_in_schema=False, response_class=Response, response_model=None)
def get_prometheus_metrics() -> Response:
    """
    Expose Prometheus metrics for scraping.

    Returns:
        Response with Prometheus exposition format (text/plain)
    """
    return Response(
        content=prometheus_metrics.get_metrics(),
        media_type=prometheus_metrics.get_content_type(),
        headers={
            "Cache-Control": "no-cache, no-store, must-revalidate",
            "Pragma": "no-cache",
            "Expires": "0",
        },
    )
