"""Prometheus scrape endpoint.

Returns the text exposition format, e.g.:

  # TYPE course_progress_recomputes_total counter
  course_progress_recomputes_total 42.0
  cache_operations_total{operation="hit"} 310.0

Restrict access to /metrics at the ingress in production.
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
