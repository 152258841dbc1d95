"""Prometheus metrics endpoint."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

router = APIRouter()


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint.

    Exposes all registered Prometheus metrics including:
    - tender_completion_calls_total{stage, outcome}
    - tender_completion_retries_total
    - tender_summary_cache_hits_total{role}
    - tender_embedding_failures_total{reason}
    - tender_generation_duration_ms{status}
    """
    metrics_output = generate_latest()
    return Response(content=metrics_output, media_type=CONTENT_TYPE_LATEST)
