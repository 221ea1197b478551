"""Prometheus metrics for the collaborator endpoints."""

from __future__ import annotations

import time
from typing import Callable

from fastapi import APIRouter, Request, Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

METRICS_PATH = "/metrics"
UNMATCHED = "unmatched"

REQUEST_COUNTER = Counter(
    "prepview_api_requests_total",
    "Requests handled, by route template",
    labelnames=("route", "method", "status"),
)

REQUEST_LATENCY = Histogram(
    "prepview_api_request_latency_seconds",
    "Request latency by route template",
    labelnames=("route", "method"),
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

TRANSCRIPTION_COUNTER = Counter(
    "prepview_transcriptions_total",
    "Transcription requests by provider and outcome",
    labelnames=("provider", "status"),
)

GENERATION_COUNTER = Counter(
    "prepview_generations_total",
    "Answer generation requests by outcome",
    labelnames=("status",),
)

router = APIRouter()


@router.get(METRICS_PATH, include_in_schema=False)
async def metrics_endpoint() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)


def route_label(request: Request) -> str:
    """Route template for matched requests; everything else shares one label."""

    route = request.scope.get("route")
    return getattr(route, "path", None) or UNMATCHED


def instrument_app(app):
    @app.middleware("http")
    async def record_request(request: Request, call_next: Callable):  # type: ignore
        if request.url.path == METRICS_PATH:
            return await call_next(request)
        started = time.perf_counter()
        response = await call_next(request)
        route = route_label(request)
        REQUEST_COUNTER.labels(route=route, method=request.method, status=response.status_code).inc()
        REQUEST_LATENCY.labels(route=route, method=request.method).observe(time.perf_counter() - started)
        return response

    return app
