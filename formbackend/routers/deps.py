"""FastAPI dependencies resolving the app-scoped pipeline components."""

from __future__ import annotations

from fastapi import Request

from ..services.ingest_svc import IngestionPipeline
from ..services.stats_svc import SubmissionStatsEngine
from ..services.submission_store import SubmissionStore


def get_pipeline(request: Request) -> IngestionPipeline:
    return request.app.state.pipeline


def get_store(request: Request) -> SubmissionStore:
    return request.app.state.store


def get_stats_engine(request: Request) -> SubmissionStatsEngine:
    return request.app.state.stats_engine


def client_ip(request: Request) -> str | None:
    forwarded = request.headers.get("x-forwarded-for", "").split(",", 1)[0].strip()
    if forwarded:
        return forwarded[:64]
    if request.client and request.client.host:
        return str(request.client.host)[:64]
    return None


def base_url(request: Request) -> str:
    return str(request.base_url).rstrip("/")
