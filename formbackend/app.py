"""FastAPI application factory for the form backend."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncEngine

from .config import settings
from .database import build_session_factory, engine as default_engine, init_models
from .security.rate_limit import SlidingWindowRateLimiter
from .services.ingest_svc import IngestionPipeline
from .services.notify_svc import NotificationChannel, NotificationDispatcher, build_channel
from .services.stats_svc import SubmissionStatsEngine
from .services.submission_store import SubmissionStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.auto_create_tables:
        await init_models(app.state.engine)
    yield
    await app.state.dispatcher.drain(timeout=settings.notification_drain_seconds)


def create_app(
    engine: AsyncEngine | None = None,
    rate_limiter: SlidingWindowRateLimiter | None = None,
    channel: NotificationChannel | None = None,
) -> FastAPI:
    app = FastAPI(title=settings.app_title, lifespan=lifespan)

    if engine is None:
        engine = default_engine
    session_factory = build_session_factory(engine)
    if rate_limiter is None:
        rate_limiter = SlidingWindowRateLimiter(
            window_seconds=settings.rate_limit_window_seconds,
            max_points=settings.rate_limit_points,
        )
    if channel is None:
        channel = build_channel()
    store = SubmissionStore(session_factory)
    dispatcher = NotificationDispatcher(channel, settings.public_base_url)

    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.rate_limiter = rate_limiter
    app.state.store = store
    app.state.dispatcher = dispatcher
    app.state.stats_engine = SubmissionStatsEngine(
        session_factory, store, recent_window=timedelta(days=settings.recent_window_days)
    )
    app.state.pipeline = IngestionPipeline(
        session_factory,
        rate_limiter,
        store,
        dispatcher,
        default_honeypot_field=settings.default_honeypot_field,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"error": "Something went wrong"}, status_code=500)

    from .routers import dashboard, forms, health

    app.include_router(forms.router)
    app.include_router(dashboard.router)
    app.include_router(health.router)
    return app


app = create_app()
