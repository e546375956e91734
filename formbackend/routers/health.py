"""Health, readiness and index routes."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from .. import __version__
from ..database import get_db

router = APIRouter()


@router.get("/health")
async def health_check():
    return {
        "status": "ok",
        "service": "formbackend",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/ready")
async def readiness_check(db: AsyncSession = Depends(get_db)):
    await db.execute(text("SELECT 1"))
    return {"status": "ready", "service": "formbackend"}


@router.get("/")
async def index():
    return {
        "service": "Form Backend-as-a-Service",
        "version": __version__,
        "endpoints": {
            "create_form": "POST /api/forms/create",
            "submit": "POST /api/forms/:formId/submit",
            "submissions_api": "GET /api/forms/:formId/submissions?token=xxx",
            "dashboard": "GET /dashboard/:formId?token=xxx",
        },
    }
