"""Dashboard route - stats + recent submissions for one form."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..database import get_db
from ..models.base import as_utc
from ..security.tokens import has_dashboard_access
from ..services import form_svc
from ..services.stats_svc import SubmissionStatsEngine
from ..services.submission_store import SubmissionStore
from .deps import base_url, get_stats_engine, get_store

router = APIRouter(tags=["dashboard"])
templates = Jinja2Templates(directory=str(settings.templates_dir))
templates.env.filters["as_utc"] = as_utc


def _pretty_json(value) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=str)


templates.env.filters["pretty_json"] = _pretty_json


@router.get("/dashboard/{form_id}")
async def dashboard(
    request: Request,
    form_id: str,
    db: AsyncSession = Depends(get_db),
    store: SubmissionStore = Depends(get_store),
    stats_engine: SubmissionStatsEngine = Depends(get_stats_engine),
):
    if not has_dashboard_access(request):
        return templates.TemplateResponse(
            request, "login.html", {"form_id": form_id}, status_code=401
        )

    form_obj = await form_svc.get_form(db, form_id)
    if form_obj is None:
        return HTMLResponse("<h1>Form not found</h1>", status_code=404)

    submissions = await store.list(
        form_id, include_spam=True, limit=settings.dashboard_submission_limit
    )
    stats = await stats_engine.stats(form_id)
    return templates.TemplateResponse(request, "dashboard.html", {
        "form_obj": form_obj,
        "stats": stats,
        "submissions": submissions,
        "submit_url": f"{base_url(request)}/api/forms/{form_obj.id}/submit",
        "recent_days": settings.recent_window_days,
    })
