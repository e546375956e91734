"""Form routes - registration, public submission, submissions API."""

from __future__ import annotations

import json

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import UploadFile

from ..config import settings
from ..database import get_db
from ..schemas.form import FormCreate, FormResponse, SubmissionResponse, SubmissionStatsResponse
from ..security.tokens import has_dashboard_access
from ..services import form_svc
from ..services.errors import FormNotFound
from ..services.ingest_svc import IngestionPipeline, IngestStatus
from ..services.stats_svc import SubmissionStatsEngine
from ..services.submission_store import SubmissionStore
from .deps import base_url, client_ip, get_pipeline, get_stats_engine, get_store

router = APIRouter(prefix="/api/forms", tags=["forms"])


class BadBody(ValueError):
    pass


def _error(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse({"error": message}, status_code=status_code, headers=headers)


async def _read_body(request: Request) -> dict:
    """Decode a JSON object or an urlencoded/multipart form into a plain dict."""
    content_type = request.headers.get("content-type", "").lower()
    if "application/json" in content_type:
        try:
            payload = json.loads(await request.body() or b"null")
        except ValueError as exc:
            raise BadBody("Malformed JSON body") from exc
        if not isinstance(payload, dict):
            raise BadBody("Submission body must be a JSON object")
        return payload

    form = await request.form()
    data: dict = {}
    for key in form.keys():
        values = [v.filename if isinstance(v, UploadFile) else v for v in form.getlist(key)]
        data[key] = values[0] if len(values) == 1 else values
    return data


def _endpoints(request: Request, form_id: str) -> dict:
    root = base_url(request)
    return {
        "submit": f"{root}/api/forms/{form_id}/submit",
        "dashboard": f"{root}/dashboard/{form_id}",
        "submissions_api": f"{root}/api/forms/{form_id}/submissions",
    }


def _html_example(submit_url: str, honeypot_field: str) -> str:
    return (
        f'<form action="{submit_url}" method="POST">\n'
        '  <input type="text" name="name" placeholder="Your Name" required>\n'
        '  <input type="email" name="email" placeholder="Your Email" required>\n'
        f'  <input type="text" name="{honeypot_field}" style="display:none" tabindex="-1" autocomplete="off">\n'
        '  <button type="submit">Send</button>\n'
        "</form>"
    )


@router.post("/create")
async def form_create(request: Request, db: AsyncSession = Depends(get_db)):
    try:
        payload = FormCreate.model_validate(await _read_body(request))
    except (BadBody, ValidationError):
        return _error(400, "Valid owner_email required")

    try:
        form = await form_svc.create_form(
            db,
            owner_email=payload.owner_email,
            name=payload.name,
            honeypot_field=payload.honeypot_field,
            default_honeypot_field=settings.default_honeypot_field,
        )
    except form_svc.InvalidFormData as exc:
        return _error(400, str(exc))

    endpoints = _endpoints(request, form.id)
    form_out = FormResponse.model_validate(form).model_dump(
        mode="json", include={"id", "name", "owner_email", "created_at"}
    )
    return JSONResponse(
        {
            "success": True,
            "form": form_out,
            "endpoints": endpoints,
            "integration": {
                "html_example": _html_example(endpoints["submit"], form.honeypot_field),
            },
        },
        status_code=201,
    )


@router.post("/{form_id}/submit")
async def form_submit(
    request: Request,
    form_id: str,
    pipeline: IngestionPipeline = Depends(get_pipeline),
):
    try:
        fields = await _read_body(request)
    except BadBody as exc:
        return _error(400, str(exc))

    outcome = await pipeline.ingest(
        form_id,
        fields,
        remote_address=client_ip(request),
        client_descriptor=request.headers.get("user-agent"),
    )

    if outcome.status is IngestStatus.RATE_LIMITED:
        return _error(429, "Too many requests", headers={"Retry-After": str(outcome.retry_after)})
    if outcome.status is IngestStatus.NOT_FOUND:
        return _error(404, "Form not found")
    if outcome.status is IngestStatus.INTERNAL_ERROR:
        return _error(500, "Submission failed")
    # Same body for spam and legitimate submissions.
    return {"success": True, "message": "Submission received"}


@router.get("/{form_id}/submissions")
async def form_submissions(
    request: Request,
    form_id: str,
    spam: str | None = None,
    db: AsyncSession = Depends(get_db),
    store: SubmissionStore = Depends(get_store),
    stats_engine: SubmissionStatsEngine = Depends(get_stats_engine),
):
    if not has_dashboard_access(request):
        return _error(401, "Unauthorized")

    form = await form_svc.get_form(db, form_id)
    if form is None:
        return _error(404, "Form not found")

    try:
        submissions = await store.list(form_id, include_spam=spam == "true")
        stats = await stats_engine.stats(form_id)
    except FormNotFound:
        return _error(404, "Form not found")

    return {
        "success": True,
        "form": FormResponse.model_validate(form).model_dump(mode="json"),
        "count": len(submissions),
        "stats": SubmissionStatsResponse.model_validate(stats).model_dump(),
        "submissions": [
            SubmissionResponse.model_validate(s).model_dump(mode="json") for s in submissions
        ],
    }
