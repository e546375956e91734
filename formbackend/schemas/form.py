"""Form and submission schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_serializer

from ..models.base import as_utc


class FormCreate(BaseModel):
    name: str | None = None
    owner_email: str = ""
    honeypot_field: str | None = None


class FormResponse(BaseModel):
    id: str
    name: str | None = None
    owner_email: str
    honeypot_field: str
    created_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime | None) -> str | None:
        value = as_utc(value)
        return value.isoformat() if value else None


class SubmissionResponse(BaseModel):
    id: str
    form_id: str
    data: dict
    ip_address: str | None = None
    user_agent: str | None = None
    is_spam: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime | None) -> str | None:
        value = as_utc(value)
        return value.isoformat() if value else None


class SubmissionStatsResponse(BaseModel):
    total: int
    spam_count: int
    recent_count: int

    model_config = {"from_attributes": True}
