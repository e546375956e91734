"""Form service - register, look up and remove forms."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.form import DEFAULT_HONEYPOT_FIELD, Form
from .spam_svc import resolve_honeypot_field


class InvalidFormData(ValueError):
    """Raised when form registration input is rejected."""


def _normalize_email(email: str | None) -> str:
    return (email or "").strip()


async def list_forms(db: AsyncSession) -> list[Form]:
    stmt = select(Form).order_by(Form.created_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_form(db: AsyncSession, form_id: str) -> Form | None:
    return await db.get(Form, form_id)


async def create_form(
    db: AsyncSession,
    owner_email: str,
    name: str | None = None,
    honeypot_field: str | None = None,
    default_honeypot_field: str = DEFAULT_HONEYPOT_FIELD,
) -> Form:
    owner_email = _normalize_email(owner_email)
    if not owner_email or "@" not in owner_email:
        raise InvalidFormData("Valid owner_email required")
    if honeypot_field and len(honeypot_field.strip()) > 50:
        raise InvalidFormData("honeypot_field must be at most 50 characters")

    form = Form(
        name=(name or "").strip() or None,
        owner_email=owner_email,
        honeypot_field=resolve_honeypot_field(honeypot_field, default_honeypot_field),
    )
    db.add(form)
    await db.commit()
    await db.refresh(form)
    return form


async def delete_form(db: AsyncSession, form_id: str) -> bool:
    """Delete a form; its submissions go with it."""
    form = await db.get(Form, form_id)
    if not form:
        return False
    await db.delete(form)
    await db.commit()
    return True
