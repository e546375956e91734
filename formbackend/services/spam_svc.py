"""Honeypot spam classification."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from ..models.form import DEFAULT_HONEYPOT_FIELD


@dataclass(frozen=True)
class SpamVerdict:
    is_spam: bool


def resolve_honeypot_field(name: str | None, default: str = DEFAULT_HONEYPOT_FIELD) -> str:
    name = (name or "").strip()
    return name or default


def classify(honeypot_field: str, fields: Mapping[str, Any]) -> SpamVerdict:
    """Flag a submission as spam when its honeypot field carries a non-blank value.

    The honeypot is hidden from humans, so any content there came from a script
    that fills every input it finds. Nothing else about the submission is inspected.
    """
    value = fields.get(resolve_honeypot_field(honeypot_field))
    if not value:
        return SpamVerdict(is_spam=False)
    return SpamVerdict(is_spam=str(value).strip() != "")
