"""Shared-secret check for the submissions API and dashboard."""

from __future__ import annotations

import hmac

from fastapi import Request

from ..config import settings


def _extract_token(request: Request) -> str:
    return (
        request.query_params.get("token", "").strip()
        or request.headers.get("x-dashboard-token", "").strip()
    )


def has_dashboard_access(request: Request) -> bool:
    """True when the request carries the configured dashboard token.

    With no token configured every request is refused.
    """
    expected = settings.dashboard_auth_token.strip()
    if not expected:
        return False
    provided = _extract_token(request)
    return bool(provided) and hmac.compare_digest(provided, expected)
