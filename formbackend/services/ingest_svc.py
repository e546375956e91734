"""Submission ingestion: rate limit, classify, store, notify."""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from typing import Any, Mapping

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models.form import DEFAULT_HONEYPOT_FIELD, Form, Submission
from ..security.rate_limit import SlidingWindowRateLimiter
from . import form_svc, spam_svc
from .errors import FormNotFound, RateLimitExceeded, StorageFailure
from .notify_svc import NotificationDispatcher
from .submission_store import SubmissionStore

logger = logging.getLogger(__name__)


class IngestStatus(str, enum.Enum):
    ACCEPTED = "accepted"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    INTERNAL_ERROR = "internal_error"


@dataclass(frozen=True)
class IngestOutcome:
    status: IngestStatus
    retry_after: int = 0
    # Populated on ACCEPTED for server-side use only; never echoed to submitters.
    submission: Submission | None = None

    @property
    def accepted(self) -> bool:
        return self.status is IngestStatus.ACCEPTED


class IngestionPipeline:
    """Runs one inbound submission through admission, classification, storage and alerting.

    Rate limiting is keyed on the form id and runs before the form lookup, so
    floods against unknown ids are throttled as well. Once a submission is
    stored, nothing downstream can turn the outcome into a failure.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        rate_limiter: SlidingWindowRateLimiter,
        store: SubmissionStore,
        dispatcher: NotificationDispatcher,
        default_honeypot_field: str = DEFAULT_HONEYPOT_FIELD,
    ) -> None:
        self._session_factory = session_factory
        self.rate_limiter = rate_limiter
        self.store = store
        self.dispatcher = dispatcher
        self._default_honeypot_field = default_honeypot_field

    async def ingest(
        self,
        form_id: str,
        fields: Mapping[str, Any],
        remote_address: str | None = None,
        client_descriptor: str | None = None,
    ) -> IngestOutcome:
        try:
            self._admit(form_id)
            form = await self._find_form(form_id)
            verdict = spam_svc.classify(
                spam_svc.resolve_honeypot_field(form.honeypot_field, self._default_honeypot_field),
                fields,
            )
            submission = await self.store.append(Submission(
                form_id=form.id,
                data=dict(fields),
                ip_address=remote_address,
                user_agent=client_descriptor,
                is_spam=verdict.is_spam,
            ))
        except RateLimitExceeded as exc:
            logger.info("Rate limited submission to form %s", form_id)
            return IngestOutcome(IngestStatus.RATE_LIMITED, retry_after=exc.retry_after)
        except FormNotFound:
            logger.info("Submission to unknown form %s", form_id)
            return IngestOutcome(IngestStatus.NOT_FOUND)
        except StorageFailure:
            logger.exception("Submission to form %s could not be stored", form_id)
            return IngestOutcome(IngestStatus.INTERNAL_ERROR)

        self.dispatcher.notify(form.owner_email, form.label, submission)
        return IngestOutcome(IngestStatus.ACCEPTED, submission=submission)

    def _admit(self, form_id: str) -> None:
        decision = self.rate_limiter.admit(form_id)
        if not decision.allowed:
            raise RateLimitExceeded(form_id, decision.retry_after)

    async def _find_form(self, form_id: str) -> Form:
        try:
            async with self._session_factory() as db:
                form = await form_svc.get_form(db, form_id)
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Could not load form '{form_id}'") from exc
        if form is None:
            raise FormNotFound(form_id)
        return form
