"""Submission store - durable, per-form ordered log of submissions."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator, Callable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..models.base import as_utc, new_id, utcnow
from ..models.form import Form, Submission
from .errors import FormNotFound, StorageFailure

logger = logging.getLogger(__name__)


class SubmissionStore:
    """Append, list and count submissions for a form.

    Appends to one form are serialized in-process so that sequence numbers and
    timestamps are assigned without races. The ``(form_id, seq)`` unique
    constraint backs this up when several processes share a database.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_users: Counter[str] = Counter()

    def now(self) -> datetime:
        return self._clock()

    @asynccontextmanager
    async def _form_lock(self, form_id: str) -> AsyncIterator[None]:
        """Hold the append lock for a form; dropped once no caller needs it."""
        lock = self._locks.setdefault(form_id, asyncio.Lock())
        self._lock_users[form_id] += 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[form_id] -= 1
            if not self._lock_users[form_id]:
                del self._lock_users[form_id]
                del self._locks[form_id]

    async def append(self, submission: Submission) -> Submission:
        form_id = submission.form_id
        async with self._form_lock(form_id):
            try:
                async with self._session_factory() as db:
                    await _require_form(db, form_id)

                    last_seq, last_created = (await db.execute(
                        select(func.max(Submission.seq), func.max(Submission.created_at))
                        .where(Submission.form_id == form_id)
                    )).one()

                    if not submission.id:
                        submission.id = new_id()
                    created = as_utc(submission.created_at) or self.now()
                    last_created = as_utc(last_created)
                    if last_created is not None and created < last_created:
                        created = last_created
                    submission.created_at = created
                    submission.seq = (last_seq if last_seq is not None else -1) + 1
                    if submission.data is None:
                        submission.data = {}

                    db.add(submission)
                    await db.commit()
            except SQLAlchemyError as exc:
                raise StorageFailure(f"Could not store submission for form '{form_id}'") from exc

        logger.debug("Stored submission %s for form %s (spam=%s)", submission.id, form_id, submission.is_spam)
        return submission

    async def list(
        self, form_id: str, include_spam: bool = False, limit: int | None = None,
    ) -> list[Submission]:
        stmt = select(Submission).where(Submission.form_id == form_id)
        if not include_spam:
            stmt = stmt.where(Submission.is_spam.is_(False))
        stmt = stmt.order_by(Submission.created_at.desc(), Submission.seq.desc())
        if limit is not None:
            stmt = stmt.limit(limit)

        try:
            async with self._session_factory() as db:
                await _require_form(db, form_id)
                result = await db.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Could not list submissions for form '{form_id}'") from exc

    async def count(
        self,
        form_id: str,
        spam_only: bool | None = None,
        since: timedelta | None = None,
    ) -> int:
        """Count a form's submissions.

        ``spam_only`` of None counts both kinds; True/False restricts to one.
        ``since`` keeps only submissions created within that long of now.
        """
        stmt = select(func.count()).select_from(Submission).where(Submission.form_id == form_id)
        if spam_only is not None:
            stmt = stmt.where(Submission.is_spam.is_(spam_only))
        if since is not None:
            stmt = stmt.where(Submission.created_at >= self.now() - since)

        try:
            async with self._session_factory() as db:
                return (await db.execute(stmt)).scalar() or 0
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Could not count submissions for form '{form_id}'") from exc


async def _require_form(db: AsyncSession, form_id: str) -> Form:
    form = await db.get(Form, form_id)
    if form is None:
        raise FormNotFound(form_id)
    return form
