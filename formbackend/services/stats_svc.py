"""Aggregate submission statistics for the dashboard."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from . import form_svc
from .errors import FormNotFound, StorageFailure
from .submission_store import SubmissionStore

RECENT_WINDOW = timedelta(days=7)


@dataclass(frozen=True)
class SubmissionStats:
    total: int
    spam_count: int
    recent_count: int

    @property
    def legit_count(self) -> int:
        return self.total - self.spam_count


class SubmissionStatsEngine:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        store: SubmissionStore,
        recent_window: timedelta = RECENT_WINDOW,
    ) -> None:
        self._session_factory = session_factory
        self._store = store
        self._recent_window = recent_window

    async def stats(self, form_id: str) -> SubmissionStats:
        """Totals for a form; the recent window is re-evaluated against now on every call."""
        try:
            async with self._session_factory() as db:
                form = await form_svc.get_form(db, form_id)
        except SQLAlchemyError as exc:
            raise StorageFailure(f"Could not load form '{form_id}'") from exc
        if form is None:
            raise FormNotFound(form_id)

        return SubmissionStats(
            total=await self._store.count(form_id),
            spam_count=await self._store.count(form_id, spam_only=True),
            recent_count=await self._store.count(
                form_id, spam_only=False, since=self._recent_window
            ),
        )
