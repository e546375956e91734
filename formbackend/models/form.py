"""Form and Submission models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, CreatedAtMixin, StringIDMixin, as_utc

DEFAULT_HONEYPOT_FIELD = "_website"


class Form(StringIDMixin, CreatedAtMixin, Base):
    __tablename__ = "form"

    name: Mapped[str | None] = mapped_column(String(255), default=None)
    owner_email: Mapped[str] = mapped_column(String(255))
    honeypot_field: Mapped[str] = mapped_column(String(50), default=DEFAULT_HONEYPOT_FIELD)

    # Relationships
    submissions: Mapped[list["Submission"]] = relationship(
        back_populates="form", cascade="all, delete-orphan", passive_deletes=True,
        order_by=lambda: [Submission.created_at.desc(), Submission.seq.desc()],
    )

    @property
    def label(self) -> str:
        return self.name or "Your form"


class Submission(StringIDMixin, Base):
    __tablename__ = "submission"
    __table_args__ = (
        UniqueConstraint("form_id", "seq", name="uq_submission_form_seq"),
        Index("ix_submission_form_created", "form_id", "created_at"),
    )

    form_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("form.id", ondelete="CASCADE"), index=True
    )
    # Per-form insertion order; breaks ties between identical timestamps.
    seq: Mapped[int] = mapped_column(Integer, default=0)
    data: Mapped[dict] = mapped_column(JSON, default=dict)
    ip_address: Mapped[str | None] = mapped_column(String(64), default=None)
    user_agent: Mapped[str | None] = mapped_column(Text, default=None)
    is_spam: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)

    # Relationships
    form: Mapped["Form"] = relationship(back_populates="submissions")

    def to_dict(self) -> dict:
        created = as_utc(self.created_at)
        return {
            "id": self.id,
            "form_id": self.form_id,
            "data": self.data,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "is_spam": self.is_spam,
            "created_at": created.isoformat() if created else None,
        }
