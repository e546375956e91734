"""Form backend models - re-exports all models and Base.metadata."""

from .base import Base, CreatedAtMixin, StringIDMixin
from .form import DEFAULT_HONEYPOT_FIELD, Form, Submission

__all__ = [
    "Base",
    "CreatedAtMixin",
    "StringIDMixin",
    "DEFAULT_HONEYPOT_FIELD",
    "Form",
    "Submission",
]
