"""Error taxonomy for the submission pipeline."""

from __future__ import annotations


class FormBackendError(Exception):
    """Base class for service-level errors."""


class NotFoundError(FormBackendError):
    """Raised when a referenced record does not exist."""


class FormNotFound(NotFoundError):
    def __init__(self, form_id: str) -> None:
        super().__init__(f"Form '{form_id}' not found")
        self.form_id = form_id


class RateLimitExceeded(FormBackendError):
    """Raised when a key has used up its admissions for the current window."""

    def __init__(self, key: str, retry_after: int) -> None:
        super().__init__(f"Rate limit exceeded for '{key}', retry in {retry_after}s")
        self.key = key
        self.retry_after = retry_after


class StorageFailure(FormBackendError):
    """Raised when the underlying database cannot complete a read or write."""


class NotificationFailure(FormBackendError):
    """Raised by notification channels; always absorbed by the dispatcher."""
