"""Owner notifications for new submissions (best effort, never awaited by callers)."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Protocol

from jinja2 import Environment, FileSystemLoader, select_autoescape

from ..config import settings
from ..models.base import as_utc
from ..models.form import Submission
from .errors import NotificationFailure

logger = logging.getLogger(__name__)

_email_templates = Environment(
    loader=FileSystemLoader(str(settings.templates_dir)),
    autoescape=select_autoescape(["html"]),
)


@dataclass(frozen=True)
class Notification:
    recipient: str
    subject: str
    text: str
    html: str


class NotificationChannel(Protocol):
    async def send(self, message: Notification) -> None: ...


class LogNotificationChannel:
    """Writes the notification to the log instead of delivering it."""

    async def send(self, message: Notification) -> None:
        logger.info(
            "Notification to %s: %s\n%s", message.recipient, message.subject, message.text
        )


class SendGridNotificationChannel:
    """Delivers notifications through the SendGrid v3 API."""

    def __init__(self, api_key: str, from_email: str, from_name: str | None = None) -> None:
        self._api_key = api_key
        self._from_email = from_email
        self._from_name = from_name

    async def send(self, message: Notification) -> None:
        # The SDK is blocking; keep it off the event loop.
        await asyncio.to_thread(self._send_sync, message)

    def _send_sync(self, message: Notification) -> None:
        import sendgrid
        from sendgrid.helpers.mail import Content, Email, Mail, To

        sg = sendgrid.SendGridAPIClient(api_key=self._api_key)
        mail = Mail(
            from_email=Email(self._from_email, self._from_name),
            to_emails=To(message.recipient),
            subject=message.subject,
            plain_text_content=Content("text/plain", message.text),
            html_content=Content("text/html", message.html),
        )
        response = sg.client.mail.send.post(request_body=mail.get())
        status = getattr(response, "status_code", 202)
        if status >= 400:
            raise NotificationFailure(f"SendGrid rejected message with status {status}")


def build_channel() -> NotificationChannel:
    if settings.sendgrid_configured:
        return SendGridNotificationChannel(
            settings.sendgrid_api_key,
            settings.sendgrid_from_email,
            settings.sendgrid_from_name,
        )
    return LogNotificationChannel()


def compose(
    recipient: str, form_label: str, submission: Submission, dashboard_url: str,
) -> Notification:
    subject = f'New submission on "{form_label}"'
    if submission.is_spam:
        subject = f"[SPAM] {subject}"

    created = as_utc(submission.created_at)
    payload = json.dumps(submission.data or {}, indent=2, ensure_ascii=False, default=str)
    text = "\n".join([
        "New form submission received:",
        "",
        payload,
        "",
        "---",
        f"Submission ID: {submission.id}",
        f"Time: {created.isoformat() if created else ''}",
        f"IP: {submission.ip_address or 'N/A'}",
        "** Flagged as SPAM **" if submission.is_spam else "",
        "",
        f"View all submissions: {dashboard_url}",
    ])
    html = _email_templates.get_template("email/submission.html").render(
        form_label=form_label,
        submission=submission,
        created=created,
        payload=payload,
        dashboard_url=dashboard_url,
    )
    return Notification(recipient=recipient, subject=subject, text=text, html=html)


class NotificationDispatcher:
    """Fire-and-forget delivery of submission alerts.

    ``notify`` schedules delivery on the running loop and returns at once.
    Failures are logged and dropped; nothing is retried.
    """

    def __init__(self, channel: NotificationChannel, dashboard_base_url: str) -> None:
        self.channel = channel
        self._dashboard_base_url = dashboard_base_url.rstrip("/")
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def notify(self, recipient: str, form_label: str, submission: Submission) -> None:
        try:
            task = asyncio.get_running_loop().create_task(
                self._deliver(recipient, form_label, submission),
                name=f"notify-{submission.id}",
            )
        except Exception:
            logger.warning("Could not schedule notification for %s", submission.id, exc_info=True)
            return
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, recipient: str, form_label: str, submission: Submission) -> None:
        try:
            dashboard_url = f"{self._dashboard_base_url}/dashboard/{submission.form_id}"
            message = compose(recipient, form_label, submission, dashboard_url)
            await self.channel.send(message)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.warning(
                "Notification for submission %s failed", submission.id, exc_info=True
            )

    async def drain(self, timeout: float | None = None) -> None:
        """Wait for in-flight notifications, e.g. during shutdown."""
        if not self._pending:
            return
        done, pending = await asyncio.wait(set(self._pending), timeout=timeout)
        if pending:
            logger.warning("%d notification(s) still pending after drain", len(pending))
