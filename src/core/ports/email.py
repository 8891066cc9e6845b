"""
Email Adapter Interface.

Protocol-based interface for sending transactional emails.
Used by post-registration to deliver the account verification link.

Implementation strategies:
1. DevEmailAdapter: Logs emails instead of sending (dev/test)
2. SMTP or provider adapters (future)

All strategies implement the same EmailPort interface.
"""

from __future__ import annotations

import html
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import Protocol


class EmailStatus(Enum):
    """Email send result status."""

    SENT = "sent"
    FAILED = "failed"
    SKIPPED = "skipped"  # Dev adapter or dry-run


@dataclass
class EmailResult:
    """Result of an email send attempt."""

    status: EmailStatus
    message_id: str | None = None
    error: str | None = None
    sent_at: datetime | None = None
    recipient: str = ""

    @classmethod
    def success(cls, recipient: str, message_id: str | None = None) -> EmailResult:
        return cls(
            status=EmailStatus.SENT,
            message_id=message_id,
            recipient=recipient,
            sent_at=datetime.now(UTC),
        )

    @classmethod
    def skipped(cls, recipient: str, reason: str = "Dev mode") -> EmailResult:
        return cls(status=EmailStatus.SKIPPED, recipient=recipient, error=reason)

    @classmethod
    def failed(cls, recipient: str, error: str) -> EmailResult:
        return cls(status=EmailStatus.FAILED, recipient=recipient, error=error)


class EmailPort(Protocol):
    """Email sending interface."""

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> EmailResult:
        """
        Send a transactional email.

        Notes:
            - Must not raise exceptions; return failed status instead
        """
        ...


# --- Templates ---

VALIDATION_SUBJECT = "Please confirm your email address"


def render_validation_email(member_name: str, link: str) -> tuple[str, str, str]:
    """Return (subject, body_html, body_text) for the account verification email."""
    safe_name = html.escape(member_name)
    safe_link = html.escape(link, quote=True)
    body_html = (
        f"<p>Hi {safe_name},</p>"
        f"<p>Thanks for registering. Please confirm your email address:</p>"
        f'<p><a href="{safe_link}">{safe_link}</a></p>'
    )
    body_text = (
        f"Hi {member_name},\n\n"
        f"Thanks for registering. Please confirm your email address:\n{link}\n"
    )
    return VALIDATION_SUBJECT, body_html, body_text
