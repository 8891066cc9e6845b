"""
Dev Email Adapter.

Logs emails instead of sending them. Used for local development and tests.

Key behaviors:
- Logs email details through the module logger
- Returns SKIPPED status (not SENT)
- Stores emails in memory for test assertions
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4

from src.core.ports.email import EmailResult

logger = logging.getLogger(__name__)


@dataclass
class SentEmail:
    """Record of a logged email for test assertions."""

    id: str
    recipient: str
    subject: str
    body_html: str
    body_text: str
    logged_at: datetime


@dataclass
class DevEmailAdapter:
    """
    Dev email adapter that logs instead of sending.

    Implements EmailPort protocol.
    """

    sent_emails: list[SentEmail] = field(default_factory=list)

    log_level: int = logging.INFO
    log_body: bool = False
    body_preview_length: int = 100

    def send_email(
        self,
        recipient: str,
        subject: str,
        body_html: str,
        body_text: str | None = None,
    ) -> EmailResult:
        message_id = f"dev-{uuid4().hex[:12]}"

        self.sent_emails.append(
            SentEmail(
                id=message_id,
                recipient=recipient,
                subject=subject,
                body_html=body_html,
                body_text=body_text or "",
                logged_at=datetime.now(UTC),
            )
        )

        parts = [f"EMAIL (dev): To={recipient}", f"Subject={subject}"]
        if self.log_body and body_html:
            preview = body_html[: self.body_preview_length]
            if len(body_html) > self.body_preview_length:
                preview += "..."
            parts.append(f"Body={preview}")
        parts.append(f"MessageID={message_id}")
        logger.log(self.log_level, ", ".join(parts))

        return EmailResult.skipped(recipient, "Dev mode - email logged, not sent")

    # --- Test Helper Methods ---

    def get_last_email(self) -> SentEmail | None:
        return self.sent_emails[-1] if self.sent_emails else None

    def get_emails_to(self, recipient: str) -> list[SentEmail]:
        return [e for e in self.sent_emails if e.recipient == recipient]

    def clear(self) -> None:
        self.sent_emails.clear()
