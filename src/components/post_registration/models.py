"""
Post-registration component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.core.ports.email import EmailResult
from src.domain.entities import Member, PendingPost, ValidationMode, ValidationRequest


@dataclass(frozen=True)
class PostRegistrationInput:
    member: Member
    validation_mode: ValidationMode
    base_url: str
    pending_post: PendingPost | None = None
    ref_url: str | None = None


@dataclass
class PostRegistrationOutput:
    member: Member
    validating: bool = False
    access_token: str | None = None
    validation_request: ValidationRequest | None = None
    email_result: EmailResult | None = None
    pending_post_id: int | None = None
