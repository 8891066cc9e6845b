"""
Registration component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.components.post_registration import PostRegistrationOutput
from src.domain.entities import Member, PendingPost

# --- Errors ---


@dataclass(frozen=True)
class RegistrationError:
    """User-facing registration failure."""

    code: str
    message: str
    status_code: int = 403


EMAIL_REQUIRED = RegistrationError(
    code="email_required_error",
    message="Email address is required.",
)
DISPOSABLE_EMAIL = RegistrationError(
    code="disposable_email_error",
    message="Disposable email addresses are not allowed.",
)
EMAIL_CHECK_UNAVAILABLE = RegistrationError(
    code="email_check_unavailable",
    message="We could not verify your email address right now. Please try again later.",
    status_code=503,
)


# --- Input Models ---


@dataclass(frozen=True)
class RegistrationRequest:
    """Request-scoped data the procedure reads besides the form."""

    language_cookie: str | None = None
    accept_language: str | None = None
    session_key: str | None = None  # Temporary upload session for editor fields
    ref_url: str | None = None


@dataclass(frozen=True)
class CreateMemberInput:
    """
    Input for creating a member.

    values: submitted registration form values
    profile_fields: custom profile field values keyed "field_<id>"
    pending_post: a post submitted before registering, if any
    """

    values: dict[str, Any]
    profile_fields: dict[str, Any] = field(default_factory=dict)
    pending_post: PendingPost | None = None
    request: RegistrationRequest = field(default_factory=RegistrationRequest)


# --- Output Models ---


@dataclass
class CreateMemberOutput:
    member: Member | None = None
    success: bool = False
    error: RegistrationError | None = None
    post_registration: PostRegistrationOutput | None = None
