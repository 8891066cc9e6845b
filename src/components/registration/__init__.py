"""
Registration component - Member account creation.

Validates the form, rejects disposable addresses, persists the member,
runs profile steps and records consent.
"""

from .component import RegistrationDeps, run_create_member
from .models import (
    DISPOSABLE_EMAIL,
    EMAIL_CHECK_UNAVAILABLE,
    EMAIL_REQUIRED,
    CreateMemberInput,
    CreateMemberOutput,
    RegistrationError,
    RegistrationRequest,
)
from .ports import (
    AnswerEncryptorPort,
    AttachmentClaimPort,
    LocaleDetectorPort,
    MemberRepoPort,
    PasswordHasherPort,
    PostRegistrationHookPort,
    ProfileFieldRepoPort,
    SecurityAnswerRepoPort,
)

__all__ = [
    # Entry points
    "run_create_member",
    "RegistrationDeps",
    # Models
    "CreateMemberInput",
    "CreateMemberOutput",
    "RegistrationError",
    "RegistrationRequest",
    "DISPOSABLE_EMAIL",
    "EMAIL_CHECK_UNAVAILABLE",
    "EMAIL_REQUIRED",
    # Ports
    "AnswerEncryptorPort",
    "AttachmentClaimPort",
    "LocaleDetectorPort",
    "MemberRepoPort",
    "PasswordHasherPort",
    "PostRegistrationHookPort",
    "ProfileFieldRepoPort",
    "SecurityAnswerRepoPort",
]
