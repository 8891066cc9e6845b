"""
Post-registration component - Validation handling, sign-in and pending posts.
"""

from .component import (
    ACCESS_TOKEN_TTL_MINUTES,
    PostRegistrationHook,
    build_validation_url,
    run_post_registration,
)
from .models import PostRegistrationInput, PostRegistrationOutput
from .ports import (
    MemberSaverPort,
    PendingPostRepoPort,
    TokenIssuerPort,
    ValidationRepoPort,
)

__all__ = [
    # Entry points
    "run_post_registration",
    "build_validation_url",
    "PostRegistrationHook",
    "ACCESS_TOKEN_TTL_MINUTES",
    # Models
    "PostRegistrationInput",
    "PostRegistrationOutput",
    # Ports
    "MemberSaverPort",
    "PendingPostRepoPort",
    "TokenIssuerPort",
    "ValidationRepoPort",
]
