"""
Email check component - Disposable email detection.
"""

from .component import AllowAllEmailVerifier, run_check_email
from .models import (
    CheckEmailInput,
    EmailCheckError,
    EmailCheckOutput,
    EmailCheckResult,
    EmailCheckStatus,
)
from .ports import EmailVerifierPort

__all__ = [
    # Entry points
    "run_check_email",
    # Models
    "CheckEmailInput",
    "EmailCheckError",
    "EmailCheckOutput",
    "EmailCheckResult",
    "EmailCheckStatus",
    # Ports
    "EmailVerifierPort",
    # Verifiers
    "AllowAllEmailVerifier",
]
