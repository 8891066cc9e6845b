"""
Email check component - Disposable email detection.

Wraps an EmailVerifierPort and applies the configured failure policy:
- "open": an inconclusive check lets the address through
- "closed": an inconclusive check rejects the address
"""

from __future__ import annotations

import logging

from src.config.models import FailurePolicy

from .models import CheckEmailInput, EmailCheckOutput, EmailCheckResult
from .ports import EmailVerifierPort

logger = logging.getLogger(__name__)


def run_check_email(
    inp: CheckEmailInput,
    *,
    verifier: EmailVerifierPort,
    failure_policy: FailurePolicy = "open",
) -> EmailCheckOutput:
    """
    Check whether an email address may be used for registration.

    Args:
        inp: Input containing the email address.
        verifier: Verifier port.
        failure_policy: How to treat an inconclusive verdict.

    Returns:
        EmailCheckOutput with the verdict and the rejection decision.
    """
    result = verifier.check(inp.email)

    if result.status == "disposable":
        return EmailCheckOutput(result=result, is_disposable=True, rejected=True)

    if result.status == "unknown":
        logger.warning(
            "Email check inconclusive (%s), failure policy is %s",
            result.reason,
            failure_policy,
        )
        return EmailCheckOutput(result=result, rejected=failure_policy == "closed")

    return EmailCheckOutput(result=result)


class AllowAllEmailVerifier:
    """Verifier used when email checking is switched off."""

    def check(self, email: str) -> EmailCheckResult:
        return EmailCheckResult.acceptable()
