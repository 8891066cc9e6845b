"""
Email check component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

EmailCheckStatus = Literal["disposable", "acceptable", "unknown"]


class EmailCheckError(Exception):
    """Checker could not produce a verdict (transport, status or payload problem)."""


@dataclass(frozen=True)
class EmailCheckResult:
    """Verdict from an email verifier."""

    status: EmailCheckStatus
    reason: str | None = None

    @classmethod
    def disposable(cls) -> EmailCheckResult:
        return cls(status="disposable")

    @classmethod
    def acceptable(cls) -> EmailCheckResult:
        return cls(status="acceptable")

    @classmethod
    def unknown(cls, reason: str) -> EmailCheckResult:
        return cls(status="unknown", reason=reason)


# --- Input Models ---


@dataclass(frozen=True)
class CheckEmailInput:
    """Input for checking an email address."""

    email: str


# --- Output Models ---


@dataclass(frozen=True)
class EmailCheckOutput:
    """
    Output of an email check.

    is_disposable is True only for a positive verdict.
    rejected is True when the address must not be used, which also covers
    an inconclusive check under the closed failure policy.
    """

    result: EmailCheckResult
    is_disposable: bool = False
    rejected: bool = False
