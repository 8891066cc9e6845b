"""
Email check component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from .models import EmailCheckResult


class EmailVerifierPort(Protocol):
    """Classifies an email address as disposable or not."""

    def check(self, email: str) -> EmailCheckResult:
        """
        Check an address.

        Must not raise for remote failures; return an "unknown" result instead.
        """
        ...
