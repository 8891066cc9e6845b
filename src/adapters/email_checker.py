"""
Disposable email checker backed by a remote HTTP API.

Calls GET <base_url>/v1/checkers/proxy/email/?email=<address> and reads the
"disposable" flag from the JSON body. Only a 200 response whose flag equals
"yes" (any case) counts as disposable. Every other outcome (error status,
timeout, malformed JSON) yields an "unknown" verdict so the caller's failure
policy decides.

Implements EmailVerifierPort.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from src.components.email_check import EmailCheckError, EmailCheckResult
from src.config.models import EmailCheckRules

logger = logging.getLogger(__name__)

CHECK_PATH = "/v1/checkers/proxy/email/"


class HttpDisposableEmailChecker:
    def __init__(
        self,
        base_url: str,
        token_type: str = "",
        api_token: str = "",
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not base_url:
            raise EmailCheckError("Email checker base_url is not configured")

        self.base_url = base_url.rstrip("/")
        self.token_type = token_type
        self.api_token = api_token
        self.timeout = httpx.Timeout(timeout, connect=min(timeout, 3.0))
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Type": self.token_type,
            "APITOKEN": self.api_token,
            "Accept": "application/json",
        }

    def _fetch(self, email: str) -> dict[str, Any]:
        url = f"{self.base_url}{CHECK_PATH}"
        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                resp = client.get(url, params={"email": email}, headers=self._headers())
        except httpx.HTTPError as exc:
            raise EmailCheckError(f"Network error calling email checker: {exc}") from exc

        logger.debug("Email checker HTTP %s: %s", resp.status_code, resp.text[:500])

        if resp.status_code != 200:
            raise EmailCheckError(f"Email checker returned HTTP {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as exc:
            raise EmailCheckError(f"Invalid JSON from email checker: {exc}") from exc

        if not isinstance(data, dict):
            raise EmailCheckError("Unexpected response shape from email checker")

        return data

    def check(self, email: str) -> EmailCheckResult:
        try:
            data = self._fetch(email)
        except EmailCheckError as exc:
            logger.warning("Email check failed for domain %s: %s", email.rpartition("@")[2], exc)
            return EmailCheckResult.unknown(str(exc))

        flag = data.get("disposable")
        if isinstance(flag, str) and flag.lower() == "yes":
            return EmailCheckResult.disposable()
        return EmailCheckResult.acceptable()


def create_email_checker(
    rules: EmailCheckRules,
    transport: httpx.BaseTransport | None = None,
) -> HttpDisposableEmailChecker:
    """Build a checker from the email_check config section."""
    return HttpDisposableEmailChecker(
        base_url=rules.base_url,
        token_type=rules.token_type,
        api_token=rules.api_token,
        timeout=rules.timeout_seconds,
        transport=transport,
    )
