"""
Profile steps port definitions.
"""

from __future__ import annotations

from typing import Any, Protocol

from src.domain.entities import Member


class ProfileStepPort(Protocol):
    """A registration extension that can collect or transform account data."""

    key: str

    def augment_registration(self, values: dict[str, Any], member: Member) -> dict[str, Any]:
        """
        Augment the member and/or the submitted values.

        The member has a storage id when this is called. Returns the values
        handed to the next step.
        """
        ...
