"""
Profile steps component - Ordered registry of registration extensions.

Steps are registered explicitly at startup and run in registration order.
Each step receives the values returned by the previous one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from src.domain.entities import Member

from .ports import ProfileStepPort

logger = logging.getLogger(__name__)


class ProfileStepRegistry:
    def __init__(self, steps: Iterable[ProfileStepPort] = ()) -> None:
        self._steps: list[ProfileStepPort] = []
        for step in steps:
            self.register(step)

    def register(self, step: ProfileStepPort) -> None:
        if any(existing.key == step.key for existing in self._steps):
            raise ValueError(f"Profile step '{step.key}' is already registered")
        self._steps.append(step)

    def __iter__(self) -> Iterator[ProfileStepPort]:
        return iter(list(self._steps))

    def __len__(self) -> int:
        return len(self._steps)

    @property
    def keys(self) -> list[str]:
        return [s.key for s in self._steps]


def run_profile_steps(
    registry: ProfileStepRegistry,
    values: dict[str, Any],
    member: Member,
) -> dict[str, Any]:
    """Run every registered step once, in order, threading the values through."""
    for step in registry:
        logger.debug("Running profile step %s for member %s", step.key, member.id)
        values = step.augment_registration(values, member)
    return values


class TimezoneStep:
    """Copies the browser-detected timezone from the form onto the member."""

    key = "timezone"

    def augment_registration(self, values: dict[str, Any], member: Member) -> dict[str, Any]:
        values = dict(values)
        tz = values.pop("timezone", None)
        if not tz:
            return values
        try:
            ZoneInfo(str(tz))
        except (ZoneInfoNotFoundError, ValueError):
            logger.info("Ignoring unknown timezone %r", tz)
            return values
        member.timezone = str(tz)
        return values
