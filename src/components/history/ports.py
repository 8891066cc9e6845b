"""
History component port definitions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from src.domain.entities import HistoryEntry


class HistoryRepoPort(Protocol):
    """Append-only store for member history entries."""

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        """Store an entry and return it with its id."""
        ...

    def list_for_member(self, member_id: int) -> list[HistoryEntry]:
        """Entries for a member, oldest first."""
        ...


class TimePort(Protocol):
    """Time provider interface."""

    def now_utc(self) -> datetime:
        """Get current UTC time."""
        ...
