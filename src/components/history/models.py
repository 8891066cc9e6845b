"""
History component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.domain.entities import HistoryEntry


@dataclass(frozen=True)
class HistoryValidationError:
    """History validation error."""

    code: str
    message: str
    field: str | None = None


# --- Input Models ---


@dataclass(frozen=True)
class LogHistoryInput:
    """Input for appending a member history entry."""

    member_id: int
    app: str
    log_type: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class QueryHistoryInput:
    """Input for listing a member's history."""

    member_id: int
    app: str | None = None
    log_type: str | None = None


# --- Output Models ---


@dataclass(frozen=True)
class LogHistoryOutput:
    entry: HistoryEntry | None
    errors: list[HistoryValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class HistoryListOutput:
    entries: tuple[HistoryEntry, ...]
    errors: list[HistoryValidationError] = field(default_factory=list)
    success: bool = True
