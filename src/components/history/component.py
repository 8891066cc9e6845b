"""
History component - Member history (audit) log.

Entries record account-affecting events for compliance and support.

Invariants:
- Entries are append-only: never updated or deleted
- Every entry references an existing member id
"""

from __future__ import annotations

from src.domain.entities import HistoryEntry

from .models import (
    HistoryListOutput,
    HistoryValidationError,
    LogHistoryInput,
    LogHistoryOutput,
    QueryHistoryInput,
)
from .ports import HistoryRepoPort, TimePort


def _validate(inp: LogHistoryInput) -> list[HistoryValidationError]:
    errors = []
    if not inp.app:
        errors.append(
            HistoryValidationError(code="required", message="app is required", field="app")
        )
    if not inp.log_type:
        errors.append(
            HistoryValidationError(
                code="required", message="log_type is required", field="log_type"
            )
        )
    return errors


def run_log_history(
    inp: LogHistoryInput,
    *,
    repo: HistoryRepoPort,
    time_port: TimePort,
) -> LogHistoryOutput:
    """
    Append a history entry for a member.

    Args:
        inp: Entry details.
        repo: History repository port.
        time_port: Time port for the entry timestamp.

    Returns:
        LogHistoryOutput with the stored entry or validation errors.
    """
    errors = _validate(inp)
    if errors:
        return LogHistoryOutput(entry=None, errors=errors, success=False)

    entry = HistoryEntry(
        member_id=inp.member_id,
        app=inp.app,
        log_type=inp.log_type,
        data=dict(inp.data),
        created_at=time_port.now_utc(),
    )
    return LogHistoryOutput(entry=repo.append(entry))


def run_query_history(
    inp: QueryHistoryInput,
    *,
    repo: HistoryRepoPort,
) -> HistoryListOutput:
    """List a member's history, optionally filtered by app and log type."""
    entries = [
        e
        for e in repo.list_for_member(inp.member_id)
        if (inp.app is None or e.app == inp.app)
        and (inp.log_type is None or e.log_type == inp.log_type)
    ]
    return HistoryListOutput(entries=tuple(entries))


class InMemoryHistoryRepo:
    """In-memory history store for tests and dry runs."""

    def __init__(self) -> None:
        self._entries: list[HistoryEntry] = []

    def append(self, entry: HistoryEntry) -> HistoryEntry:
        stored = entry.model_copy(update={"id": len(self._entries) + 1})
        self._entries.append(stored)
        return stored

    def list_for_member(self, member_id: int) -> list[HistoryEntry]:
        return [e for e in self._entries if e.member_id == member_id]
