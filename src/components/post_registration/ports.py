"""
Post-registration component port definitions.
"""

from __future__ import annotations

from typing import Protocol

from src.domain.entities import Member, ValidationRequest


class MemberSaverPort(Protocol):
    def finalize(self, member: Member) -> Member: ...


class ValidationRepoPort(Protocol):
    def save(self, request: ValidationRequest) -> ValidationRequest: ...


class PendingPostRepoPort(Protocol):
    def assign_member(self, post_id: int, member_id: int) -> None:
        """Associate a post made before registering with the new member."""
        ...


class TokenIssuerPort(Protocol):
    def create_token(self, member_id: int, ttl_minutes: int) -> str: ...
