from datetime import datetime
from typing import Any, Protocol

from src.components.post_registration import PostRegistrationOutput
from src.domain.entities import Member, PendingPost, ProfileField, SecurityAnswer


class MemberRepoPort(Protocol):
    """
    Two-phase member persistence.

    reserve_identity stores the member and assigns its id so extensions can
    reference it; finalize persists everything changed since.
    """

    def reserve_identity(self, member: Member) -> Member: ...
    def finalize(self, member: Member) -> Member: ...
    def get_by_id(self, member_id: int) -> Member | None: ...


class SecurityAnswerRepoPort(Protocol):
    def insert_many(self, answers: list[SecurityAnswer]) -> None: ...


class ProfileFieldRepoPort(Protocol):
    def get_field(self, field_id: int) -> ProfileField | None: ...

    def upsert_content(self, member_id: int, values: dict[str, Any]) -> None:
        """Replace the member's custom field row in one write."""
        ...


class AttachmentClaimPort(Protocol):
    def claim(self, temp_key: str, member_id: int) -> int:
        """Attach uploads made under temp_key to the member. Returns count claimed."""
        ...


class PasswordHasherPort(Protocol):
    def hash_password(self, plain: str) -> str: ...


class AnswerEncryptorPort(Protocol):
    def encrypt(self, plaintext: str) -> str:
        """Return an opaque, storable tag for the plaintext."""
        ...


class LocaleDetectorPort(Protocol):
    def detect(self, accept_language: str) -> str | None:
        """Pick an installed language from an Accept-Language header."""
        ...


class PostRegistrationHookPort(Protocol):
    def after_registration(
        self,
        member: Member,
        pending_post: PendingPost | None,
        ref_url: str | None,
    ) -> PostRegistrationOutput: ...


class TimePort(Protocol):
    def now_utc(self) -> datetime: ...
