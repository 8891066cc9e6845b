from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

# --- Enums / Literals ---
AllowRegMode = Literal["normal", "full", "redirect", "disabled"]
ValidationMode = Literal["none", "user", "admin", "admin_user"]
PrivacyType = Literal["none", "internal", "external"]
SecurityQuestionPrompt = Literal["register", "optional", "optin", "disabled"]
ProfileFieldType = Literal["Text", "TextArea", "Editor", "Select", "Date", "Url"]

# Bit-option flag names stored on a member
BIT_VIEW_SIGS = "view_sigs"
BIT_SECURITY_OPT_OUT = "security_questions_opt_out"
BIT_HAS_SECURITY_ANSWERS = "has_security_answers"
BIT_VALIDATING = "validating"

# --- Members ---

class Member(BaseModel):
    id: int | None = None  # Assigned by storage when the identity is reserved
    name: str
    email: str
    password_hash: str = ""
    group_id: int
    bitoptions: set[str] = Field(default_factory=set)
    allow_admin_mails: bool = False
    last_visit: datetime | None = None
    language: str | None = None
    timezone: str | None = None
    joined_at: datetime = Field(default_factory=datetime.utcnow)

    def set_bit(self, name: str, value: bool = True) -> None:
        if value:
            self.bitoptions.add(name)
        else:
            self.bitoptions.discard(name)

    def has_bit(self, name: str) -> bool:
        return name in self.bitoptions

# --- Profile fields ---

class ProfileField(BaseModel):
    id: int
    title: str
    type: ProfileFieldType = "Text"
    required: bool = False

    @property
    def key(self) -> str:
        return f"field_{self.id}"

class Attachment(BaseModel):
    id: int | None = None
    filename: str
    temp_key: str | None = None  # "<field_key>-<session>" until claimed
    member_id: int | None = None

# --- Security questions ---

class SecurityAnswer(BaseModel):
    question_id: int
    member_id: int
    answer: str  # Encrypted tag, never plaintext

# --- History / pending posts / validation ---

class HistoryEntry(BaseModel):
    id: int | None = None
    member_id: int
    app: str
    log_type: str
    data: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.utcnow)

class PendingPost(BaseModel):
    id: int
    email: str
    content: str
    member_id: int | None = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

class ValidationRequest(BaseModel):
    member_id: int
    vid: str
    user_verified: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
