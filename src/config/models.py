from typing import Literal

from pydantic import BaseModel, Field

from src.domain.entities import (
    AllowRegMode,
    PrivacyType,
    SecurityQuestionPrompt,
    ValidationMode,
)

FailurePolicy = Literal["open", "closed"]


class RegistrationRules(BaseModel):
    allow_reg: AllowRegMode = "normal"
    member_group: int = 3
    validation_mode: ValidationMode = "none"
    privacy_type: PrivacyType = "internal"
    base_url: str = "http://localhost:8000"
    installed_languages: list[str] = Field(default_factory=lambda: ["en-US"])
    default_language: str | None = None

class SecurityQuestionRules(BaseModel):
    enabled: bool = False
    prompt: SecurityQuestionPrompt = "optional"

    @property
    def asked_at_registration(self) -> bool:
        return self.enabled and self.prompt in ("register", "optional")

class EmailCheckRules(BaseModel):
    enabled: bool = True
    base_url: str = "https://api.api-aries.online"
    token_type: str = ""
    api_token: str = ""
    timeout_seconds: float = Field(default=5.0, gt=0)
    failure_policy: FailurePolicy = "open"

class RegistrationConfig(BaseModel):
    registration: RegistrationRules = Field(default_factory=RegistrationRules)
    security_questions: SecurityQuestionRules = Field(default_factory=SecurityQuestionRules)
    email_check: EmailCheckRules = Field(default_factory=EmailCheckRules)
