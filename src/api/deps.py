import os
from functools import lru_cache
from pathlib import Path

from fastapi import Depends

from src.adapters.auth.crypto import AesGcmAnswerEncryptor, JWTTokenIssuer, PasslibPasswordHasher
from src.adapters.clock import SystemClock
from src.adapters.dev_email import DevEmailAdapter
from src.adapters.email_checker import create_email_checker
from src.adapters.locale import AcceptLanguageDetector
from src.adapters.sqlite.repos import (
    SQLiteAttachmentRepo,
    SQLiteHistoryRepo,
    SQLiteMemberRepo,
    SQLitePendingPostRepo,
    SQLiteProfileFieldRepo,
    SQLiteSecurityAnswerRepo,
    SQLiteValidationRepo,
)
from src.components.email_check import AllowAllEmailVerifier, EmailVerifierPort
from src.components.post_registration import PostRegistrationHook
from src.components.profile_steps import ProfileStepRegistry, TimezoneStep
from src.components.registration import RegistrationDeps
from src.config import RegistrationConfig, load_config


# --- Settings ---
class Settings:
    def __init__(self) -> None:
        self.base_dir = Path(os.getcwd())
        data_dir = os.environ.get("REG_DATA_DIR", "./data")
        self.db_path = f"{data_dir}/members.db"
        self.config_path = Path(
            os.environ.get("REG_CONFIG_PATH", str(self.base_dir / "registration.yaml"))
        )
        self.migrations_dir = str(self.base_dir / "migrations")


@lru_cache
def get_settings() -> Settings:
    return Settings()


# --- Config ---
@lru_cache
def get_config(settings: Settings = Depends(get_settings)) -> RegistrationConfig:
    return load_config(settings.config_path)


# --- Repos ---
def get_member_repo(settings: Settings = Depends(get_settings)) -> SQLiteMemberRepo:
    return SQLiteMemberRepo(settings.db_path)


def get_security_answer_repo(
    settings: Settings = Depends(get_settings),
) -> SQLiteSecurityAnswerRepo:
    return SQLiteSecurityAnswerRepo(settings.db_path)


def get_profile_field_repo(settings: Settings = Depends(get_settings)) -> SQLiteProfileFieldRepo:
    return SQLiteProfileFieldRepo(settings.db_path)


def get_attachment_repo(settings: Settings = Depends(get_settings)) -> SQLiteAttachmentRepo:
    return SQLiteAttachmentRepo(settings.db_path)


def get_history_repo(settings: Settings = Depends(get_settings)) -> SQLiteHistoryRepo:
    return SQLiteHistoryRepo(settings.db_path)


def get_pending_post_repo(settings: Settings = Depends(get_settings)) -> SQLitePendingPostRepo:
    return SQLitePendingPostRepo(settings.db_path)


def get_validation_repo(settings: Settings = Depends(get_settings)) -> SQLiteValidationRepo:
    return SQLiteValidationRepo(settings.db_path)


# --- Adapters ---
def get_email_verifier(config: RegistrationConfig = Depends(get_config)) -> EmailVerifierPort:
    if not config.email_check.enabled:
        return AllowAllEmailVerifier()
    return create_email_checker(config.email_check)


def get_locale_detector(config: RegistrationConfig = Depends(get_config)) -> AcceptLanguageDetector:
    return AcceptLanguageDetector(
        config.registration.installed_languages,
        default=config.registration.default_language,
    )


_answer_encryptor_instance: AesGcmAnswerEncryptor | None = None


def get_answer_encryptor(
    config: RegistrationConfig = Depends(get_config),
) -> AesGcmAnswerEncryptor | None:
    """Get answer encryptor singleton (key from REG_ANSWER_KEY), if questions are asked."""
    if not config.security_questions.asked_at_registration:
        return None
    global _answer_encryptor_instance
    if _answer_encryptor_instance is None:
        _answer_encryptor_instance = AesGcmAnswerEncryptor.from_env()
    return _answer_encryptor_instance


_email_adapter_instance: DevEmailAdapter | None = None


def get_email_adapter() -> DevEmailAdapter:
    """Get email adapter singleton."""
    global _email_adapter_instance
    if _email_adapter_instance is None:
        _email_adapter_instance = DevEmailAdapter()
    return _email_adapter_instance


_clock_instance: SystemClock | None = None


def get_clock() -> SystemClock:
    """Get clock singleton."""
    global _clock_instance
    if _clock_instance is None:
        _clock_instance = SystemClock()
    return _clock_instance


# Registration extensions run in this order
_profile_steps = ProfileStepRegistry([TimezoneStep()])


def get_profile_steps() -> ProfileStepRegistry:
    return _profile_steps


# --- Component wiring ---
def get_post_registration_hook(
    config: RegistrationConfig = Depends(get_config),
    member_repo: SQLiteMemberRepo = Depends(get_member_repo),
    validation_repo: SQLiteValidationRepo = Depends(get_validation_repo),
    pending_posts: SQLitePendingPostRepo = Depends(get_pending_post_repo),
    history_repo: SQLiteHistoryRepo = Depends(get_history_repo),
    email: DevEmailAdapter = Depends(get_email_adapter),
    clock: SystemClock = Depends(get_clock),
) -> PostRegistrationHook:
    return PostRegistrationHook(
        validation_mode=config.registration.validation_mode,
        base_url=config.registration.base_url,
        member_repo=member_repo,
        validation_repo=validation_repo,
        pending_posts=pending_posts,
        email=email,
        tokens=JWTTokenIssuer(),
        history_repo=history_repo,
        time_port=clock,
    )


def get_registration_deps(
    config: RegistrationConfig = Depends(get_config),
    member_repo: SQLiteMemberRepo = Depends(get_member_repo),
    answer_repo: SQLiteSecurityAnswerRepo = Depends(get_security_answer_repo),
    profile_field_repo: SQLiteProfileFieldRepo = Depends(get_profile_field_repo),
    attachment_repo: SQLiteAttachmentRepo = Depends(get_attachment_repo),
    history_repo: SQLiteHistoryRepo = Depends(get_history_repo),
    verifier: EmailVerifierPort = Depends(get_email_verifier),
    encryptor: AesGcmAnswerEncryptor | None = Depends(get_answer_encryptor),
    detector: AcceptLanguageDetector = Depends(get_locale_detector),
    hook: PostRegistrationHook = Depends(get_post_registration_hook),
    clock: SystemClock = Depends(get_clock),
    steps: ProfileStepRegistry = Depends(get_profile_steps),
) -> RegistrationDeps:
    return RegistrationDeps(
        config=config,
        members=member_repo,
        security_answers=answer_repo,
        profile_fields=profile_field_repo,
        attachments=attachment_repo,
        history=history_repo,
        email_verifier=verifier,
        password_hasher=PasslibPasswordHasher(),
        answer_encryptor=encryptor,
        locale_detector=detector,
        post_registration=hook,
        time=clock,
        profile_steps=steps,
    )
