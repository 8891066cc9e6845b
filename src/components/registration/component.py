"""
Registration component - Member account creation.

Validates the registration form, persists the new member, runs profile steps,
records security questions and consent, then hands over to post-registration.

Invariants:
- No member is stored when the email is missing or rejected by the checker
- The member has a storage id before any profile step, answer row, attachment
  claim, profile field write or history entry references it
- Persistence is incremental; a failure after the first write leaves the
  member as far as it got (no rollback)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from src.components.email_check import CheckEmailInput, EmailVerifierPort, run_check_email
from src.components.history import HistoryRepoPort, LogHistoryInput, run_log_history
from src.components.profile_steps import ProfileStepRegistry, run_profile_steps
from src.config.models import RegistrationConfig
from src.domain.entities import (
    BIT_HAS_SECURITY_ANSWERS,
    BIT_SECURITY_OPT_OUT,
    BIT_VIEW_SIGS,
    Member,
)

from ._impl import (
    attachment_temp_key,
    collect_security_answers,
    parse_bool,
    profile_field_id,
    resolve_language,
)
from .models import (
    DISPOSABLE_EMAIL,
    EMAIL_CHECK_UNAVAILABLE,
    EMAIL_REQUIRED,
    CreateMemberInput,
    CreateMemberOutput,
    RegistrationError,
)
from .ports import (
    AnswerEncryptorPort,
    AttachmentClaimPort,
    LocaleDetectorPort,
    MemberRepoPort,
    PasswordHasherPort,
    PostRegistrationHookPort,
    ProfileFieldRepoPort,
    SecurityAnswerRepoPort,
    TimePort,
)

logger = logging.getLogger(__name__)


@dataclass
class RegistrationDeps:
    """Collaborators for member creation, injected by the shell."""

    config: RegistrationConfig
    members: MemberRepoPort
    security_answers: SecurityAnswerRepoPort
    profile_fields: ProfileFieldRepoPort
    attachments: AttachmentClaimPort
    history: HistoryRepoPort
    email_verifier: EmailVerifierPort
    password_hasher: PasswordHasherPort
    answer_encryptor: AnswerEncryptorPort | None  # Only needed when questions are asked
    locale_detector: LocaleDetectorPort
    post_registration: PostRegistrationHookPort
    time: TimePort
    profile_steps: ProfileStepRegistry = field(default_factory=ProfileStepRegistry)


def _reject(error: RegistrationError) -> CreateMemberOutput:
    logger.info("Registration rejected: %s", error.code)
    return CreateMemberOutput(success=False, error=error)


def _log(deps: RegistrationDeps, member: Member, log_type: str, data: dict[str, Any]) -> None:
    assert member.id is not None
    run_log_history(
        LogHistoryInput(member_id=member.id, app="core", log_type=log_type, data=data),
        repo=deps.history,
        time_port=deps.time,
    )


def _build_member(inp: CreateMemberInput, deps: RegistrationDeps) -> Member:
    values = inp.values
    member = Member(
        name=str(values.get("username") or ""),
        email=str(values["email_address"]),
        password_hash=deps.password_hasher.hash_password(str(values.get("password") or "")),
        allow_admin_mails=parse_bool(values.get("reg_admin_mails")),
        group_id=deps.config.registration.member_group,
        last_visit=deps.time.now_utc(),
        joined_at=deps.time.now_utc(),
    )
    member.set_bit(BIT_VIEW_SIGS)
    member.language = resolve_language(inp.request, deps.locale_detector)
    return member


def _record_security_questions(
    values: dict[str, Any],
    member: Member,
    deps: RegistrationDeps,
) -> None:
    assert member.id is not None
    if "security_questions_optout_title" in values:
        member.set_bit(BIT_SECURITY_OPT_OUT)
        _log(deps, member, "mfa", {"handler": "questions", "enable": False, "optout": True})
    else:
        if deps.answer_encryptor is None:
            raise RuntimeError(
                "Security questions are enabled but no answer encryptor is configured"
            )
        answers = collect_security_answers(values, member.id, deps.answer_encryptor)
        if answers:
            deps.security_answers.insert_many(answers)
        member.set_bit(BIT_HAS_SECURITY_ANSWERS)
        _log(deps, member, "mfa", {"handler": "questions", "enable": True})

    deps.members.finalize(member)


def _claim_editor_attachments(
    profile_fields: dict[str, Any],
    member: Member,
    session_key: str | None,
    deps: RegistrationDeps,
) -> None:
    assert member.id is not None
    for key in profile_fields:
        field_id = profile_field_id(key)
        definition = deps.profile_fields.get_field(field_id) if field_id is not None else None
        if definition is None:
            logger.warning("Unknown profile field %r submitted at registration", key)
            continue
        if definition.type != "Editor":
            continue
        if not session_key:
            logger.debug("No upload session, skipping attachment claim for %s", key)
            continue
        claimed = deps.attachments.claim(attachment_temp_key(key, session_key), member.id)
        logger.debug("Claimed %d attachment(s) for %s", claimed, key)


def run_create_member(
    inp: CreateMemberInput,
    *,
    deps: RegistrationDeps,
) -> CreateMemberOutput:
    """
    Create a member from a submitted registration form.

    Args:
        inp: Form values, profile field values, pending post and request data.
        deps: Injected collaborators.

    Returns:
        CreateMemberOutput with the member on success, or the user-facing
        error on a validation failure. Storage and extension errors propagate.
    """
    config = deps.config
    values = dict(inp.values)

    email = values.get("email_address")
    if not email:
        return _reject(EMAIL_REQUIRED)

    if config.email_check.enabled:
        check = run_check_email(
            CheckEmailInput(email=str(email)),
            verifier=deps.email_verifier,
            failure_policy=config.email_check.failure_policy,
        )
        if check.is_disposable:
            return _reject(DISPOSABLE_EMAIL)
        if check.rejected:
            return _reject(EMAIL_CHECK_UNAVAILABLE)

    member = _build_member(inp, deps)

    if config.registration.allow_reg != "disabled":
        # Profile steps expect the member to exist, so reserve the id first
        member = deps.members.reserve_identity(member)
        values = run_profile_steps(deps.profile_steps, values, member)

    member = deps.members.finalize(member)

    if config.security_questions.asked_at_registration:
        _record_security_questions(values, member, deps)

    assert member.id is not None
    _claim_editor_attachments(inp.profile_fields, member, inp.request.session_key, deps)
    deps.profile_fields.upsert_content(member.id, dict(inp.profile_fields))

    _log(deps, member, "admin_mails", {"enabled": bool(member.allow_admin_mails)})
    if config.registration.privacy_type != "none":
        _log(deps, member, "terms_acceptance", {"type": "privacy"})
    _log(deps, member, "terms_acceptance", {"type": "terms"})

    post = deps.post_registration.after_registration(
        member, inp.pending_post, inp.request.ref_url
    )

    logger.info("Registered member %s", member.id)
    return CreateMemberOutput(member=member, success=True, post_registration=post)
