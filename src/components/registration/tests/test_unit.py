"""
Registration component unit tests.

Tests for member creation: email validation, disposable email rejection,
profile steps, security questions, profile fields and consent logging.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import httpx
import pytest

from src.adapters.email_checker import HttpDisposableEmailChecker
from src.components.email_check import EmailCheckResult
from src.components.history import InMemoryHistoryRepo
from src.components.post_registration import PostRegistrationOutput
from src.components.profile_steps import ProfileStepRegistry
from src.components.registration import (
    CreateMemberInput,
    RegistrationDeps,
    RegistrationRequest,
    run_create_member,
)
from src.config.models import RegistrationConfig
from src.domain.entities import (
    BIT_HAS_SECURITY_ANSWERS,
    BIT_SECURITY_OPT_OUT,
    BIT_VIEW_SIGS,
    Member,
    PendingPost,
    ProfileField,
    SecurityAnswer,
)

FIXED_NOW = datetime(2024, 6, 15, 12, 0, 0, tzinfo=UTC)

# --- Mock Implementations ---


class MockMemberRepo:
    """In-memory two-phase member store that records every call."""

    def __init__(self, events: list[str]) -> None:
        self.events = events
        self.stored: dict[int, Member] = {}
        self._next_id = 1

    def reserve_identity(self, member: Member) -> Member:
        member.id = self._next_id
        self._next_id += 1
        self.stored[member.id] = member.model_copy(deep=True)
        self.events.append(f"reserve:{member.id}")
        return member

    def finalize(self, member: Member) -> Member:
        if member.id is None:
            self.reserve_identity(member)
        assert member.id is not None
        self.stored[member.id] = member.model_copy(deep=True)
        self.events.append(f"finalize:{member.id}")
        return member

    def get_by_id(self, member_id: int) -> Member | None:
        return self.stored.get(member_id)


class MockSecurityAnswerRepo:
    def __init__(self) -> None:
        self.rows: list[SecurityAnswer] = []
        self.calls = 0

    def insert_many(self, answers: list[SecurityAnswer]) -> None:
        self.calls += 1
        self.rows.extend(answers)


class MockProfileFieldRepo:
    def __init__(self, fields: list[ProfileField] | None = None) -> None:
        self.fields = {f.id: f for f in fields or []}
        self.content: dict[int, dict[str, Any]] = {}
        self.upserts = 0

    def get_field(self, field_id: int) -> ProfileField | None:
        return self.fields.get(field_id)

    def upsert_content(self, member_id: int, values: dict[str, Any]) -> None:
        self.upserts += 1
        self.content[member_id] = values


class MockAttachmentRepo:
    def __init__(self) -> None:
        self.claims: list[tuple[str, int]] = []

    def claim(self, temp_key: str, member_id: int) -> int:
        self.claims.append((temp_key, member_id))
        return 1


class MockVerifier:
    def __init__(self, result: EmailCheckResult | None = None) -> None:
        self.result = result or EmailCheckResult.acceptable()
        self.checked: list[str] = []

    def check(self, email: str) -> EmailCheckResult:
        self.checked.append(email)
        return self.result


class MockPasswordHasher:
    def hash_password(self, plain: str) -> str:
        return f"hashed_{plain}"


class MockEncryptor:
    def encrypt(self, plaintext: str) -> str:
        return f"enc({plaintext})"


class MockLocaleDetector:
    def __init__(self, answer: str | None = "de-DE") -> None:
        self.answer = answer
        self.headers: list[str] = []

    def detect(self, accept_language: str) -> str | None:
        self.headers.append(accept_language)
        return self.answer


class MockPostRegistration:
    def __init__(self) -> None:
        self.calls: list[tuple[Member, PendingPost | None, str | None]] = []

    def after_registration(
        self,
        member: Member,
        pending_post: PendingPost | None,
        ref_url: str | None,
    ) -> PostRegistrationOutput:
        self.calls.append((member, pending_post, ref_url))
        return PostRegistrationOutput(member=member, access_token="token")


class MockTimePort:
    def now_utc(self) -> datetime:
        return FIXED_NOW


class RecordingStep:
    """Profile step that records its invocation and the member id it saw."""

    def __init__(self, key: str, events: list[str]) -> None:
        self.key = key
        self.events = events
        self.seen_ids: list[int | None] = []

    def augment_registration(self, values: dict[str, Any], member: Member) -> dict[str, Any]:
        self.seen_ids.append(member.id)
        self.events.append(f"step:{self.key}")
        return {**values, f"seen_{self.key}": True}


# --- Fixtures ---


@pytest.fixture
def events() -> list[str]:
    return []


@pytest.fixture
def config() -> RegistrationConfig:
    return RegistrationConfig.model_validate(
        {
            "registration": {"allow_reg": "normal", "member_group": 7, "privacy_type": "internal"},
            "security_questions": {"enabled": True, "prompt": "register"},
            "email_check": {"enabled": True, "failure_policy": "open"},
        }
    )


@pytest.fixture
def member_repo(events: list[str]) -> MockMemberRepo:
    return MockMemberRepo(events)


@pytest.fixture
def answer_repo() -> MockSecurityAnswerRepo:
    return MockSecurityAnswerRepo()


@pytest.fixture
def field_repo() -> MockProfileFieldRepo:
    return MockProfileFieldRepo(
        [
            ProfileField(id=1, title="About me", type="Editor"),
            ProfileField(id=2, title="Location", type="Text"),
        ]
    )


@pytest.fixture
def attachment_repo() -> MockAttachmentRepo:
    return MockAttachmentRepo()


@pytest.fixture
def history_repo() -> InMemoryHistoryRepo:
    return InMemoryHistoryRepo()


@pytest.fixture
def verifier() -> MockVerifier:
    return MockVerifier()


@pytest.fixture
def detector() -> MockLocaleDetector:
    return MockLocaleDetector()


@pytest.fixture
def post_hook() -> MockPostRegistration:
    return MockPostRegistration()


@pytest.fixture
def deps(
    config: RegistrationConfig,
    member_repo: MockMemberRepo,
    answer_repo: MockSecurityAnswerRepo,
    field_repo: MockProfileFieldRepo,
    attachment_repo: MockAttachmentRepo,
    history_repo: InMemoryHistoryRepo,
    verifier: MockVerifier,
    detector: MockLocaleDetector,
    post_hook: MockPostRegistration,
) -> RegistrationDeps:
    return RegistrationDeps(
        config=config,
        members=member_repo,
        security_answers=answer_repo,
        profile_fields=field_repo,
        attachments=attachment_repo,
        history=history_repo,
        email_verifier=verifier,
        password_hasher=MockPasswordHasher(),
        answer_encryptor=MockEncryptor(),
        locale_detector=detector,
        post_registration=post_hook,
        time=MockTimePort(),
    )


def form(**overrides: Any) -> dict[str, Any]:
    values: dict[str, Any] = {
        "username": "alice",
        "email_address": "alice@example.com",
        "password": "s3cret",
        "reg_admin_mails": "1",
    }
    values.update(overrides)
    return values


def history_of(repo: InMemoryHistoryRepo, member_id: int) -> list[tuple[str, dict[str, Any]]]:
    return [(e.log_type, e.data) for e in repo.list_for_member(member_id)]


# --- Email validation ---


class TestEmailValidation:
    @pytest.mark.parametrize("email", [None, ""])
    def test_missing_email_is_rejected(
        self,
        deps: RegistrationDeps,
        member_repo: MockMemberRepo,
        verifier: MockVerifier,
        email: str | None,
    ) -> None:
        values = form()
        if email is None:
            del values["email_address"]
        else:
            values["email_address"] = email

        out = run_create_member(CreateMemberInput(values=values), deps=deps)

        assert out.success is False
        assert out.member is None
        assert out.error is not None
        assert out.error.code == "email_required_error"
        assert out.error.status_code == 403
        assert member_repo.stored == {}
        assert verifier.checked == []

    def test_disposable_email_is_rejected(
        self,
        deps: RegistrationDeps,
        member_repo: MockMemberRepo,
        verifier: MockVerifier,
        post_hook: MockPostRegistration,
    ) -> None:
        verifier.result = EmailCheckResult.disposable()

        out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.success is False
        assert out.error is not None
        assert out.error.code == "disposable_email_error"
        assert out.error.message == "Disposable email addresses are not allowed."
        assert member_repo.stored == {}
        assert post_hook.calls == []

    def test_checker_failure_fails_open_by_default(
        self,
        deps: RegistrationDeps,
        member_repo: MockMemberRepo,
        verifier: MockVerifier,
    ) -> None:
        verifier.result = EmailCheckResult.unknown("HTTP 500")

        out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.success is True
        assert len(member_repo.stored) == 1

    def test_checker_failure_rejects_with_closed_policy(
        self,
        deps: RegistrationDeps,
        member_repo: MockMemberRepo,
        verifier: MockVerifier,
    ) -> None:
        deps.config.email_check.failure_policy = "closed"
        verifier.result = EmailCheckResult.unknown("timeout")

        out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.success is False
        assert out.error is not None
        assert out.error.code == "email_check_unavailable"
        assert out.error.status_code == 503
        assert member_repo.stored == {}

    def test_checker_skipped_when_disabled(
        self,
        deps: RegistrationDeps,
        verifier: MockVerifier,
    ) -> None:
        deps.config.email_check.enabled = False
        verifier.result = EmailCheckResult.disposable()

        out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.success is True
        assert verifier.checked == []

    def test_disposable_verdict_from_http_checker(
        self,
        deps: RegistrationDeps,
        member_repo: MockMemberRepo,
    ) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"disposable": "yes"})

        deps.email_verifier = HttpDisposableEmailChecker(
            base_url="https://checker.test", transport=httpx.MockTransport(handler)
        )

        out = run_create_member(
            CreateMemberInput(values=form(email_address="x@mailinator.com")), deps=deps
        )

        assert out.success is False
        assert out.error is not None
        assert out.error.code == "disposable_email_error"
        assert requests[0].url.params["email"] == "x@mailinator.com"
        assert member_repo.stored == {}
        assert member_repo.events == []


# --- Member creation ---


class TestMemberCreation:
    def test_member_persisted_with_submitted_identity(
        self,
        deps: RegistrationDeps,
        member_repo: MockMemberRepo,
    ) -> None:
        out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.success is True
        assert out.member is not None and out.member.id is not None
        stored = member_repo.stored[out.member.id]
        assert stored.name == "alice"
        assert stored.email == "alice@example.com"
        assert stored.password_hash == "hashed_s3cret"
        assert stored.group_id == 7
        assert stored.allow_admin_mails is True
        assert stored.last_visit == FIXED_NOW
        assert BIT_VIEW_SIGS in stored.bitoptions

    def test_admin_mails_unchecked(self, deps: RegistrationDeps) -> None:
        out = run_create_member(
            CreateMemberInput(values=form(reg_admin_mails="0")), deps=deps
        )
        assert out.member is not None
        assert out.member.allow_admin_mails is False

    def test_language_from_cookie_wins(
        self,
        deps: RegistrationDeps,
        detector: MockLocaleDetector,
    ) -> None:
        inp = CreateMemberInput(
            values=form(),
            request=RegistrationRequest(language_cookie="fr-FR", accept_language="de"),
        )

        out = run_create_member(inp, deps=deps)

        assert out.member is not None
        assert out.member.language == "fr-FR"
        assert detector.headers == []

    def test_language_detected_from_header(
        self,
        deps: RegistrationDeps,
        detector: MockLocaleDetector,
    ) -> None:
        inp = CreateMemberInput(
            values=form(),
            request=RegistrationRequest(language_cookie="", accept_language="de;q=0.9"),
        )

        out = run_create_member(inp, deps=deps)

        assert out.member is not None
        assert out.member.language == "de-DE"
        assert detector.headers == ["de;q=0.9"]

    def test_language_unset_without_cookie_or_header(self, deps: RegistrationDeps) -> None:
        out = run_create_member(CreateMemberInput(values=form()), deps=deps)
        assert out.member is not None
        assert out.member.language is None

    def test_logs_omit_email_address(
        self, deps: RegistrationDeps, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level("DEBUG", logger="src.components"):
            out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.member is not None
        assert f"Registered member {out.member.id}" in caplog.text
        assert "alice@example.com" not in caplog.text


# --- Profile steps ---


class TestProfileSteps:
    def test_steps_run_once_in_order_after_identity_reserved(
        self,
        deps: RegistrationDeps,
        events: list[str],
    ) -> None:
        first = RecordingStep("first", events)
        second = RecordingStep("second", events)
        deps.profile_steps = ProfileStepRegistry([first, second])

        out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.member is not None
        assert events[:4] == ["reserve:1", "step:first", "step:second", "finalize:1"]
        assert first.seen_ids == [1]
        assert second.seen_ids == [1]

    def test_steps_skipped_when_registration_disabled(
        self,
        deps: RegistrationDeps,
        member_repo: MockMemberRepo,
        events: list[str],
    ) -> None:
        deps.config.registration.allow_reg = "disabled"
        step = RecordingStep("only", events)
        deps.profile_steps = ProfileStepRegistry([step])

        out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.success is True
        assert step.seen_ids == []
        assert "reserve:1" in events  # finalize still persists the member
        assert len(member_repo.stored) == 1

    def test_step_values_reach_security_questions(
        self,
        deps: RegistrationDeps,
        answer_repo: MockSecurityAnswerRepo,
        events: list[str],
    ) -> None:
        class OptOutStep:
            key = "optout"

            def augment_registration(
                self, values: dict[str, Any], member: Member
            ) -> dict[str, Any]:
                return {**values, "security_questions_optout_title": "1"}

        deps.profile_steps = ProfileStepRegistry([OptOutStep()])

        out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.member is not None
        assert BIT_SECURITY_OPT_OUT in out.member.bitoptions
        assert answer_repo.rows == []


# --- Security questions ---


class TestSecurityQuestions:
    def test_opt_out(
        self,
        deps: RegistrationDeps,
        answer_repo: MockSecurityAnswerRepo,
        history_repo: InMemoryHistoryRepo,
    ) -> None:
        values = form(security_questions_optout_title="1")

        out = run_create_member(CreateMemberInput(values=values), deps=deps)

        assert out.member is not None and out.member.id is not None
        assert answer_repo.calls == 0
        assert BIT_SECURITY_OPT_OUT in out.member.bitoptions
        assert BIT_HAS_SECURITY_ANSWERS not in out.member.bitoptions
        assert ("mfa", {"handler": "questions", "enable": False, "optout": True}) in history_of(
            history_repo, out.member.id
        )

    def test_answers_encrypted_one_row_per_question(
        self,
        deps: RegistrationDeps,
        answer_repo: MockSecurityAnswerRepo,
        history_repo: InMemoryHistoryRepo,
    ) -> None:
        values = form(
            security_question_q_1="4",
            security_question_a_1="Rex",
            security_question_q_2="9",
            security_question_a_2="Paris",
        )

        out = run_create_member(CreateMemberInput(values=values), deps=deps)

        assert out.member is not None and out.member.id is not None
        assert answer_repo.calls == 1
        rows = sorted(answer_repo.rows, key=lambda a: a.question_id)
        assert [(a.question_id, a.member_id, a.answer) for a in rows] == [
            (4, out.member.id, "enc(Rex)"),
            (9, out.member.id, "enc(Paris)"),
        ]
        assert BIT_HAS_SECURITY_ANSWERS in out.member.bitoptions
        assert ("mfa", {"handler": "questions", "enable": True}) in history_of(
            history_repo, out.member.id
        )

    def test_same_question_twice_keeps_one_row(
        self,
        deps: RegistrationDeps,
        answer_repo: MockSecurityAnswerRepo,
    ) -> None:
        values = form(
            security_question_q_1="4",
            security_question_a_1="first",
            security_question_q_2="4",
            security_question_a_2="second",
        )

        run_create_member(CreateMemberInput(values=values), deps=deps)

        assert [(a.question_id, a.answer) for a in answer_repo.rows] == [(4, "enc(second)")]

    def test_not_recorded_when_disabled(
        self,
        deps: RegistrationDeps,
        answer_repo: MockSecurityAnswerRepo,
        history_repo: InMemoryHistoryRepo,
    ) -> None:
        deps.config.security_questions.enabled = False
        values = form(security_question_q_1="4", security_question_a_1="Rex")

        out = run_create_member(CreateMemberInput(values=values), deps=deps)

        assert out.member is not None and out.member.id is not None
        assert answer_repo.calls == 0
        assert all(t != "mfa" for t, _ in history_of(history_repo, out.member.id))

    def test_not_recorded_for_optin_prompt(
        self,
        deps: RegistrationDeps,
        answer_repo: MockSecurityAnswerRepo,
    ) -> None:
        deps.config.security_questions.prompt = "optin"
        values = form(security_question_q_1="4", security_question_a_1="Rex")

        run_create_member(CreateMemberInput(values=values), deps=deps)

        assert answer_repo.calls == 0

    def test_no_encryptor_needed_when_disabled(
        self,
        deps: RegistrationDeps,
    ) -> None:
        deps.config.security_questions.enabled = False
        deps.answer_encryptor = None

        out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.success is True

    def test_missing_encryptor_is_a_configuration_error(
        self,
        deps: RegistrationDeps,
        answer_repo: MockSecurityAnswerRepo,
    ) -> None:
        deps.answer_encryptor = None
        values = form(security_question_q_1="4", security_question_a_1="Rex")

        with pytest.raises(RuntimeError, match="no answer encryptor"):
            run_create_member(CreateMemberInput(values=values), deps=deps)
        assert answer_repo.rows == []


# --- Profile fields ---


class TestProfileFields:
    def test_editor_attachments_claimed_and_values_upserted(
        self,
        deps: RegistrationDeps,
        field_repo: MockProfileFieldRepo,
        attachment_repo: MockAttachmentRepo,
    ) -> None:
        inp = CreateMemberInput(
            values=form(),
            profile_fields={"field_1": "<p>Hello</p>", "field_2": "Berlin"},
            request=RegistrationRequest(session_key="abc123"),
        )

        out = run_create_member(inp, deps=deps)

        assert out.member is not None and out.member.id is not None
        assert attachment_repo.claims == [("field_1-abc123", out.member.id)]
        assert field_repo.upserts == 1
        assert field_repo.content[out.member.id] == {
            "field_1": "<p>Hello</p>",
            "field_2": "Berlin",
        }

    def test_no_claim_without_upload_session(
        self,
        deps: RegistrationDeps,
        attachment_repo: MockAttachmentRepo,
    ) -> None:
        inp = CreateMemberInput(values=form(), profile_fields={"field_1": "<p>x</p>"})

        run_create_member(inp, deps=deps)

        assert attachment_repo.claims == []

    def test_unknown_field_is_still_stored(
        self,
        deps: RegistrationDeps,
        field_repo: MockProfileFieldRepo,
        attachment_repo: MockAttachmentRepo,
    ) -> None:
        inp = CreateMemberInput(
            values=form(),
            profile_fields={"field_99": "x"},
            request=RegistrationRequest(session_key="abc"),
        )

        out = run_create_member(inp, deps=deps)

        assert out.member is not None and out.member.id is not None
        assert attachment_repo.claims == []
        assert field_repo.content[out.member.id] == {"field_99": "x"}

    def test_empty_profile_fields_still_upserted(
        self,
        deps: RegistrationDeps,
        field_repo: MockProfileFieldRepo,
    ) -> None:
        out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.member is not None and out.member.id is not None
        assert field_repo.content[out.member.id] == {}


# --- Consent logging ---


class TestConsentLogging:
    def test_consent_entries_written(
        self,
        deps: RegistrationDeps,
        history_repo: InMemoryHistoryRepo,
    ) -> None:
        out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.member is not None and out.member.id is not None
        entries = history_of(history_repo, out.member.id)
        assert ("admin_mails", {"enabled": True}) in entries
        assert ("terms_acceptance", {"type": "privacy"}) in entries
        assert ("terms_acceptance", {"type": "terms"}) in entries

    def test_privacy_entry_skipped_when_privacy_type_none(
        self,
        deps: RegistrationDeps,
        history_repo: InMemoryHistoryRepo,
    ) -> None:
        deps.config.registration.privacy_type = "none"

        out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.member is not None and out.member.id is not None
        entries = history_of(history_repo, out.member.id)
        assert ("terms_acceptance", {"type": "privacy"}) not in entries
        assert ("terms_acceptance", {"type": "terms"}) in entries

    def test_history_entries_reference_persisted_member(
        self,
        deps: RegistrationDeps,
        member_repo: MockMemberRepo,
        history_repo: InMemoryHistoryRepo,
    ) -> None:
        out = run_create_member(CreateMemberInput(values=form()), deps=deps)

        assert out.member is not None and out.member.id is not None
        assert out.member.id in member_repo.stored
        assert all(e.created_at == FIXED_NOW for e in history_repo.list_for_member(out.member.id))


# --- Post-registration ---


class TestPostRegistrationHook:
    def test_hook_receives_member_pending_post_and_ref(
        self,
        deps: RegistrationDeps,
        post_hook: MockPostRegistration,
    ) -> None:
        post = PendingPost(id=5, email="alice@example.com", content="Hi")
        inp = CreateMemberInput(
            values=form(),
            pending_post=post,
            request=RegistrationRequest(ref_url="/topic/1"),
        )

        out = run_create_member(inp, deps=deps)

        assert len(post_hook.calls) == 1
        member, pending, ref = post_hook.calls[0]
        assert member is out.member
        assert pending == post
        assert ref == "/topic/1"
        assert out.post_registration is not None
        assert out.post_registration.access_token == "token"

    def test_extension_errors_propagate(self, deps: RegistrationDeps) -> None:
        class BrokenStep:
            key = "broken"

            def augment_registration(
                self, values: dict[str, Any], member: Member
            ) -> dict[str, Any]:
                raise RuntimeError("boom")

        deps.profile_steps = ProfileStepRegistry([BrokenStep()])

        with pytest.raises(RuntimeError, match="boom"):
            run_create_member(CreateMemberInput(values=form()), deps=deps)
