"""
Registration helpers: form parsing and member construction.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from src.domain.entities import SecurityAnswer

from .models import RegistrationRequest
from .ports import AnswerEncryptorPort, LocaleDetectorPort

logger = logging.getLogger(__name__)

SECURITY_QUESTION_KEY = re.compile(r"^security_question_q_(\d+)$")
PROFILE_FIELD_PREFIX = "field_"
TRUTHY = {"1", "true", "yes", "on"}


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in TRUTHY


def resolve_language(
    request: RegistrationRequest,
    detector: LocaleDetectorPort,
) -> str | None:
    """Language cookie wins; otherwise detect from Accept-Language; otherwise unset."""
    if request.language_cookie:
        return request.language_cookie
    if request.accept_language is not None:
        return detector.detect(request.accept_language)
    return None


def collect_security_answers(
    values: dict[str, Any],
    member_id: int,
    encryptor: AnswerEncryptorPort,
) -> list[SecurityAnswer]:
    """
    Pair each security_question_q_<n> with security_question_a_<n>.

    The q_<n> value is the chosen question id. Answers are keyed by question id,
    so picking the same question twice keeps the last answer.
    """
    answers: dict[int, SecurityAnswer] = {}
    for key, question in values.items():
        match = SECURITY_QUESTION_KEY.match(key)
        if not match:
            continue
        try:
            question_id = int(question)
        except (TypeError, ValueError):
            logger.warning("Ignoring security question with invalid id %r", question)
            continue

        plaintext = values.get(f"security_question_a_{match.group(1)}") or ""
        answers[question_id] = SecurityAnswer(
            question_id=question_id,
            member_id=member_id,
            answer=encryptor.encrypt(str(plaintext)),
        )
    return list(answers.values())


def profile_field_id(key: str) -> int | None:
    """field_12 -> 12"""
    if not key.startswith(PROFILE_FIELD_PREFIX):
        return None
    try:
        return int(key[len(PROFILE_FIELD_PREFIX):])
    except ValueError:
        return None


def attachment_temp_key(field_key: str, session_key: str) -> str:
    return f"{field_key}-{session_key}"
