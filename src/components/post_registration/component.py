"""
Post-registration component - Validation handling and pending posts.

Runs once a member is fully persisted:
- validation_mode "none": member is active and receives an access token
- "user" / "admin_user": member is flagged validating and sent a verification link
- "admin": member is flagged validating until an administrator approves
- a post submitted before registering is handed over to the new member
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Callable
from urllib.parse import urlencode

from src.components.history import HistoryRepoPort, LogHistoryInput, TimePort, run_log_history
from src.core.ports.email import EmailPort, render_validation_email
from src.domain.entities import (
    BIT_VALIDATING,
    Member,
    PendingPost,
    ValidationMode,
    ValidationRequest,
)

from .models import PostRegistrationInput, PostRegistrationOutput
from .ports import MemberSaverPort, PendingPostRepoPort, TokenIssuerPort, ValidationRepoPort

logger = logging.getLogger(__name__)

ACCESS_TOKEN_TTL_MINUTES = 60 * 24


def build_validation_url(base_url: str, member_id: int, vid: str, ref_url: str | None) -> str:
    url = f"{base_url.rstrip('/')}/register/validate/{member_id}/{vid}"
    if ref_url:
        url += "?" + urlencode({"ref": ref_url})
    return url


def run_post_registration(
    inp: PostRegistrationInput,
    *,
    member_repo: MemberSaverPort,
    validation_repo: ValidationRepoPort,
    pending_posts: PendingPostRepoPort,
    email: EmailPort,
    tokens: TokenIssuerPort,
    history_repo: HistoryRepoPort,
    time_port: TimePort,
    vid_factory: Callable[[], str] | None = None,
) -> PostRegistrationOutput:
    member = inp.member
    if member.id is None:
        raise ValueError("Post-registration requires a persisted member")

    out = PostRegistrationOutput(member=member)

    if inp.validation_mode == "none":
        out.access_token = tokens.create_token(member.id, ACCESS_TOKEN_TTL_MINUTES)
    else:
        vid = (vid_factory or (lambda: secrets.token_hex(16)))()
        request = ValidationRequest(
            member_id=member.id,
            vid=vid,
            # Admin-only validation has nothing for the user to confirm
            user_verified=inp.validation_mode == "admin",
            created_at=time_port.now_utc(),
        )
        validation_repo.save(request)
        member.set_bit(BIT_VALIDATING)
        out.validating = True
        out.validation_request = request

        if inp.validation_mode in ("user", "admin_user"):
            link = build_validation_url(inp.base_url, member.id, vid, inp.ref_url)
            subject, body_html, body_text = render_validation_email(member.name, link)
            out.email_result = email.send_email(member.email, subject, body_html, body_text)

    if inp.pending_post is not None:
        _claim_pending_post(inp.pending_post, member.id, pending_posts, history_repo, time_port)
        out.pending_post_id = inp.pending_post.id

    member_repo.finalize(member)
    logger.info(
        "Post-registration done for member %s (mode=%s)", member.id, inp.validation_mode
    )
    return out


def _claim_pending_post(
    post: PendingPost,
    member_id: int,
    pending_posts: PendingPostRepoPort,
    history_repo: HistoryRepoPort,
    time_port: TimePort,
) -> None:
    pending_posts.assign_member(post.id, member_id)
    run_log_history(
        LogHistoryInput(
            member_id=member_id,
            app="core",
            log_type="pending_post",
            data={"post_id": post.id},
        ),
        repo=history_repo,
        time_port=time_port,
    )


class PostRegistrationHook:
    """Binds the post-registration ports so registration can call it as a single hook."""

    def __init__(
        self,
        *,
        validation_mode: ValidationMode,
        base_url: str,
        member_repo: MemberSaverPort,
        validation_repo: ValidationRepoPort,
        pending_posts: PendingPostRepoPort,
        email: EmailPort,
        tokens: TokenIssuerPort,
        history_repo: HistoryRepoPort,
        time_port: TimePort,
    ) -> None:
        self.validation_mode = validation_mode
        self.base_url = base_url
        self.member_repo = member_repo
        self.validation_repo = validation_repo
        self.pending_posts = pending_posts
        self.email = email
        self.tokens = tokens
        self.history_repo = history_repo
        self.time_port = time_port

    def after_registration(
        self,
        member: Member,
        pending_post: PendingPost | None,
        ref_url: str | None,
    ) -> PostRegistrationOutput:
        return run_post_registration(
            PostRegistrationInput(
                member=member,
                validation_mode=self.validation_mode,
                base_url=self.base_url,
                pending_post=pending_post,
                ref_url=ref_url,
            ),
            member_repo=self.member_repo,
            validation_repo=self.validation_repo,
            pending_posts=self.pending_posts,
            email=self.email,
            tokens=self.tokens,
            history_repo=self.history_repo,
            time_port=self.time_port,
        )
