"""
Registration API.

POST creates a member from a submitted registration form. Validation
failures come back with the error's status code and a {"code", "message"}
detail; a successful registration returns 201.
"""

import logging
import sqlite3
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from pydantic import BaseModel, Field

from src.adapters.sqlite.repos import SQLitePendingPostRepo
from src.api.deps import get_pending_post_repo, get_registration_deps
from src.components.post_registration import ACCESS_TOKEN_TTL_MINUTES
from src.components.registration import (
    CreateMemberInput,
    RegistrationDeps,
    RegistrationRequest,
    run_create_member,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# SQLite message for a second member with the same address
EMAIL_UNIQUE_VIOLATION = "UNIQUE constraint failed: members.email"


# --- Request/Response Models ---


class RegisterRequest(BaseModel):
    """Registration form submission."""

    values: dict[str, Any]
    profile_fields: dict[str, Any] = Field(default_factory=dict)
    pending_post_id: int | None = None
    session_key: str | None = None
    ref_url: str | None = None


class RegisterResponse(BaseModel):
    member_id: int
    name: str
    email: str
    language: str | None
    validating: bool
    access_token: str | None = None


class ErrorDetail(BaseModel):
    code: str
    message: str


# --- Endpoints ---


@router.post(
    "",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a member",
    responses={
        403: {"model": ErrorDetail, "description": "Email missing or disposable"},
        409: {"model": ErrorDetail, "description": "Email already registered"},
        503: {"model": ErrorDetail, "description": "Email could not be verified"},
    },
)
def register(
    body: RegisterRequest,
    request: Request,
    response: Response,
    deps: RegistrationDeps = Depends(get_registration_deps),
    pending_posts: SQLitePendingPostRepo = Depends(get_pending_post_repo),
) -> RegisterResponse:
    pending_post = None
    if body.pending_post_id is not None:
        pending_post = pending_posts.get_by_id(body.pending_post_id)
        if pending_post is not None and pending_post.member_id is not None:
            # Already handed over to another member
            pending_post = None

    inp = CreateMemberInput(
        values=body.values,
        profile_fields=body.profile_fields,
        pending_post=pending_post,
        request=RegistrationRequest(
            language_cookie=request.cookies.get("language"),
            accept_language=request.headers.get("accept-language"),
            session_key=body.session_key,
            ref_url=body.ref_url or request.headers.get("referer"),
        ),
    )

    try:
        out = run_create_member(inp, deps=deps)
    except sqlite3.IntegrityError as e:
        if EMAIL_UNIQUE_VIOLATION not in str(e):
            raise
        logger.info("Registration conflict: %s", e)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={"code": "email_in_use", "message": "That email address is already in use."},
        ) from e

    if not out.success or out.member is None or out.member.id is None:
        error = out.error
        raise HTTPException(
            status_code=error.status_code if error else status.HTTP_400_BAD_REQUEST,
            detail={
                "code": error.code if error else "registration_failed",
                "message": error.message if error else "Registration failed.",
            },
        )

    post = out.post_registration
    access_token = post.access_token if post else None
    if access_token:
        response.set_cookie(
            key="access_token",
            value=f"Bearer {access_token}",
            httponly=True,
            max_age=ACCESS_TOKEN_TTL_MINUTES * 60,
            samesite="lax",
            secure=False,  # Set to True for HTTPS prod
        )

    return RegisterResponse(
        member_id=out.member.id,
        name=out.member.name,
        email=out.member.email,
        language=out.member.language,
        validating=bool(post and post.validating),
        access_token=access_token,
    )
