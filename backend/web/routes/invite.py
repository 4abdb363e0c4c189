"""
Invite redemption routes (SSR page and JSON API).

Why:
    Invite links (`/invite/{code}`) are the only way to join Norgeskole. The
    page works for anonymous visitors (full registration chain) and for
    signed-in identities without a profile (finishing an interrupted
    registration).

Behavior:
    - GET  /invite/{code}: resolve the role and render the form; unknown or
      inactive codes render 404 with a toast.
    - POST /invite/{code}: anonymous → `RegistrationFlow.run`; signed in →
      `register_with_invite` for the current identity.
    - GET  /api/invites/{code}/role → {code, role} | 404.
    - POST /api/invites/{code}/register → 201 {profile} | error body with the
      failed stage and whether compensation ran.

Permissions:
    Public. The registration itself is authorized by the Data Store through
    the invite code.
"""
from __future__ import annotations

from typing import Optional
import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from components import InviteRegistrationForm
from components.toast import toast_code_for
from identity_access.domain import role_home
from identity_access.errors import (
    EmailConfirmationPending,
    InvalidInviteCode,
    ProfileFetchFailure,
    ProfileRegistrationFailure,
)
from identity_access.identity_client import IdentityServiceError
from identity_access.tokens import AccessTokenVerificationError
from onboarding.flow import PENDING_NAME_KEY, Abandoned, Registered, Stage
from pages import (
    csrf_guard,
    csrf_token_for,
    form_csrf_ok,
    json_private,
    layout_response,
    load_profile,
    private_error,
    redirect,
)
from routes.auth import attach_session_cookie, field_errors_for, open_session, start_verified_session, verified_identity
from routes.security import _is_same_origin
import wiring


invite_router = APIRouter(tags=["Onboarding"])
logger = logging.getLogger("norgeskole.web")


class InviteRegistrationPayload(BaseModel):
    name: str = Field(..., max_length=200)
    email: Optional[str] = Field(default=None, max_length=254)
    password: Optional[str] = Field(default=None, max_length=200)
    l1: Optional[str] = Field(default=None, max_length=8)


def _serialize_profile(profile) -> dict:
    return {
        "id": profile.id,
        "name": profile.name,
        "role": profile.role,
        "email": profile.email,
        "l1": profile.l1,
        "difficulty_level": profile.difficulty_level,
        "classroom_id": profile.classroom_id,
    }


def _invite_page(request: Request, code: str, role: str, *, values=None, errors=None, toast=None, status_code=200):
    session = getattr(request.state, "session", None)
    form = InviteRegistrationForm(
        code=code,
        role=role,
        signed_in=session is not None,
        csrf_token=csrf_token_for(request),
        values=values,
        errors=errors,
    )
    content = f'<section class="invite">{form.render()}</section>'
    return layout_response(request, title="Invitasjon", content=content, toast=toast, status_code=status_code)


def _invalid_invite_page(request: Request):
    content = (
        '<section class="invite invite--invalid">'
        "<h1>Ugyldig invitasjon</h1>"
        "<p>Lenken er ukjent eller ikke lenger aktiv. Spør læreren din om en ny lenke.</p>"
        '<p><a href="/">Til forsiden</a></p>'
        "</section>"
    )
    return layout_response(
        request, title="Ugyldig invitasjon", content=content, toast=InvalidInviteCode.code, status_code=404
    )


@invite_router.get("/invite/{code}")
async def invite_page(request: Request, code: str):
    """Render the registration form for an invite code.

    Signed-in identities that already have a profile go straight home.
    """
    session = getattr(request.state, "session", None)
    values = {}
    if session is not None:
        try:
            profile = load_profile(request)
        except ProfileFetchFailure as exc:
            logger.warning("profile lookup failed on invite page code=%s", exc.detail)
            profile = None
        if profile is not None:
            return redirect(role_home(profile.role))
        try:
            user = wiring.get_identity_service().get_user(access_token=session.access_token)
            pending_name = user.user_metadata.get(PENDING_NAME_KEY)
            if isinstance(pending_name, str):
                values["name"] = pending_name
        except IdentityServiceError as exc:
            logger.info("identity metadata unavailable code=%s", exc.code)
    try:
        resolved = wiring.registration_flow().resolve_invite_role(code)
    except InvalidInviteCode:
        return _invalid_invite_page(request)
    return _invite_page(request, resolved.code, resolved.role, values=values)


@invite_router.post("/invite/{code}")
async def invite_submit(request: Request, code: str):
    """Redeem an invite from the SSR form.

    Behavior:
        - Signed in: requires the CSRF token; registers the current identity.
          A retry for an identity that already redeemed this code goes home.
        - Anonymous: same-origin check, then the full registration chain.
        - Success redirects (303) to the new profile's home with a toast.
    """
    form = await request.form()
    values = {
        "name": str(form.get("name") or "").strip(),
        "email": str(form.get("email") or "").strip(),
        "l1": str(form.get("l1") or "").strip(),
    }
    flow = wiring.registration_flow()
    session = getattr(request.state, "session", None)

    if session is not None:
        if form_csrf_ok(request, form.get("csrf_token")):
            try:
                profile = flow.register_with_invite(code, values["name"], values["l1"] or None, session)
            except ProfileRegistrationFailure as exc:
                failure = exc
            else:
                return redirect(role_home(profile.role), toast="registered")
        else:
            failure = None
        try:
            resolved = flow.resolve_invite_role(code)
        except InvalidInviteCode:
            return _invalid_invite_page(request)
        if failure is None:
            return _invite_page(request, resolved.code, resolved.role, values=values, toast="csrf", status_code=403)
        return _invite_page(
            request,
            resolved.code,
            resolved.role,
            values=values,
            errors=field_errors_for(failure),
            toast=toast_code_for(failure),
            status_code=400,
        )

    try:
        resolved = flow.resolve_invite_role(code)
    except InvalidInviteCode:
        return _invalid_invite_page(request)
    if not _is_same_origin(request):
        return _invite_page(request, resolved.code, resolved.role, values=values, toast="csrf", status_code=403)
    outcome = flow.run(resolved.code, values["email"], str(form.get("password") or ""), values["name"], values["l1"] or None)
    if isinstance(outcome, Registered):
        return start_verified_session(request, outcome.identity, target=role_home(outcome.profile.role), toast="registered")
    logger.info("invite registration abandoned stage=%s code=%s", outcome.failed_stage.value, outcome.error.code)
    status = 200 if isinstance(outcome.error, EmailConfirmationPending) else 400
    return _invite_page(
        request,
        resolved.code,
        resolved.role,
        values=values,
        errors=field_errors_for(outcome.error),
        toast=toast_code_for(outcome.error),
        status_code=status,
    )


@invite_router.get("/api/invites/{code}/role")
async def api_invite_role(request: Request, code: str):
    """Return the role bound to an active invite code.

    Behavior:
        - 200 {"code", "role"}
        - 404 {"error": "invalid_invite_code"} for unknown, inactive or
          malformed codes (indistinguishable on purpose)
    """
    try:
        resolved = wiring.registration_flow().resolve_invite_role(code)
    except InvalidInviteCode:
        return private_error({"error": InvalidInviteCode.code}, status_code=404)
    return json_private({"code": resolved.code, "role": resolved.role})


def _abandoned_payload(outcome: Abandoned) -> dict:
    return {
        "error": outcome.error.code,
        "stage": outcome.failed_stage.value,
        "compensated": outcome.compensated,
    }


@invite_router.post("/api/invites/{code}/register")
async def api_invite_register(request: Request, code: str, payload: InviteRegistrationPayload):
    """Register through an invite via JSON.

    Behavior:
        - With a session: registers the current identity (idempotent).
        - Without a session: runs the full chain; `email` and `password` are
          required.
        - 201 {"profile": ...} on success; 404 for invalid codes; 202 when the
          identity waits for e-mail confirmation; 400 for other failures.
          Error bodies carry `error`, `stage` and `compensated`.
    """
    csrf = csrf_guard(request)
    if csrf:
        return csrf
    flow = wiring.registration_flow()
    session = getattr(request.state, "session", None)
    if session is not None:
        # No role pre-check: a retry against a consumed single-use link must
        # still return the existing profile.
        try:
            profile = flow.register_with_invite(code, payload.name, payload.l1, session)
        except ProfileRegistrationFailure as exc:
            status = 404 if exc.detail == InvalidInviteCode.code else 400
            return private_error(
                _abandoned_payload(Abandoned(failed_stage=Stage.PROFILE_REGISTRATION, error=exc)), status_code=status
            )
        return json_private({"profile": _serialize_profile(profile)}, status_code=201)

    if not payload.email or not payload.password:
        return private_error({"error": "bad_request", "detail": "email_and_password_required"}, status_code=400)
    outcome = flow.run(code, payload.email, payload.password, payload.name, payload.l1)
    if isinstance(outcome, Registered):
        try:
            identity = verified_identity(outcome.identity)
        except AccessTokenVerificationError as exc:
            logger.warning("access token rejected after registration code=%s", exc.code)
            return private_error({"error": "invalid_token"}, status_code=401)
        rec = open_session(request, identity)
        out = json_private({"profile": _serialize_profile(outcome.profile)}, status_code=201)
        attach_session_cookie(request, out, rec)
        return out
    if outcome.failed_stage is Stage.CODE_RESOLUTION:
        status = 404
    elif isinstance(outcome.error, EmailConfirmationPending):
        status = 202
    else:
        status = 400
    return private_error(_abandoned_payload(outcome), status_code=status)


__all__ = ["invite_router", "InviteRegistrationPayload"]
