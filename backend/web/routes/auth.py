"""
Authentication-related FastAPI routes (router-only module).

Why:
    Keep login, learner registration and logout in a dedicated router; the
    invite router reuses `start_verified_session` so both registration paths create
    sessions the same way.

Behavior:
    - POST /auth/login: e-mail + password sign-in at the Identity Service.
    - POST /auth/register: the full invite registration chain from the entry
      page (code, name, e-mail, password, mother tongue).
    - POST /auth/logout: best-effort sign-out, session removal, SIGNED_OUT.

Security:
    Anonymous POSTs (login, register) are checked for same-origin; logout
    requires the per-session CSRF token. Responses carry
    `Cache-Control: private, no-store`. Logs carry error codes only.
"""

from __future__ import annotations

from typing import Dict, Optional
import logging

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse, Response

from components import AuthForm
from components.forms.auth_form import LEARNER_TAB, TEACHER_TAB
from components.toast import toast_code_for
from datastore.config import load_supabase_config
from identity_access.errors import EmailConfirmationPending, GenericRemoteError, NorgeskoleError
from identity_access.events import AuthEventKind
from identity_access.identity_client import IdentityServiceError, IdentityUser
from identity_access.tokens import AccessTokenVerificationError, verify_access_token
from onboarding.flow import Abandoned, Registered
from pages import form_csrf_ok, layout_response, redirect, session_id
from routes.security import _is_same_origin, drop_csrf_token, resolve_main
import wiring


auth_router = APIRouter(tags=["Auth"])  # explicit paths, no prefix
logger = logging.getLogger("norgeskole.web.auth")

# Identity Service codes that mean "wrong e-mail or password" to the user.
_CREDENTIAL_ERRORS = {"invalid_credentials", "invalid_grant", "invalid_email", "email_not_confirmed"}

# Error detail -> (form field, Norwegian message)
_FIELD_ERRORS: Dict[str, tuple[str, str]] = {
    "malformed": ("invite_code", "Ugyldig invitasjonskode."),
    "invalid_invite_code": ("invite_code", "Ugyldig invitasjonskode."),
    "not_found": ("invite_code", "Ugyldig invitasjonskode."),
    "invalid_name": ("name", "Vennligst fyll inn navn"),
    "invalid_l1": ("l1", "Velg et morsmål fra listen."),
    "invalid_email": ("email", "Ugyldig e-postadresse."),
    "user_already_exists": ("email", "E-postadressen er allerede registrert."),
    "weak_password": ("password", "Passordet må ha minst 6 tegn."),
}


def field_errors_for(error: NorgeskoleError) -> Dict[str, str]:
    entry = _FIELD_ERRORS.get(error.detail or "")
    return {entry[0]: entry[1]} if entry else {}


def entry_page(
    request: Request,
    *,
    tab: Optional[str] = None,
    values: Optional[Dict[str, str]] = None,
    errors: Optional[Dict[str, str]] = None,
    toast: Optional[str] = None,
    status_code: int = 200,
) -> HTMLResponse:
    """Render the public entry page with the teacher/learner tabs."""
    form = AuthForm(active_tab=tab or request.query_params.get("tab") or TEACHER_TAB, values=values, errors=errors)
    content = (
        '<section class="entry">'
        '<h1 class="entry__title">Norgeskole Hjelper</h1>'
        '<p class="entry__lead">Lær norsk med dagens ord.</p>'
        f"{form.render()}"
        "</section>"
    )
    return layout_response(request, title="Velkommen", content=content, toast=toast, status_code=status_code)


def verified_identity(user: IdentityUser) -> IdentityUser:
    """Check the access token signature when a JWT secret is configured.

    Raises `AccessTokenVerificationError` when the token is invalid or does
    not belong to the returned user.
    """
    cfg = load_supabase_config()
    if cfg is None or not cfg.jwt_secret:
        return user
    claims = verify_access_token(access_token=user.access_token, jwt_secret=cfg.jwt_secret)
    if claims.sub != user.id:
        raise AccessTokenVerificationError("subject_mismatch")
    return user


def open_session(request: Request, user: IdentityUser):
    """Create a server-side session for `user` and publish SIGNED_IN."""
    mod = resolve_main(request)
    rec = mod.SESSION_STORE.create(
        user_id=user.id,
        email=user.email,
        access_token=user.access_token,
        refresh_token=user.refresh_token,
        ttl_seconds=max(60, int(user.expires_in or 3600)),
    )
    wiring.AUTH_EVENTS.publish(AuthEventKind.SIGNED_IN, user.id)
    return rec


def attach_session_cookie(request: Request, response: Response, rec) -> None:
    mod = resolve_main(request)
    max_age = rec.ttl_seconds if mod.SETTINGS.environment == "prod" else None
    mod._set_session_cookie(response, rec.session_id, max_age=max_age)


def start_session(request: Request, user: IdentityUser, *, target: str = "/", toast: Optional[str] = None) -> RedirectResponse:
    """Open a session, set the cookie and redirect (303) to `target`."""
    rec = open_session(request, user)
    resp = redirect(target, toast=toast)
    attach_session_cookie(request, resp, rec)
    return resp


def start_verified_session(request: Request, user: IdentityUser, *, target: str = "/", toast: Optional[str] = None) -> RedirectResponse:
    """`start_session` for identities fresh from registration.

    A token that fails verification opens no session; the caller lands on the
    login tab instead, as after a rejected login.
    """
    try:
        user = verified_identity(user)
    except AccessTokenVerificationError as exc:
        logger.warning("access token rejected after registration code=%s", exc.code)
        return redirect(f"/?tab={TEACHER_TAB}", toast="invalid_credentials")
    return start_session(request, user, target=target, toast=toast)


@auth_router.post("/auth/login")
async def auth_login(request: Request):
    """Teacher login with e-mail and password.

    Redirects (303) to the entry page, which forwards to the caller's home.
    Failures redirect back to the teacher tab with a toast.
    """
    if not _is_same_origin(request):
        return redirect(f"/?tab={TEACHER_TAB}", toast="csrf")
    form = await request.form()
    email = str(form.get("email") or "").strip()
    password = str(form.get("password") or "")
    try:
        user = verified_identity(
            wiring.get_identity_service().sign_in_with_password(email=email, password=password)
        )
    except IdentityServiceError as exc:
        logger.info("login rejected code=%s", exc.code)
        toast = "invalid_credentials" if exc.code in _CREDENTIAL_ERRORS else GenericRemoteError.code
        return redirect(f"/?tab={TEACHER_TAB}", toast=toast)
    except AccessTokenVerificationError as exc:
        logger.warning("access token rejected code=%s", exc.code)
        return redirect(f"/?tab={TEACHER_TAB}", toast="invalid_credentials")
    return start_session(request, user, target="/", toast="logged_in")


@auth_router.post("/auth/register")
async def auth_register(request: Request):
    """Learner registration from the entry page (full invite chain).

    Behavior:
        - Registered: session starts, redirect (303) home with a welcome toast.
        - E-mail confirmation pending: 200 with an informational toast.
        - Any other failure: 400, form re-rendered with the values (never the
          password) and a toast for the failed stage.
    """
    form = await request.form()
    values = {
        "invite_code": str(form.get("invite_code") or "").strip(),
        "name": str(form.get("name") or "").strip(),
        "email": str(form.get("email") or "").strip(),
        "l1": str(form.get("l1") or "").strip(),
    }
    if not _is_same_origin(request):
        return entry_page(request, tab=LEARNER_TAB, values=values, toast="csrf", status_code=403)
    outcome = wiring.registration_flow().run(
        values["invite_code"],
        values["email"],
        str(form.get("password") or ""),
        values["name"],
        values["l1"] or None,
    )
    if isinstance(outcome, Registered):
        return start_verified_session(request, outcome.identity, target="/", toast="registered")
    assert isinstance(outcome, Abandoned)
    logger.info("registration abandoned stage=%s code=%s", outcome.failed_stage.value, outcome.error.code)
    status = 200 if isinstance(outcome.error, EmailConfirmationPending) else 400
    return entry_page(
        request,
        tab=LEARNER_TAB,
        values=values,
        errors=field_errors_for(outcome.error),
        toast=toast_code_for(outcome.error),
        status_code=status,
    )


@auth_router.post("/auth/logout")
async def auth_logout(request: Request):
    """Sign out and clear the session cookie.

    Behavior:
        - Requires the session's CSRF token when a session cookie is present.
        - Identity Service sign-out is best effort; the local session is
          always removed.
        - Publishes SIGNED_OUT so the route guard drops the cached role.
    """
    mod = resolve_main(request)
    sid = session_id(request)
    form = await request.form()
    if sid and not form_csrf_ok(request, form.get("csrf_token")):
        return redirect("/", toast="csrf")
    rec = None
    if sid:
        try:
            rec = mod.SESSION_STORE.get(sid)
        except Exception as exc:
            logger.warning("Session lookup failed during logout: %s", exc.__class__.__name__)
    if rec is not None and rec.access_token:
        try:
            wiring.get_identity_service().sign_out(access_token=rec.access_token)
        except IdentityServiceError as exc:
            logger.warning("identity sign-out failed code=%s", exc.code)
    if sid:
        try:
            mod.SESSION_STORE.delete(sid)
        except Exception as exc:
            logger.warning("Session delete failed during logout: %s", exc.__class__.__name__)
        drop_csrf_token(sid)
    wiring.AUTH_EVENTS.publish(AuthEventKind.SIGNED_OUT, rec.user_id if rec is not None else None)
    resp = redirect("/", toast="logged_out")
    mod._clear_session_cookie(resp)
    return resp


__all__ = ["auth_router", "entry_page", "open_session", "attach_session_cookie", "start_session", "start_verified_session", "verified_identity", "field_errors_for"]
