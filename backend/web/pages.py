"""
Response helpers shared by the routers.

Why:
    Every router renders pages through the same Layout, protects JSON with the
    same cache policy and checks CSRF the same way. Keeping the helpers in one
    module avoids drift between the admin, teacher, learner and invite areas.

Permissions:
    None. Role checks happen in the auth middleware before handlers run.
"""
from __future__ import annotations

from typing import Any, Optional
from urllib.parse import urlencode
import logging
import os

from fastapi import Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from components import Layout
from datastore.entities import Profile
from identity_access.errors import ProfileFetchFailure
from routes.security import _is_same_origin, get_or_create_csrf_token, validate_csrf
from auth_utils import SESSION_COOKIE_NAME
import wiring


logger = logging.getLogger("norgeskole.web")

PRIVATE_HEADERS = {"Cache-Control": "private, no-store"}


def json_private(payload: Any, *, status_code: int = 200, vary_origin: bool = False) -> JSONResponse:
    """Return a JSONResponse that neither shared caches nor browsers keep."""
    headers = dict(PRIVATE_HEADERS)
    if vary_origin:
        headers["Vary"] = "Origin"
    return JSONResponse(content=payload, status_code=status_code, headers=headers)


def private_error(payload: dict, *, status_code: int, vary_origin: bool = False) -> JSONResponse:
    return json_private(payload, status_code=status_code, vary_origin=vary_origin)


def csrf_guard(request: Request) -> JSONResponse | None:
    """Enforce same-origin for JSON write requests.

    In prod-like environments an Origin or Referer header is required; in dev
    requests without either header pass so scripts and tests can call the API.
    """
    env = (os.getenv("NORGESKOLE_ENV", "dev") or "").lower()
    strict = env in {"prod", "production", "stage", "staging"}
    origin_present = request.headers.get("origin") or request.headers.get("referer")
    if (strict and not origin_present) or not _is_same_origin(request):
        return private_error({"error": "forbidden", "detail": "csrf_violation"}, status_code=403, vary_origin=True)
    return None


def session_id(request: Request) -> Optional[str]:
    return request.cookies.get(SESSION_COOKIE_NAME)


def csrf_token_for(request: Request) -> str:
    sid = session_id(request)
    return get_or_create_csrf_token(sid) if sid else ""


def form_csrf_ok(request: Request, form_value: Optional[str]) -> bool:
    return validate_csrf(session_id(request), form_value)


def redirect(url: str, *, toast: Optional[str] = None, status_code: int = 303) -> RedirectResponse:
    """Redirect with an optional toast code appended as `?melding=`."""
    if toast:
        sep = "&" if "?" in url else "?"
        url = f"{url}{sep}{urlencode({'melding': toast})}"
    return RedirectResponse(url=url, status_code=status_code, headers=dict(PRIVATE_HEADERS))


def page_user(request: Request, profile: Optional[Profile] = None) -> Optional[dict]:
    user = getattr(request.state, "user", None)
    if not user:
        return None
    merged = dict(user)
    if profile is not None:
        merged["name"] = profile.name
        merged["role"] = profile.role
    return merged


def layout_response(
    request: Request,
    *,
    title: str,
    content: str,
    profile: Optional[Profile] = None,
    toast: Optional[str] = None,
    status_code: int = 200,
) -> HTMLResponse:
    """Render a page inside the Layout.

    The toast comes from the explicit argument or the `melding` query
    parameter; unknown codes render nothing.
    """
    layout = Layout(
        title=title,
        content=content,
        user=page_user(request, profile),
        current_path=request.url.path,
        toast=toast or request.query_params.get("melding"),
        csrf_token=csrf_token_for(request),
    )
    response = HTMLResponse(content=layout.render(), status_code=status_code)
    # Pages are personalized or carry form state; never cache them.
    response.headers["Cache-Control"] = PRIVATE_HEADERS["Cache-Control"]
    return response


def load_profile(request: Request) -> Optional[Profile]:
    """Return the caller's profile or None.

    Raises `ProfileFetchFailure` when the Data Store cannot be reached.
    """
    user = getattr(request.state, "user", None)
    if not user:
        return None
    return wiring.profile_service().get(str(user.get("sub") or ""))


def profile_or_redirect(request: Request) -> tuple[Optional[Profile], Optional[RedirectResponse]]:
    """Return (profile, None) or (None, redirect to the entry page with a toast)."""
    try:
        profile = load_profile(request)
    except ProfileFetchFailure as exc:
        return None, redirect("/", toast=exc.code)
    if profile is None:
        return None, redirect("/", toast=ProfileFetchFailure.code)
    return profile, None


__all__ = [
    "PRIVATE_HEADERS",
    "json_private",
    "private_error",
    "csrf_guard",
    "session_id",
    "csrf_token_for",
    "form_csrf_ok",
    "redirect",
    "page_user",
    "layout_response",
    "load_profile",
    "profile_or_redirect",
]
