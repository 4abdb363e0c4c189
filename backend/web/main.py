"Norgeskole Hjelper"
from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from urllib.parse import urlparse
import logging
import os
import sys as _sys

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.staticfiles import StaticFiles
from dotenv import load_dotenv

from auth_utils import SESSION_COOKIE_NAME, cookie_opts, session_from_request
from components.toast import toast_code_for
from identity_access.domain import role_home
from identity_access.errors import ProfileFetchFailure, ProfileRegistrationFailure
from identity_access.guard import Redirect, required_role_for_path
from identity_access.stores import SessionStore
import wiring

# Ensure legacy imports consistently reference the same module instance.
if __name__ == "main":
    _sys.modules.setdefault("backend.web.main", _sys.modules[__name__])
elif __name__ == "backend.web.main":
    _sys.modules["main"] = _sys.modules[__name__]


def _should_load_dotenv() -> bool:
    """Decide if we should load a local .env file.

    - Never load under pytest to avoid contaminating test env.
    - Allow explicit opt-out via NORGESKOLE_ENABLE_DOTENV (default true
      outside pytest).
    """
    if "pytest" in _sys.modules or os.getenv("PYTEST_CURRENT_TEST"):
        return False
    flag = (os.getenv("NORGESKOLE_ENABLE_DOTENV", "true") or "").strip().lower()
    return flag in ("1", "true", "yes")


if _should_load_dotenv():
    load_dotenv()

# Minimal production safety checks (fail-fast on insecure config)
import config as _cfg  # noqa: E402

_cfg.ensure_secure_config_on_startup()

# --- App & Settings Setup -------------------------------------------------------


class AuthSettings:
    def __init__(self) -> None:
        self._env_override: str | None = None

    @property
    def environment(self) -> str:
        if self._env_override is not None:
            return self._env_override
        return os.getenv("NORGESKOLE_ENV", "dev").lower()

    def override_environment(self, env: str | None) -> None:
        """Override environment for tests (e.g., "prod"), or reset with None."""
        self._env_override = env


logger = logging.getLogger("norgeskole.web")
SETTINGS = AuthSettings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Mount the route guard on the auth event channel for the app's lifetime."""
    wiring.GUARD.mount(wiring.AUTH_EVENTS)
    logger.info("route guard mounted")
    try:
        yield
    finally:
        wiring.GUARD.unmount()
        logger.info("route guard unmounted")


app = FastAPI(
    title="Norgeskole Hjelper",
    description="Daglig norskord for elever, lærere og administratorer",
    version="0.1.0",
    lifespan=lifespan,
)

# --- Static Files & Routers -----------------------------------------------------

static_dir = Path(__file__).parent / "static"
app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")

from routes.auth import auth_router, entry_page  # noqa: E402
from routes.invite import invite_router  # noqa: E402
from routes.admin import admin_router  # noqa: E402
from routes.teaching import teaching_router  # noqa: E402
from routes.learning import learning_router  # noqa: E402
from pages import json_private, private_error, redirect  # noqa: E402

# Wire Supabase adapters before the first request; in-memory otherwise.
DATA_BACKEND = wiring.wire_from_env()


def _under_pytest() -> bool:
    return "pytest" in _sys.modules or bool(os.getenv("PYTEST_CURRENT_TEST"))


if (not _under_pytest()) and os.getenv("SESSIONS_BACKEND", "memory").lower() == "db":
    from identity_access.stores_db import DBSessionStore

    SESSION_STORE = DBSessionStore()
else:
    SESSION_STORE = SessionStore()

# --- Auth Helpers & Middleware --------------------------------------------------


def _session_cookie_options() -> dict:
    return cookie_opts(SETTINGS.environment)


def _set_session_cookie(response: Response, value: str, *, max_age: int | None = None) -> None:
    opts = _session_cookie_options()
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=value,
        httponly=True,
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/",
        max_age=max_age,
    )


def _clear_session_cookie(response: Response) -> None:
    opts = _session_cookie_options()
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value="",
        httponly=True,
        secure=opts["secure"],
        samesite=opts["samesite"],
        path="/",
        expires=0,
        max_age=0,
    )


_PUBLIC_PREFIXES = ("/auth/", "/static/", "/invite/", "/api/invites/")


def _is_public_path(path: str) -> bool:
    return path.startswith(_PUBLIC_PREFIXES) or path in ("/", "/health", "/favicon.ico")


def _denied(path: str, *, authenticated: bool, target: str = "/") -> Response:
    headers = {"Cache-Control": "private, no-store", "Vary": "Origin"}
    if path.startswith("/api/"):
        if not authenticated:
            return JSONResponse({"error": "unauthenticated"}, status_code=401, headers=headers)
        return JSONResponse({"error": "forbidden"}, status_code=403, headers=headers)
    return RedirectResponse(url=target, status_code=303, headers={"Cache-Control": "private, no-store"})


@app.middleware("http")
async def auth_enforcement(request: Request, call_next):
    path = request.url.path
    rec = session_from_request(request, SESSION_STORE)
    # Expose minimal, read-only session context for downstream handlers.
    request.state.session = rec
    request.state.user = {"sub": rec.user_id, "email": rec.email, "role": None} if rec else None
    if _is_public_path(path):
        return await call_next(request)

    required = required_role_for_path(path)
    if required is None:
        if rec is None:
            return _denied(path, authenticated=False)
        return await call_next(request)

    decision = wiring.GUARD.decide(rec, path)
    if isinstance(decision, Redirect):
        logger.info("route denied path_role=%s authenticated=%s", required, rec is not None)
        return _denied(path, authenticated=rec is not None, target=decision.target)
    request.state.user["role"] = required
    return await call_next(request)


# --- Security Headers Middleware ----------------------------------------------


def _media_origins() -> list[str]:
    """Origins allowed for images and audio (Supabase storage public URLs)."""
    origins = []
    for var in ("SUPABASE_PUBLIC_URL", "SUPABASE_URL"):
        raw = (os.getenv(var) or "").strip()
        if not raw:
            continue
        p = urlparse(raw)
        if p.scheme and p.netloc:
            origins.append(f"{p.scheme}://{p.netloc}")
    return list(dict.fromkeys(origins))


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    media = " ".join(["'self'", "data:", *_media_origins()])
    if SETTINGS.environment == "prod":
        # Harden CSP in production: no inline scripts or styles.
        csp = (
            "default-src 'self'; script-src 'self'; style-src 'self'; "
            f"img-src {media}; media-src {media}; font-src 'self' data:; connect-src 'self'; "
            "form-action 'self'; frame-ancestors 'self';"
        )
    else:
        csp = (
            "default-src 'self'; script-src 'self' 'unsafe-inline'; style-src 'self' 'unsafe-inline'; "
            f"img-src {media}; media-src {media}; font-src 'self' data:; connect-src 'self';"
        )
    response.headers.setdefault("Content-Security-Policy", csp)
    response.headers.setdefault("X-Frame-Options", "SAMEORIGIN")
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("Referrer-Policy", "strict-origin-when-cross-origin")
    if SETTINGS.environment == "prod":
        response.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")
    response.headers.setdefault("Permissions-Policy", "geolocation=(), microphone=(), camera=()")
    # HSTS: always on (dev = prod)
    response.headers.setdefault("Strict-Transport-Security", "max-age=31536000; includeSubDomains")
    return response


# --- Entry, Health & Me -----------------------------------------------------------


@app.get("/")
async def entry(request: Request):
    """Public entry page.

    Behavior:
        - Signed in with a profile: redirect (303) to the role's home,
          forwarding any toast.
        - Signed in without a profile: finish a pending registration from the
          identity's metadata, or continue on `/invite/{code}`.
        - Otherwise: teacher login / learner registration tabs.
    """
    rec = getattr(request.state, "session", None)
    toast = request.query_params.get("melding")
    if rec is not None:
        role = wiring.GUARD.role_for(rec.user_id)
        if role:
            return redirect(role_home(role), toast=toast)
        flow = wiring.registration_flow()
        try:
            profile = flow.recover_orphaned_identity(rec)
        except ProfileRegistrationFailure as exc:
            logger.warning("registration recovery failed code=%s", exc.detail)
            pending = flow.pending_invite_code(rec)
            if pending:
                # The invite page asks again for what the stored values lacked.
                return redirect(f"/invite/{pending}", toast=toast_code_for(exc))
            return entry_page(request, toast=toast_code_for(exc))
        if profile is not None:
            return redirect(role_home(profile.role), toast="registered")
        pending = flow.pending_invite_code(rec)
        if pending:
            return redirect(f"/invite/{pending}")
    return entry_page(request, toast=toast)


@app.get("/health")
async def health_check():
    # Minimal health endpoint used by orchestrators and tests.
    return JSONResponse({"status": "healthy"}, headers={"Cache-Control": "private, no-store"})


@app.get("/api/me")
async def get_me(request: Request):
    """Return the caller's identity and profile.

    Behavior:
        - 200 {"sub", "email", "role", "profile", "expires_at"}; `role` and
          `profile` are null while registration is unfinished.
        - 401 without session (middleware), 502 when the profile fetch fails.
    """
    rec = request.state.session
    try:
        profile = wiring.profile_service().get(rec.user_id)
    except ProfileFetchFailure as exc:
        return private_error({"error": exc.code}, status_code=502)
    exp_iso = (
        datetime.fromtimestamp(rec.expires_at, tz=timezone.utc).isoformat(timespec="seconds")
        if rec.expires_at
        else None
    )
    body = {
        "sub": rec.user_id,
        "email": rec.email,
        "role": profile.role if profile else None,
        "profile": None,
        "expires_at": exp_iso,
    }
    if profile is not None:
        body["profile"] = {
            "id": profile.id,
            "name": profile.name,
            "role": profile.role,
            "email": profile.email,
            "l1": profile.l1,
            "difficulty_level": profile.difficulty_level,
            "classroom_id": profile.classroom_id,
        }
    return json_private(body)


# --- Router Includes --------------------------------------------------------------

app.include_router(auth_router)
app.include_router(invite_router)
app.include_router(admin_router)
app.include_router(teaching_router)
app.include_router(learning_router)
