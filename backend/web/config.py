"""
Configuration and startup security checks for Norgeskole.

Why: Learner data (names, mother tongue, classroom) must not end up behind an
accidentally insecure deployment. This module provides a single guard that
enforces minimal production safety constraints without burdening local
development.

Permissions: The caller needs no special privileges. The function simply reads
environment variables and raises `SystemExit` on fatal misconfiguration.
"""
from __future__ import annotations

import os

from datastore.config import is_placeholder


def is_prod_like(env: str | None) -> bool:
    env_l = (env or "").lower()
    return env_l in {"prod", "production", "stage", "staging"}


def ensure_secure_config_on_startup() -> None:
    """Fail fast on insecure production configuration.

    Intent: Abort process startup when obviously insecure settings are detected
    in production/staging. Development remains permissive for convenience.

    Checks:
    - SUPABASE_URL must be set and use https.
    - SUPABASE_ANON_KEY, SUPABASE_SERVICE_ROLE_KEY and SUPABASE_JWT_SECRET must
      be set and not placeholders.
    - DATABASE_URL must not explicitly disable TLS.
    - SESSIONS_BACKEND must be "db" so sessions survive restarts and scale out.
    """

    env = os.getenv("NORGESKOLE_ENV", "dev")
    if not is_prod_like(env):
        return  # dev/test remain permissive

    # 1) Supabase endpoint
    url = (os.getenv("SUPABASE_URL") or "").strip()
    if not url:
        raise SystemExit("Refusing to start: SUPABASE_URL is unset in production.")
    if not url.lower().startswith("https://"):
        raise SystemExit("Refusing to start: SUPABASE_URL must use https in production.")

    # 2) Keys and JWT secret
    for var in ("SUPABASE_ANON_KEY", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_JWT_SECRET"):
        if is_placeholder(os.getenv(var)):
            raise SystemExit(f"Refusing to start: {var} is unset or a placeholder in production.")

    # 3) Postgres TLS: basic guard to avoid explicit disable
    dsn = os.getenv("DATABASE_URL", "")
    if "sslmode=disable" in dsn:
        raise SystemExit(
            "Refusing to start: DATABASE_URL contains sslmode=disable in production. Use sslmode=require or verify TLS."
        )

    # 4) In-memory sessions are per-process only
    if (os.getenv("SESSIONS_BACKEND", "memory") or "").strip().lower() != "db":
        raise SystemExit("Refusing to start: SESSIONS_BACKEND=db is mandatory in production/staging.")
