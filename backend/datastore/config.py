"""
Centralized Supabase configuration.

Intent:
    Single source of truth for the environment variables the Identity Service
    and Data Store adapters need, so web wiring, startup checks and tests read
    the same values.

Behavior:
    - `load_supabase_config()` returns None when SUPABASE_URL or
      SUPABASE_ANON_KEY is missing; callers then wire the in-memory adapters.
    - `is_placeholder()` flags obvious dummy values copied from `.env.example`.

Permissions:
    Pure configuration; no external calls or privileges required.
"""
from __future__ import annotations

from dataclasses import dataclass
import os


TIMEOUT_SECONDS_DEFAULT = 10.0

_PLACEHOLDER_MARKERS = ("changeme", "change-me", "your-", "replace-me", "xxx", "placeholder")


@dataclass(frozen=True)
class SupabaseConfig:
    url: str
    anon_key: str
    service_role_key: str = ""
    jwt_secret: str = ""
    timeout_seconds: float = TIMEOUT_SECONDS_DEFAULT


def _timeout_from_env() -> float:
    raw = (os.getenv("SUPABASE_TIMEOUT_SECONDS") or "").strip()
    if not raw:
        return TIMEOUT_SECONDS_DEFAULT
    try:
        value = float(raw)
    except ValueError:
        return TIMEOUT_SECONDS_DEFAULT
    return value if value > 0 else TIMEOUT_SECONDS_DEFAULT


def load_supabase_config() -> SupabaseConfig | None:
    """Return the Supabase settings from the environment, or None if unset.

    Env:
        SUPABASE_URL, SUPABASE_ANON_KEY – required for any remote wiring.
        SUPABASE_SERVICE_ROLE_KEY – server-side table access and compensation.
        SUPABASE_JWT_SECRET – access-token verification (HS256).
        SUPABASE_TIMEOUT_SECONDS – PostgREST timeout, default 10.
    """
    url = (os.getenv("SUPABASE_URL") or "").strip()
    anon = (os.getenv("SUPABASE_ANON_KEY") or "").strip()
    if not url or not anon:
        return None
    return SupabaseConfig(
        url=url.rstrip("/"),
        anon_key=anon,
        service_role_key=(os.getenv("SUPABASE_SERVICE_ROLE_KEY") or "").strip(),
        jwt_secret=(os.getenv("SUPABASE_JWT_SECRET") or "").strip(),
        timeout_seconds=_timeout_from_env(),
    )


def is_placeholder(value: str | None) -> bool:
    v = (value or "").strip().lower()
    if not v:
        return True
    return any(marker in v for marker in _PLACEHOLDER_MARKERS)


__all__ = [
    "TIMEOUT_SECONDS_DEFAULT",
    "SupabaseConfig",
    "load_supabase_config",
    "is_placeholder",
]
