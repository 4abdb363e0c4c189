"""
Adapter wiring for the web layer (Data Store, Identity Service, auth events).

Why:
    Routes and middleware share one Data Store, one Identity Service and one
    auth event channel. Keeping them here (instead of in `main`) lets routers
    import them without circular imports and lets tests swap implementations
    with `set_data_store()` / `set_identity_service()`.

Behavior:
    - `wire_from_env()` picks Supabase adapters when SUPABASE_URL and
      SUPABASE_ANON_KEY are configured, otherwise in-memory ones. It returns
      the backend name ("supabase" or "memory").
    - In prod/stage a Supabase client that cannot be built stops startup
      instead of falling back to in-memory adapters.
    - The route guard is created once; swapping the Data Store re-points it
      and drops its cached roles.

Security:
    Requires SUPABASE_SERVICE_ROLE_KEY for server-side table access; the key
    never leaves the server.
"""
from __future__ import annotations

import logging
import os

from config import is_prod_like
from datastore.config import load_supabase_config
from datastore.memory import InMemoryDataStore
from datastore.ports import DataStore
from identity_access.events import AuthEventChannel
from identity_access.guard import RouteGuard
from identity_access.identity_client import InMemoryIdentityService, SupabaseAuthClient
from identity_access.profiles import ProfileService
from onboarding.flow import RegistrationFlow
from onboarding.invites import InviteLinkService
from teaching.services.classrooms import ClassroomService


logger = logging.getLogger("norgeskole.web")

AUTH_EVENTS = AuthEventChannel()
_DATA_STORE: DataStore = InMemoryDataStore()
_IDENTITY = InMemoryIdentityService()
GUARD = RouteGuard(_DATA_STORE)


def get_data_store() -> DataStore:
    return _DATA_STORE


def get_identity_service():
    return _IDENTITY


def set_data_store(store: DataStore) -> None:
    """Allow tests (and startup wiring) to swap the Data Store implementation."""
    global _DATA_STORE
    _DATA_STORE = store
    GUARD.use_store(store)


def set_identity_service(service) -> None:
    """Allow tests (and startup wiring) to swap the Identity Service implementation."""
    global _IDENTITY
    _IDENTITY = service


def registration_flow() -> RegistrationFlow:
    return RegistrationFlow(_DATA_STORE, _IDENTITY, events=AUTH_EVENTS)


def profile_service() -> ProfileService:
    return ProfileService(_DATA_STORE)


def invite_link_service() -> InviteLinkService:
    return InviteLinkService(_DATA_STORE)


def classroom_service() -> ClassroomService:
    return ClassroomService(_DATA_STORE)


def wire_from_env() -> str:
    """Wire Supabase adapters when configured; keep in-memory ones otherwise."""
    cfg = load_supabase_config()
    if cfg is None:
        logger.info("Supabase not configured; using in-memory adapters")
        return "memory"
    if not cfg.service_role_key:
        logger.warning("SUPABASE_SERVICE_ROLE_KEY missing; using in-memory adapters")
        return "memory"
    # Lazy import keeps the supabase SDK out of dev/test paths.
    from datastore.supabase_store import build_supabase_data_store

    try:
        store = build_supabase_data_store(
            cfg.url, cfg.anon_key, cfg.service_role_key, timeout=cfg.timeout_seconds
        )
    except Exception as exc:
        if is_prod_like(os.getenv("NORGESKOLE_ENV")):
            # Process-local accounts and data are never acceptable outside dev.
            raise SystemExit(f"Refusing to start: Supabase client unavailable ({exc.__class__.__name__})") from exc
        logger.warning("Supabase client unavailable: %s", exc.__class__.__name__)
        return "memory"
    set_data_store(store)
    set_identity_service(
        SupabaseAuthClient(
            url=cfg.url,
            anon_key=cfg.anon_key,
            service_role_key=cfg.service_role_key,
            timeout=cfg.timeout_seconds,
        )
    )
    logger.info("Supabase adapters wired")
    return "supabase"


__all__ = [
    "AUTH_EVENTS",
    "GUARD",
    "get_data_store",
    "get_identity_service",
    "set_data_store",
    "set_identity_service",
    "registration_flow",
    "profile_service",
    "invite_link_service",
    "classroom_service",
    "wire_from_env",
]
