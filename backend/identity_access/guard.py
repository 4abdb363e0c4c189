"""
Role-gated routing: decide whether a session may see a route.

Why:
    Every page of the app belongs to exactly one role. The decision is kept
    framework-agnostic so the web middleware and the tests share one rule.

Behavior:
    - `authorize(session, required_role, role)`:
        no session            -> Redirect("/")
        role unavailable      -> Redirect("/")   (fail closed)
        role != required_role -> Redirect(<caller's own home>)
        otherwise             -> Allow()
    - `required_role_for_path(path)` maps URL prefixes to roles; public paths
      return None.
    - `RouteGuard` resolves a user's role through the Data Store, caches it and
      drops cached roles whenever the auth event channel reports a change.

Permissions:
    The guard never grants more than the stored profile role. Lookup failures
    deny access instead of falling back to a default role.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Union
import logging
import threading

from datastore.errors import DataStoreError

from .domain import ALLOWED_ROLES, ENTRY_PATH, role_home
from .events import AuthEvent, AuthEventChannel, Subscription


logger = logging.getLogger("norgeskole.identity_access")


@dataclass(frozen=True)
class Allow:
    pass


@dataclass(frozen=True)
class Redirect:
    target: str


Decision = Union[Allow, Redirect]


# Longest prefixes first; the first match wins.
_ROLE_PREFIXES = (
    ("/api/admin", "admin"),
    ("/api/teaching", "teacher"),
    ("/api/learning", "learner"),
    ("/admin", "admin"),
    ("/teacher", "teacher"),
    ("/elev", "learner"),
)


def _matches(path: str, prefix: str) -> bool:
    return path == prefix or path.startswith(prefix + "/")


def required_role_for_path(path: str) -> Optional[str]:
    """Return the role a path requires, or None for paths not gated by role."""
    p = path or "/"
    for prefix, role in _ROLE_PREFIXES:
        if _matches(p, prefix):
            return role
    return None


def authorize(session: object | None, required_role: str, role: Optional[str]) -> Decision:
    if session is None:
        return Redirect(ENTRY_PATH)
    if not role or role not in ALLOWED_ROLES:
        return Redirect(ENTRY_PATH)
    if role != required_role:
        return Redirect(role_home(role))
    return Allow()


class RouteGuard:
    """Role lookup with a per-user cache tied to the auth event channel.

    Mount it on app startup with `mount(channel)` and release it with
    `unmount()` on shutdown; while mounted, every auth event drops the cached
    role of the affected user (or all cached roles when no user is named).
    """

    def __init__(self, store) -> None:
        self._store = store
        self._roles: Dict[str, str] = {}
        self._lock = threading.Lock()
        self._subscription: Subscription | None = None

    @property
    def mounted(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def mount(self, channel: AuthEventChannel) -> Subscription:
        if self._subscription is not None:
            self._subscription.unsubscribe()
        self._subscription = channel.subscribe(self._on_event)
        return self._subscription

    def unmount(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def use_store(self, store) -> None:
        """Point the guard at another Data Store and forget cached roles."""
        with self._lock:
            self._store = store
            self._roles.clear()

    def _on_event(self, event: AuthEvent) -> None:
        with self._lock:
            if event.user_id:
                self._roles.pop(event.user_id, None)
            else:
                self._roles.clear()

    def role_for(self, user_id: str) -> Optional[str]:
        """Return the stored role of a user; None when unknown or unavailable."""
        with self._lock:
            cached = self._roles.get(user_id)
        if cached:
            return cached
        try:
            profile = self._store.get_profile(user_id)
        except DataStoreError as exc:
            logger.warning("role lookup failed code=%s", exc.code)
            return None
        if profile is None:
            return None
        with self._lock:
            self._roles[user_id] = profile.role
        return profile.role

    def decide(self, session, path: str) -> Decision:
        required = required_role_for_path(path)
        if required is None:
            return Allow()
        role = self.role_for(session.user_id) if session is not None else None
        return authorize(session, required, role)


__all__ = [
    "Allow",
    "Redirect",
    "Decision",
    "authorize",
    "required_role_for_path",
    "RouteGuard",
]
