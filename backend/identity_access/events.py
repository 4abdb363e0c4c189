"""
Auth event channel with scoped subscriptions.

Why:
    Role decisions cached by the route guard must be re-evaluated whenever the
    authentication state changes (sign-in, sign-out, user updated/deleted).
    Instead of one process-global listener, consumers subscribe to an explicit
    channel and hold a `Subscription` handle they release on teardown.

Behavior:
    - `subscribe(listener)` returns a `Subscription`; it is a context manager
      and `unsubscribe()` is idempotent, so it is released on every exit path.
    - `publish(kind, user_id)` fans out to listeners registered at publish time.
      A failing listener is logged and does not stop delivery to the others.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Optional
import itertools
import logging
import threading


logger = logging.getLogger("norgeskole.identity_access")


class AuthEventKind(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    USER_UPDATED = "USER_UPDATED"
    USER_DELETED = "USER_DELETED"


@dataclass(frozen=True)
class AuthEvent:
    kind: AuthEventKind
    user_id: Optional[str] = None


Listener = Callable[[AuthEvent], None]


class Subscription:
    """Handle for one registered listener."""

    def __init__(self, channel: "AuthEventChannel", key: int):
        self._channel = channel
        self._key = key
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        self._channel._remove(self._key)

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.unsubscribe()


class AuthEventChannel:
    def __init__(self) -> None:
        self._listeners: Dict[int, Listener] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Subscription:
        with self._lock:
            key = next(self._ids)
            self._listeners[key] = listener
        return Subscription(self, key)

    def _remove(self, key: int) -> None:
        with self._lock:
            self._listeners.pop(key, None)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def publish(self, kind: AuthEventKind, user_id: Optional[str] = None) -> None:
        event = AuthEvent(kind=AuthEventKind(kind), user_id=user_id)
        with self._lock:
            listeners = list(self._listeners.values())
        for listener in listeners:
            try:
                listener(event)
            except Exception as exc:
                logger.warning("auth event listener failed kind=%s error=%s", event.kind.value, exc.__class__.__name__)


__all__ = ["AuthEventKind", "AuthEvent", "AuthEventChannel", "Subscription"]
