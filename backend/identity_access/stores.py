"""
In-memory session store for development and tests.

Why: Keep Identity Service tokens server-side and opaque to the browser. The
cookie carries only a random session id; access/refresh tokens stay here. For
production use `SESSIONS_BACKEND=db` (see `stores_db.DBSessionStore`).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional
import secrets
import time


def _now() -> int:
    return int(time.time())


@dataclass
class SessionRecord:
    session_id: str
    user_id: str
    email: str
    access_token: str = ""
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    ttl_seconds: int = 3600


class SessionStore:
    def __init__(self):
        self._data: Dict[str, SessionRecord] = {}

    def create(
        self,
        *,
        user_id: str,
        email: str,
        access_token: str = "",
        refresh_token: Optional[str] = None,
        ttl_seconds: int = 3600,
    ) -> SessionRecord:
        sid = secrets.token_urlsafe(24)
        rec = SessionRecord(
            session_id=sid,
            user_id=user_id,
            email=email,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=_now() + ttl_seconds,
            ttl_seconds=ttl_seconds,
        )
        self._data[sid] = rec
        return rec

    def get(self, session_id: str) -> Optional[SessionRecord]:
        rec = self._data.get(session_id)
        if not rec:
            return None
        if rec.expires_at and rec.expires_at < _now():
            self._data.pop(session_id, None)
            return None
        return rec

    def delete(self, session_id: str) -> None:
        self._data.pop(session_id, None)

    def delete_for_user(self, user_id: str) -> int:
        """Drop every session of a user (e.g. after the identity was deleted)."""
        doomed = [sid for sid, rec in self._data.items() if rec.user_id == user_id]
        for sid in doomed:
            self._data.pop(sid, None)
        return len(doomed)
