"""
Supabase-backed Data Store (PostgREST tables + remote procedures).

Design:
- Duck-typed supabase clients, e.g. from `supabase.create_client(...)`.
- `service_client` (service role key) serves table CRUD after the route guard
  has authorized the caller.
- `user_client_factory(access_token)` returns a client acting as the signed-in
  identity; `register_with_invite` must run as that identity because the
  database function reads `auth.uid()`.
- Every row is converted into a typed entity before it leaves this module.

Security:
- Never log tokens or row contents; log error codes only.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional
import logging

import httpx
from postgrest.exceptions import APIError

from identity_access.domain import ALLOWED_ROLES, is_valid_difficulty_level

from .entities import (
    Classroom,
    DailyWord,
    InviteLink,
    LevelText,
    Profile,
    Pronunciation,
    Task,
    Translation,
)
from .errors import DataStoreError


logger = logging.getLogger("norgeskole.datastore")

PROFILES = "profiles"
CLASSROOMS = "classrooms"
INVITE_LINKS = "admin_invite_links"
DAILY_WORDS = "daily_words"
LEVEL_TEXTS = "level_texts"
TRANSLATIONS = "translations"
PRONUNCIATIONS = "pronunciations"
TASKS = "tasks"


def _execute(query: Any, *, op: str, error_code: str = "remote_error") -> Any:
    """Run a PostgREST builder and translate client errors into `DataStoreError`."""
    try:
        resp = query.execute()
    except APIError as exc:
        logger.warning("datastore call failed op=%s code=%s", op, getattr(exc, "code", None))
        raise DataStoreError(error_code, str(getattr(exc, "code", "") or "")) from exc
    except httpx.HTTPError as exc:
        logger.warning("datastore unreachable op=%s error=%s", op, exc.__class__.__name__)
        raise DataStoreError("remote_error", exc.__class__.__name__) from exc
    return getattr(resp, "data", None)


def _rows(data: Any) -> List[Dict[str, Any]]:
    if isinstance(data, list):
        return [r for r in data if isinstance(r, dict)]
    if isinstance(data, dict):
        return [data]
    return []


def _first(data: Any) -> Optional[Dict[str, Any]]:
    rows = _rows(data)
    return rows[0] if rows else None


class SupabaseDataStore:
    def __init__(self, service_client: Any, *, user_client_factory: Callable[[str], Any]) -> None:
        self._db = service_client
        self._user_client = user_client_factory

    def _table(self, name: str) -> Any:
        return self._db.table(name)

    # --- remote procedures ---------------------------------------------------

    def get_invite_role(self, code: str) -> str:
        data = _execute(self._db.rpc("get_invite_role", {"code": code}), op="get_invite_role", error_code="invalid_invite_code")
        role = data[0] if isinstance(data, list) and data else data
        if not isinstance(role, str) or role not in ALLOWED_ROLES:
            raise DataStoreError("invalid_invite_code")
        return role

    def _matches_invite(self, profile: Profile, code: str) -> bool:
        if profile.invite_code:
            return profile.invite_code == code
        # Older schemas do not store the code on the profile; compare with the link.
        link = self.get_invite_link(code)
        return bool(link and link.role == profile.role and link.classroom_id == profile.classroom_id)

    def register_with_invite(
        self,
        *,
        code: str,
        name: str,
        l1_code: Optional[str],
        want_role: str,
        user_id: str,
        email: str,
        access_token: str,
    ) -> Profile:
        if not user_id or not access_token:
            raise DataStoreError("not_authenticated")
        existing = self.get_profile(user_id)
        if existing is not None:
            if self._matches_invite(existing, code):
                return existing
            raise DataStoreError("already_registered")
        client = self._user_client(access_token)
        params = {"code": code, "name": name, "l1_code": l1_code or None, "want_role": want_role}
        _execute(client.rpc("register_with_invite", params), op="register_with_invite", error_code="registration_rejected")
        profile = self.get_profile(user_id)
        if profile is None:
            raise DataStoreError("remote_error", "profile_missing")
        return profile

    # --- profiles ------------------------------------------------------------

    def get_profile(self, user_id: str) -> Optional[Profile]:
        row = _first(_execute(self._table(PROFILES).select("*").eq("id", user_id).limit(1), op="get_profile"))
        return Profile.from_row(row) if row else None

    def update_profile(
        self,
        user_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        l1: Optional[str] = None,
        difficulty_level: Optional[int] = None,
    ) -> Profile:
        if difficulty_level is not None and not is_valid_difficulty_level(difficulty_level):
            raise DataStoreError("invalid_input", "difficulty_level")
        payload: Dict[str, Any] = {}
        if name is not None:
            payload["name"] = name
        if email is not None:
            payload["email"] = email
        if l1 is not None:
            payload["l1"] = l1 or None
        if difficulty_level is not None:
            payload["difficulty_level"] = difficulty_level
        if not payload:
            current = self.get_profile(user_id)
            if current is None:
                raise DataStoreError("not_found")
            return current
        row = _first(_execute(self._table(PROFILES).update(payload).eq("id", user_id), op="update_profile"))
        if not row:
            raise DataStoreError("not_found")
        return Profile.from_row(row)

    def list_learners(self, classroom_id: str) -> List[Profile]:
        query = self._table(PROFILES).select("*").eq("classroom_id", classroom_id).eq("role", "learner").order("name")
        return [Profile.from_row(r) for r in _rows(_execute(query, op="list_learners"))]

    # --- classrooms ----------------------------------------------------------

    def list_classrooms(self) -> List[Classroom]:
        query = self._table(CLASSROOMS).select("*").order("created_at", desc=True)
        return [Classroom.from_row(r) for r in _rows(_execute(query, op="list_classrooms"))]

    def get_classroom(self, classroom_id: str) -> Optional[Classroom]:
        row = _first(_execute(self._table(CLASSROOMS).select("*").eq("id", classroom_id).limit(1), op="get_classroom"))
        return Classroom.from_row(row) if row else None

    def create_classroom(self, name: str) -> Classroom:
        row = _first(_execute(self._table(CLASSROOMS).insert({"name": name}), op="create_classroom"))
        if not row:
            raise DataStoreError("remote_error", "empty_insert")
        return Classroom.from_row(row)

    # --- invite links --------------------------------------------------------

    def list_invite_links(self) -> List[InviteLink]:
        query = self._table(INVITE_LINKS).select("*").order("created_at", desc=True)
        return [InviteLink.from_row(r) for r in _rows(_execute(query, op="list_invite_links"))]

    def get_invite_link(self, code: str) -> Optional[InviteLink]:
        row = _first(_execute(self._table(INVITE_LINKS).select("*").eq("code", code).limit(1), op="get_invite_link"))
        return InviteLink.from_row(row) if row else None

    def create_invite_link(self, *, code: str, role: str, classroom_id: Optional[str], single_use: bool = False) -> InviteLink:
        if role not in ALLOWED_ROLES:
            raise DataStoreError("invalid_input", "role")
        payload: Dict[str, Any] = {"code": code, "role": role, "classroom_id": classroom_id, "active": True}
        if single_use:
            payload["single_use"] = True
        row = _first(_execute(self._table(INVITE_LINKS).insert(payload), op="create_invite_link"))
        if not row:
            raise DataStoreError("remote_error", "empty_insert")
        return InviteLink.from_row(row)

    def set_invite_link_active(self, link_id: str, active: bool) -> InviteLink:
        query = self._table(INVITE_LINKS).update({"active": bool(active)}).eq("id", link_id)
        row = _first(_execute(query, op="set_invite_link_active"))
        if not row:
            raise DataStoreError("not_found")
        return InviteLink.from_row(row)

    # --- daily words ---------------------------------------------------------

    def create_daily_word(
        self,
        *,
        norwegian: str,
        date: str,
        classroom_id: str,
        theme: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> DailyWord:
        payload = {
            "norwegian": norwegian,
            "date": date,
            "theme": theme,
            "classroom_id": classroom_id,
            "created_by": created_by,
            "approved": False,
        }
        row = _first(_execute(self._table(DAILY_WORDS).insert(payload), op="create_daily_word"))
        if not row:
            raise DataStoreError("remote_error", "empty_insert")
        return DailyWord.from_row(row)

    def list_daily_words(self, classroom_id: str, *, limit: int = 10) -> List[DailyWord]:
        query = self._table(DAILY_WORDS).select("*").eq("classroom_id", classroom_id).order("date", desc=True).limit(limit)
        return [DailyWord.from_row(r) for r in _rows(_execute(query, op="list_daily_words"))]

    def get_daily_word(self, word_id: str) -> Optional[DailyWord]:
        row = _first(_execute(self._table(DAILY_WORDS).select("*").eq("id", word_id).limit(1), op="get_daily_word"))
        return DailyWord.from_row(row) if row else None

    def _children(self, table: str, word_id: str, *, order: str | None = None) -> List[Dict[str, Any]]:
        query = self._table(table).select("*").eq("dailyword_id", word_id)
        if order:
            query = query.order(order)
        return _rows(_execute(query, op=f"list_{table}"))

    def list_translations(self, word_id: str) -> List[Translation]:
        return [Translation.from_row(r) for r in self._children(TRANSLATIONS, word_id)]

    def list_level_texts(self, word_id: str) -> List[LevelText]:
        return [LevelText.from_row(r) for r in self._children(LEVEL_TEXTS, word_id, order="level")]

    def list_pronunciations(self, word_id: str) -> List[Pronunciation]:
        return [Pronunciation.from_row(r) for r in self._children(PRONUNCIATIONS, word_id)]

    def list_tasks(self, word_id: str) -> List[Task]:
        return [Task.from_row(r) for r in self._children(TASKS, word_id, order="level")]


def build_supabase_data_store(url: str, anon_key: str, service_role_key: str, *, timeout: float = 10.0) -> SupabaseDataStore:
    """Create a store from real supabase clients.

    Import is local so dev/test setups without Supabase never touch the SDK.
    """
    from supabase import ClientOptions, create_client

    options = ClientOptions(postgrest_client_timeout=timeout)
    service_client = create_client(url, service_role_key, options=options)

    def _user_client(access_token: str) -> Any:
        client = create_client(url, anon_key, options=ClientOptions(postgrest_client_timeout=timeout))
        client.postgrest.auth(access_token)
        return client

    return SupabaseDataStore(service_client, user_client_factory=_user_client)


__all__ = ["SupabaseDataStore", "build_supabase_data_store"]
