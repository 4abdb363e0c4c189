"""
Data Store port used by onboarding, routing and the dashboards.

Keep this small and framework-agnostic so tests can supply the in-memory store
(`datastore.memory.InMemoryDataStore`) or a fake supabase client.

Permissions:
    `register_with_invite` acts on behalf of the authenticated identity and
    needs its access token. Everything else runs server-side after the route
    guard has checked the caller's role.
"""
from __future__ import annotations

from typing import List, Optional, Protocol

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


class DataStore(Protocol):
    # --- remote procedures ---------------------------------------------------
    def get_invite_role(self, code: str) -> str:
        """Return the role bound to an active invite code or raise `DataStoreError`."""
        ...

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
        """Consume the invite and create the caller's profile.

        Idempotent per (code, user_id): a retry returns the existing profile.
        """
        ...

    # --- profiles ------------------------------------------------------------
    def get_profile(self, user_id: str) -> Optional[Profile]: ...

    def update_profile(
        self,
        user_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        l1: Optional[str] = None,
        difficulty_level: Optional[int] = None,
    ) -> Profile: ...

    def list_learners(self, classroom_id: str) -> List[Profile]: ...

    # --- classrooms ----------------------------------------------------------
    def list_classrooms(self) -> List[Classroom]: ...

    def get_classroom(self, classroom_id: str) -> Optional[Classroom]: ...

    def create_classroom(self, name: str) -> Classroom: ...

    # --- invite links --------------------------------------------------------
    def list_invite_links(self) -> List[InviteLink]: ...

    def get_invite_link(self, code: str) -> Optional[InviteLink]: ...

    def create_invite_link(self, *, code: str, role: str, classroom_id: Optional[str], single_use: bool = False) -> InviteLink: ...

    def set_invite_link_active(self, link_id: str, active: bool) -> InviteLink: ...

    # --- daily words ---------------------------------------------------------
    def create_daily_word(
        self,
        *,
        norwegian: str,
        date: str,
        classroom_id: str,
        theme: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> DailyWord: ...

    def list_daily_words(self, classroom_id: str, *, limit: int = 10) -> List[DailyWord]: ...

    def get_daily_word(self, word_id: str) -> Optional[DailyWord]: ...

    def list_translations(self, word_id: str) -> List[Translation]: ...

    def list_level_texts(self, word_id: str) -> List[LevelText]: ...

    def list_pronunciations(self, word_id: str) -> List[Pronunciation]: ...

    def list_tasks(self, word_id: str) -> List[Task]: ...


__all__ = ["DataStore"]
