"""
In-memory Data Store for development and tests.

Why:
    Lets the whole app run without Supabase. It implements the two remote
    procedures (`get_invite_role`, `register_with_invite`) with the same
    contract the database functions provide.

Behavior:
    - `register_with_invite` runs the consume-and-create step under a lock so
      a single-use link yields exactly one profile under concurrent requests.
    - A retry with the same (code, user) returns the existing profile; a user
      already registered through another code is rejected without changes.
    - Lists are ordered the way the dashboards show them: classrooms and
      invite links newest first, learners by name, daily words newest date first.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional
from uuid import uuid4
import threading

from identity_access.domain import ALLOWED_ROLES, DEFAULT_DIFFICULTY_LEVEL, is_valid_difficulty_level

from .entities import (
    Classroom,
    DailyWord,
    InviteLink,
    InviteRedemption,
    LevelText,
    Profile,
    Pronunciation,
    Task,
    Translation,
)
from .errors import DataStoreError


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _newest_first(items, key):
    # Stable sort on reversed insertion order keeps "newest first" for equal keys.
    return sorted(reversed(list(items)), key=key, reverse=True)


class InMemoryDataStore:
    def __init__(self) -> None:
        self.profiles: Dict[str, Profile] = {}
        self.classrooms: Dict[str, Classroom] = {}
        self.invite_links: Dict[str, InviteLink] = {}
        self.redemptions: List[InviteRedemption] = []
        self.daily_words: Dict[str, DailyWord] = {}
        self.translations: List[Translation] = []
        self.level_texts: List[LevelText] = []
        self.pronunciations: List[Pronunciation] = []
        self.tasks: List[Task] = []
        self._lock = threading.Lock()

    # --- remote procedures ---------------------------------------------------

    def _active_link(self, code: str) -> InviteLink:
        for link in self.invite_links.values():
            if link.code == code:
                if not link.active:
                    break
                return link
        raise DataStoreError("invalid_invite_code")

    def get_invite_role(self, code: str) -> str:
        return self._active_link(code).role

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
        with self._lock:
            existing = self.profiles.get(user_id)
            if existing is not None:
                if existing.invite_code == code:
                    return existing
                raise DataStoreError("already_registered")
            link = self._active_link(code)
            if link.role != want_role:
                raise DataStoreError("role_mismatch")
            now = _now()
            profile = Profile(
                id=user_id,
                name=name,
                email=email or None,
                l1=l1_code or None,
                role=link.role,
                difficulty_level=DEFAULT_DIFFICULTY_LEVEL,
                classroom_id=link.classroom_id,
                invite_code=code,
                created_at=now,
                updated_at=now,
            )
            self.profiles[user_id] = profile
            self.redemptions.append(InviteRedemption(code=code, user_id=user_id, profile_id=profile.id, redeemed_at=now))
            if link.single_use:
                link.active = False
            return profile

    # --- profiles ------------------------------------------------------------

    def get_profile(self, user_id: str) -> Optional[Profile]:
        return self.profiles.get(user_id)

    def add_profile(self, profile: Profile) -> Profile:
        """Seed a profile directly (e.g. the first admin)."""
        now = _now()
        stored = replace(profile, created_at=profile.created_at or now, updated_at=profile.updated_at or now)
        self.profiles[stored.id] = stored
        return stored

    def update_profile(
        self,
        user_id: str,
        *,
        name: Optional[str] = None,
        email: Optional[str] = None,
        l1: Optional[str] = None,
        difficulty_level: Optional[int] = None,
    ) -> Profile:
        current = self.profiles.get(user_id)
        if current is None:
            raise DataStoreError("not_found")
        if difficulty_level is not None and not is_valid_difficulty_level(difficulty_level):
            raise DataStoreError("invalid_input", "difficulty_level")
        changes = {}
        if name is not None:
            changes["name"] = name
        if email is not None:
            changes["email"] = email
        if l1 is not None:
            changes["l1"] = l1 or None
        if difficulty_level is not None:
            changes["difficulty_level"] = difficulty_level
        updated = replace(current, updated_at=_now(), **changes)
        self.profiles[user_id] = updated
        return updated

    def list_learners(self, classroom_id: str) -> List[Profile]:
        learners = [p for p in self.profiles.values() if p.classroom_id == classroom_id and p.role == "learner"]
        return sorted(learners, key=lambda p: p.name.lower())

    # --- classrooms ----------------------------------------------------------

    def list_classrooms(self) -> List[Classroom]:
        return _newest_first(self.classrooms.values(), key=lambda c: c.created_at)

    def get_classroom(self, classroom_id: str) -> Optional[Classroom]:
        return self.classrooms.get(classroom_id)

    def create_classroom(self, name: str) -> Classroom:
        classroom = Classroom(id=str(uuid4()), name=name, created_at=_now())
        self.classrooms[classroom.id] = classroom
        return classroom

    # --- invite links --------------------------------------------------------

    def list_invite_links(self) -> List[InviteLink]:
        return _newest_first(self.invite_links.values(), key=lambda link: link.created_at)

    def get_invite_link(self, code: str) -> Optional[InviteLink]:
        for link in self.invite_links.values():
            if link.code == code:
                return link
        return None

    def create_invite_link(self, *, code: str, role: str, classroom_id: Optional[str], single_use: bool = False) -> InviteLink:
        if role not in ALLOWED_ROLES:
            raise DataStoreError("invalid_input", "role")
        if self.get_invite_link(code) is not None:
            raise DataStoreError("duplicate_code")
        link = InviteLink(
            id=str(uuid4()),
            code=code,
            role=role,
            classroom_id=classroom_id,
            active=True,
            single_use=single_use,
            created_at=_now(),
        )
        self.invite_links[link.id] = link
        return link

    def set_invite_link_active(self, link_id: str, active: bool) -> InviteLink:
        link = self.invite_links.get(link_id)
        if link is None:
            raise DataStoreError("not_found")
        link.active = bool(active)
        return link

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
        word = DailyWord(
            id=str(uuid4()),
            norwegian=norwegian,
            date=date,
            classroom_id=classroom_id,
            theme=theme,
            approved=False,
            created_by=created_by,
            created_at=_now(),
        )
        self.daily_words[word.id] = word
        return word

    def list_daily_words(self, classroom_id: str, *, limit: int = 10) -> List[DailyWord]:
        words = [w for w in self.daily_words.values() if w.classroom_id == classroom_id]
        return _newest_first(words, key=lambda w: (w.date, w.created_at))[:limit]

    def get_daily_word(self, word_id: str) -> Optional[DailyWord]:
        return self.daily_words.get(word_id)

    def list_translations(self, word_id: str) -> List[Translation]:
        return [t for t in self.translations if t.dailyword_id == word_id]

    def list_level_texts(self, word_id: str) -> List[LevelText]:
        return sorted((t for t in self.level_texts if t.dailyword_id == word_id), key=lambda t: t.level)

    def list_pronunciations(self, word_id: str) -> List[Pronunciation]:
        return [p for p in self.pronunciations if p.dailyword_id == word_id]

    def list_tasks(self, word_id: str) -> List[Task]:
        return sorted((t for t in self.tasks if t.dailyword_id == word_id), key=lambda t: t.level)

    # --- seeding helpers (content is authored outside the app) ---------------

    def add_translation(self, word_id: str, language_code: str, text: str) -> Translation:
        item = Translation(id=str(uuid4()), dailyword_id=word_id, language_code=language_code, text=text)
        self.translations.append(item)
        return item

    def add_level_text(self, word_id: str, level: int, text: str) -> LevelText:
        item = LevelText(id=str(uuid4()), dailyword_id=word_id, level=level, text=text)
        self.level_texts.append(item)
        return item

    def add_pronunciation(self, word_id: str, language_code: str, audio_url: str) -> Pronunciation:
        item = Pronunciation(id=str(uuid4()), dailyword_id=word_id, language_code=language_code, audio_url=audio_url)
        self.pronunciations.append(item)
        return item

    def add_task(self, word_id: str, *, type: str, level: int, prompt: Optional[str] = None) -> Task:
        item = Task(id=str(uuid4()), dailyword_id=word_id, type=type, level=level, prompt=prompt)
        self.tasks.append(item)
        return item


__all__ = ["InMemoryDataStore"]
