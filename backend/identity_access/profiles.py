"""
Profile use cases: read and update the caller's profile, adjust a learner's level.

Behavior:
- Names are trimmed and must be 1..100 characters (`invalid_name`).
- `difficulty_level` must be an integer in 1..5; anything else raises
  `ValueError("invalid_difficulty_level")`. Values are never clamped.
- Mother tongue must be one of the supported codes or empty (`invalid_l1`).
- Data Store failures become `ProfileFetchFailure` (reads) or
  `GenericRemoteError` (writes).
"""
from __future__ import annotations

from typing import List, Optional
import logging

from datastore.entities import Profile
from datastore.errors import DataStoreError

from .domain import MOTHER_TONGUES, is_valid_difficulty_level
from .errors import GenericRemoteError, ProfileFetchFailure


logger = logging.getLogger("norgeskole.identity_access")

MAX_NAME_LENGTH = 100


def normalize_name(value: str | None) -> str:
    name = (value or "").strip()
    if not name or len(name) > MAX_NAME_LENGTH:
        raise ValueError("invalid_name")
    return name


def normalize_l1(value: str | None) -> str:
    code = (value or "").strip().lower()
    if code and code not in MOTHER_TONGUES:
        raise ValueError("invalid_l1")
    return code


def parse_difficulty_level(raw: object) -> int:
    """Parse a level from JSON (int) or form data (str)."""
    if isinstance(raw, str):
        text = raw.strip()
        if not text.isdigit():
            raise ValueError("invalid_difficulty_level")
        raw = int(text)
    if not is_valid_difficulty_level(raw):
        raise ValueError("invalid_difficulty_level")
    return int(raw)  # type: ignore[arg-type]


def _normalize_email(value: str | None) -> Optional[str]:
    email = (value or "").strip()
    if not email:
        return None
    if "@" not in email or len(email) > 254:
        raise ValueError("invalid_email")
    return email


class ProfileService:
    def __init__(self, store) -> None:
        self._store = store

    def get(self, user_id: str) -> Optional[Profile]:
        try:
            return self._store.get_profile(user_id)
        except DataStoreError as exc:
            logger.warning("profile fetch failed code=%s", exc.code)
            raise ProfileFetchFailure(exc.code) from exc

    def update_own(
        self,
        user_id: str,
        *,
        name: str | None,
        email: str | None = None,
        l1: str | None = None,
        difficulty_level: object = None,
    ) -> Profile:
        """Update the caller's profile; `l1`/`difficulty_level` are left unchanged when None."""
        clean_name = normalize_name(name)
        clean_email = _normalize_email(email)
        clean_l1 = normalize_l1(l1) if l1 is not None else None
        level = parse_difficulty_level(difficulty_level) if difficulty_level is not None else None
        try:
            return self._store.update_profile(
                user_id,
                name=clean_name,
                email=clean_email,
                l1=clean_l1,
                difficulty_level=level,
            )
        except DataStoreError as exc:
            logger.warning("profile update failed code=%s", exc.code)
            raise GenericRemoteError(exc.code) from exc

    def list_learners(self, classroom_id: str) -> List[Profile]:
        try:
            return self._store.list_learners(classroom_id)
        except DataStoreError as exc:
            logger.warning("learner list failed code=%s", exc.code)
            raise ProfileFetchFailure(exc.code) from exc

    def set_learner_level(self, learner_id: str, raw_level: object) -> Profile:
        """Teacher action: change a learner's difficulty level."""
        level = parse_difficulty_level(raw_level)
        learner = self.get(learner_id)
        if learner is None or learner.role != "learner":
            raise LookupError("learner_not_found")
        try:
            return self._store.update_profile(learner_id, difficulty_level=level)
        except DataStoreError as exc:
            logger.warning("level update failed code=%s", exc.code)
            raise GenericRemoteError(exc.code) from exc


__all__ = [
    "MAX_NAME_LENGTH",
    "normalize_name",
    "normalize_l1",
    "parse_difficulty_level",
    "ProfileService",
]
