"""Teacher-side daily word creation.

New words start unapproved and belong to the author's classroom. The date
defaults to today (server local date) when omitted.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date as _date
from typing import Optional, Protocol
import logging

from datastore.entities import DailyWord, Profile
from datastore.errors import DataStoreError
from identity_access.errors import GenericRemoteError


logger = logging.getLogger("norgeskole.teaching")

MAX_WORD_LENGTH = 100
MAX_THEME_LENGTH = 100


class DailyWordsRepoProtocol(Protocol):
    def create_daily_word(
        self,
        *,
        norwegian: str,
        date: str,
        classroom_id: str,
        theme: Optional[str] = None,
        created_by: Optional[str] = None,
    ) -> DailyWord:
        ...


@dataclass
class CreateDailyWordInput:
    author: Profile
    norwegian: str
    theme: Optional[str] = None
    date: Optional[str] = None


def _normalize_word(value: object) -> str:
    if not isinstance(value, str):
        raise ValueError("invalid_norwegian")
    trimmed = value.strip()
    if not trimmed or len(trimmed) > MAX_WORD_LENGTH:
        raise ValueError("invalid_norwegian")
    return trimmed


def _normalize_theme(value: object) -> Optional[str]:
    if value is None:
        return None
    if not isinstance(value, str) or len(value.strip()) > MAX_THEME_LENGTH:
        raise ValueError("invalid_theme")
    return value.strip() or None


def _normalize_date(value: object) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return _date.today().isoformat()
    if not isinstance(value, str):
        raise ValueError("invalid_date")
    try:
        return _date.fromisoformat(value.strip()).isoformat()
    except ValueError as exc:
        raise ValueError("invalid_date") from exc


class CreateDailyWordUseCase:
    def __init__(self, repo: DailyWordsRepoProtocol) -> None:
        self._repo = repo

    def execute(self, req: CreateDailyWordInput) -> DailyWord:
        """Insert an unapproved word for the author's classroom.

        Permissions:
            Caller must be a teacher bound to a classroom (`no_classroom` otherwise).
        """
        if not req.author.classroom_id:
            raise ValueError("no_classroom")
        norwegian = _normalize_word(req.norwegian)
        theme = _normalize_theme(req.theme)
        day = _normalize_date(req.date)
        try:
            return self._repo.create_daily_word(
                norwegian=norwegian,
                date=day,
                classroom_id=req.author.classroom_id,
                theme=theme,
                created_by=req.author.id,
            )
        except DataStoreError as exc:
            logger.warning("daily word creation failed code=%s", exc.code)
            raise GenericRemoteError(exc.code) from exc


__all__ = ["CreateDailyWordInput", "CreateDailyWordUseCase", "DailyWordsRepoProtocol"]
