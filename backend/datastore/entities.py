"""
Typed entities for the Data Store.

Rows coming back from PostgREST are converted here, at the adapter boundary,
so services and web routes never pass loose dicts around.
"""
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional, Type, TypeVar


T = TypeVar("T")


def _from_row(cls: Type[T], row: Dict[str, Any]) -> T:
    """Build a dataclass from a row, ignoring unknown columns."""
    names = {f.name for f in fields(cls)}  # type: ignore[arg-type]
    kwargs = {k: v for k, v in (row or {}).items() if k in names}
    return cls(**kwargs)


@dataclass
class Profile:
    id: str
    name: str
    role: str
    email: Optional[str] = None
    l1: Optional[str] = None
    difficulty_level: int = 1
    classroom_id: Optional[str] = None
    invite_code: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Profile":
        profile = _from_row(cls, row)
        profile.difficulty_level = int(profile.difficulty_level or 1)
        return profile


@dataclass
class Classroom:
    id: str
    name: str
    created_at: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Classroom":
        return _from_row(cls, row)


@dataclass
class InviteLink:
    id: str
    code: str
    role: str
    classroom_id: Optional[str]
    active: bool = True
    single_use: bool = False
    created_at: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "InviteLink":
        link = _from_row(cls, row)
        link.active = bool(link.active)
        link.single_use = bool(link.single_use)
        return link


@dataclass
class InviteRedemption:
    code: str
    user_id: str
    profile_id: str
    redeemed_at: str = ""


@dataclass
class DailyWord:
    id: str
    norwegian: str
    date: str
    classroom_id: str
    theme: Optional[str] = None
    approved: bool = False
    created_by: Optional[str] = None
    image_url: Optional[str] = None
    image_alt: Optional[str] = None
    created_at: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "DailyWord":
        return _from_row(cls, row)


@dataclass
class LevelText:
    id: str
    dailyword_id: str
    level: int
    text: str
    image_url: Optional[str] = None
    image_alt: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "LevelText":
        return _from_row(cls, row)


@dataclass
class Translation:
    id: str
    dailyword_id: str
    language_code: str
    text: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Translation":
        return _from_row(cls, row)


@dataclass
class Pronunciation:
    id: str
    dailyword_id: str
    language_code: str
    audio_url: str

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Pronunciation":
        return _from_row(cls, row)


@dataclass
class Task:
    id: str
    dailyword_id: str
    type: str
    level: int
    prompt: Optional[str] = None
    answer: Any = None
    data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Task":
        task = _from_row(cls, row)
        if not isinstance(task.data, dict):
            task.data = {}
        return task


__all__ = [
    "Profile",
    "Classroom",
    "InviteLink",
    "InviteRedemption",
    "DailyWord",
    "LevelText",
    "Translation",
    "Pronunciation",
    "Task",
]
