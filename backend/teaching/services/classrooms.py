"""Classroom service layer shared by the admin and teacher dashboards.

Why:
    Keeps name validation and error translation out of the web adapters so
    both dashboards create and list classrooms the same way.
"""

from __future__ import annotations

from typing import List, Optional, Protocol
import logging

from datastore.entities import Classroom
from datastore.errors import DataStoreError
from identity_access.errors import GenericRemoteError


logger = logging.getLogger("norgeskole.teaching")

MAX_CLASSROOM_NAME_LENGTH = 120


class ClassroomsRepoProtocol(Protocol):
    def list_classrooms(self) -> List[Classroom]:
        ...

    def get_classroom(self, classroom_id: str) -> Optional[Classroom]:
        ...

    def create_classroom(self, name: str) -> Classroom:
        ...


def _normalize_name(value: object) -> str:
    if not isinstance(value, str):
        raise ValueError("invalid_name")
    trimmed = value.strip()
    if not trimmed or len(trimmed) > MAX_CLASSROOM_NAME_LENGTH:
        raise ValueError("invalid_name")
    return trimmed


class ClassroomService:
    def __init__(self, repo: ClassroomsRepoProtocol) -> None:
        self._repo = repo

    def list(self) -> List[Classroom]:
        """Return all classrooms, newest first."""
        try:
            return self._repo.list_classrooms()
        except DataStoreError as exc:
            logger.warning("classroom list failed code=%s", exc.code)
            raise GenericRemoteError(exc.code) from exc

    def get(self, classroom_id: str) -> Optional[Classroom]:
        try:
            return self._repo.get_classroom(classroom_id)
        except DataStoreError as exc:
            logger.warning("classroom lookup failed code=%s", exc.code)
            raise GenericRemoteError(exc.code) from exc

    def create(self, name: object) -> Classroom:
        normalized = _normalize_name(name)
        try:
            return self._repo.create_classroom(normalized)
        except DataStoreError as exc:
            logger.warning("classroom creation failed code=%s", exc.code)
            raise GenericRemoteError(exc.code) from exc


__all__ = ["MAX_CLASSROOM_NAME_LENGTH", "ClassroomsRepoProtocol", "ClassroomService"]
