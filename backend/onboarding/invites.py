"""
Admin use cases for invite links.

Behavior:
- Codes are 13 random lowercase alphanumerics (`secrets`), unique per store.
- A link needs a role and an existing classroom; `single_use` links are
  deactivated by the store on their first redemption.
- Links are listed newest first with their classroom name and invite path.

Permissions:
    Caller must be an admin; the route guard enforces this before we run.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional
import logging
import secrets
import string

from datastore.entities import InviteLink
from datastore.errors import DataStoreError
from identity_access.domain import ALLOWED_ROLES
from identity_access.errors import GenericRemoteError


logger = logging.getLogger("norgeskole.onboarding")

CODE_LENGTH = 13
_ALPHABET = string.ascii_lowercase + string.digits
_MAX_CODE_ATTEMPTS = 3


def generate_invite_code(length: int = CODE_LENGTH) -> str:
    return "".join(secrets.choice(_ALPHABET) for _ in range(length))


def invite_path(code: str) -> str:
    return f"/invite/{code}"


@dataclass
class InviteLinkView:
    link: InviteLink
    classroom_name: Optional[str]
    path: str


@dataclass
class AdminOverview:
    classroom_count: int
    active_link_count: int


@dataclass
class CreateInviteLinkInput:
    role: str
    classroom_id: str
    single_use: bool = False


class InviteLinkService:
    def __init__(self, store) -> None:
        self._store = store

    def create(self, req: CreateInviteLinkInput) -> InviteLink:
        role = (req.role or "").strip().lower()
        if role not in ALLOWED_ROLES:
            raise ValueError("invalid_role")
        classroom_id = (req.classroom_id or "").strip()
        if not classroom_id:
            raise ValueError("invalid_classroom")
        try:
            if self._store.get_classroom(classroom_id) is None:
                raise ValueError("invalid_classroom")
            for attempt in range(_MAX_CODE_ATTEMPTS):
                try:
                    return self._store.create_invite_link(
                        code=generate_invite_code(),
                        role=role,
                        classroom_id=classroom_id,
                        single_use=bool(req.single_use),
                    )
                except DataStoreError as exc:
                    if exc.code != "duplicate_code" or attempt == _MAX_CODE_ATTEMPTS - 1:
                        raise
        except DataStoreError as exc:
            logger.warning("invite link creation failed code=%s", exc.code)
            raise GenericRemoteError(exc.code) from exc
        raise GenericRemoteError("duplicate_code")  # pragma: no cover

    def set_active(self, link_id: str, active: bool) -> InviteLink:
        try:
            return self._store.set_invite_link_active(link_id, active)
        except DataStoreError as exc:
            if exc.code == "not_found":
                raise LookupError("invite_link_not_found") from exc
            logger.warning("invite link toggle failed code=%s", exc.code)
            raise GenericRemoteError(exc.code) from exc

    def list_links(self) -> List[InviteLinkView]:
        try:
            links = self._store.list_invite_links()
            names = {c.id: c.name for c in self._store.list_classrooms()}
        except DataStoreError as exc:
            logger.warning("invite link list failed code=%s", exc.code)
            raise GenericRemoteError(exc.code) from exc
        return [
            InviteLinkView(link=link, classroom_name=names.get(link.classroom_id or ""), path=invite_path(link.code))
            for link in links
        ]

    def overview(self) -> AdminOverview:
        try:
            classrooms = self._store.list_classrooms()
            links = self._store.list_invite_links()
        except DataStoreError as exc:
            logger.warning("admin overview failed code=%s", exc.code)
            raise GenericRemoteError(exc.code) from exc
        return AdminOverview(
            classroom_count=len(classrooms),
            active_link_count=sum(1 for link in links if link.active),
        )


__all__ = [
    "CODE_LENGTH",
    "generate_invite_code",
    "invite_path",
    "InviteLinkView",
    "AdminOverview",
    "CreateInviteLinkInput",
    "InviteLinkService",
]
