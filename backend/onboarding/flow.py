"""
Invitation-based registration as an explicit state machine.

Why:
    Registration chains three remote calls (role lookup, identity sign-up,
    profile registration). Modelling each step as a state makes partial
    failures visible and lets us clean up after them instead of leaving an
    identity without a profile behind.

States:
    CodeResolved -> IdentityCreated -> Registered
    any stage    -> Abandoned(failed_stage, error, compensated)

Behavior:
    - Calls run strictly in sequence, stop at the first failure and are never
      retried within one attempt.
    - A failure after the identity exists triggers compensation: the identity
      is deleted through the Identity Service admin API. When that fails too,
      the error becomes `OrphanedIdentity`; the identity keeps its pending invite
      code in user metadata and `recover_orphaned_identity` finishes the
      registration on the next login.
    - `register_with_invite` is idempotent per (code, identity).

Security:
    Logs carry stage names and error codes only, never e-mail addresses,
    passwords or tokens.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
import logging
import re

from datastore.entities import Profile
from datastore.errors import DataStoreError
from datastore.ports import DataStore
from identity_access.errors import (
    EmailConfirmationPending,
    IdentityCreationFailure,
    InvalidInviteCode,
    NorgeskoleError,
    OrphanedIdentity,
    ProfileRegistrationFailure,
)
from identity_access.events import AuthEventChannel, AuthEventKind
from identity_access.identity_client import IdentityServiceError, IdentityServiceProtocol, IdentityUser
from identity_access.profiles import normalize_l1, normalize_name
from identity_access.stores import SessionRecord


logger = logging.getLogger("norgeskole.onboarding")

INVITE_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{4,64}$")

# Keys stored in the identity's user metadata while registration is pending.
PENDING_INVITE_KEY = "pending_invite_code"
PENDING_NAME_KEY = "pending_display_name"
PENDING_L1_KEY = "pending_l1"


class Stage(str, Enum):
    CODE_RESOLUTION = "code_resolution"
    IDENTITY_CREATION = "identity_creation"
    PROFILE_REGISTRATION = "profile_registration"


@dataclass(frozen=True)
class CodeResolved:
    code: str
    role: str


@dataclass(frozen=True)
class IdentityCreated:
    resolved: CodeResolved
    identity: IdentityUser


@dataclass(frozen=True)
class Registered:
    profile: Profile
    identity: IdentityUser


@dataclass(frozen=True)
class Abandoned:
    failed_stage: Stage
    error: NorgeskoleError
    compensated: bool = False


Outcome = Union[Registered, Abandoned]


def is_well_formed_code(code: str | None) -> bool:
    return bool(code) and bool(INVITE_CODE_PATTERN.match(code or ""))


class RegistrationFlow:
    def __init__(self, store: DataStore, identity: IdentityServiceProtocol, *, events: AuthEventChannel | None = None) -> None:
        self._store = store
        self._identity = identity
        self._events = events

    # --- stage 1 ---------------------------------------------------------------

    def resolve_invite_role(self, code: str | None) -> CodeResolved:
        """Look up the role bound to an invite code.

        Raises `InvalidInviteCode` for empty, malformed, unknown or inactive codes.
        """
        value = (code or "").strip()
        if not is_well_formed_code(value):
            raise InvalidInviteCode("malformed")
        try:
            role = self._store.get_invite_role(value)
        except DataStoreError as exc:
            logger.info("invite code rejected code=%s", exc.code)
            raise InvalidInviteCode(exc.code) from exc
        return CodeResolved(code=value, role=role)

    # --- stage 2 ---------------------------------------------------------------

    def create_identity(
        self,
        resolved: CodeResolved,
        email: str,
        password: str,
        *,
        display_name: str = "",
        mother_tongue: str = "",
    ) -> IdentityCreated:
        """Sign up with the Identity Service, remembering the pending invite.

        The display name and mother tongue travel in user metadata as well so
        a later recovery can finish registration without asking again.
        """
        metadata = {
            PENDING_INVITE_KEY: resolved.code,
            PENDING_NAME_KEY: display_name,
            PENDING_L1_KEY: mother_tongue or "",
        }
        try:
            identity = self._identity.sign_up(email=email, password=password, metadata=metadata)
        except IdentityServiceError as exc:
            logger.warning("identity creation failed code=%s", exc.code)
            raise IdentityCreationFailure(exc.code) from exc
        return IdentityCreated(resolved=resolved, identity=identity)

    # --- stage 3 ---------------------------------------------------------------

    def register_with_invite(self, code: str, display_name: str, mother_tongue: str | None, session) -> Profile:
        """Create the caller's profile from an invite.

        `session` is any object exposing `user_id`, `email` and `access_token`
        (a `SessionRecord` in the web layer).

        Idempotent: the same identity and code return the existing profile.
        An identity already registered through another code fails without
        changing anything.
        """
        if session is None or not getattr(session, "access_token", ""):
            raise ProfileRegistrationFailure("not_authenticated")
        try:
            name = normalize_name(display_name)
            l1 = normalize_l1(mother_tongue)
        except ValueError as exc:
            raise ProfileRegistrationFailure(str(exc)) from exc
        value = (code or "").strip()
        if not is_well_formed_code(value):
            raise ProfileRegistrationFailure("invalid_invite_code")
        try:
            existing = self._store.get_profile(session.user_id)
            # Retries skip the role lookup: a single-use link is already inactive.
            role = existing.role if existing is not None else self._store.get_invite_role(value)
            profile = self._store.register_with_invite(
                code=value,
                name=name,
                l1_code=l1 or None,
                want_role=role,
                user_id=session.user_id,
                email=session.email or "",
                access_token=session.access_token,
            )
        except DataStoreError as exc:
            logger.warning("profile registration failed code=%s", exc.code)
            raise ProfileRegistrationFailure(exc.code) from exc
        if self._events is not None:
            self._events.publish(AuthEventKind.USER_UPDATED, session.user_id)
        return profile

    # --- full chain ------------------------------------------------------------

    def run(
        self,
        code: str,
        email: str,
        password: str,
        display_name: str,
        mother_tongue: str | None = None,
    ) -> Outcome:
        try:
            resolved = self.resolve_invite_role(code)
        except InvalidInviteCode as exc:
            return Abandoned(failed_stage=Stage.CODE_RESOLUTION, error=exc)

        # Profile input is checked before sign-up: an identity must never exist
        # for values stage 3 would reject.
        try:
            name = normalize_name(display_name)
            l1 = normalize_l1(mother_tongue)
        except ValueError as exc:
            logger.info("registration input rejected code=%s", exc)
            return Abandoned(failed_stage=Stage.IDENTITY_CREATION, error=ProfileRegistrationFailure(str(exc)))

        try:
            created = self.create_identity(resolved, email, password, display_name=name, mother_tongue=l1)
        except IdentityCreationFailure as exc:
            return Abandoned(failed_stage=Stage.IDENTITY_CREATION, error=exc)

        identity = created.identity
        if not identity.has_session:
            # E-mail confirmation required: registration resumes on first login.
            logger.info("identity awaiting confirmation stage=%s", Stage.PROFILE_REGISTRATION.value)
            return Abandoned(failed_stage=Stage.PROFILE_REGISTRATION, error=EmailConfirmationPending())

        session = SessionRecord(
            session_id="",
            user_id=identity.id,
            email=identity.email,
            access_token=identity.access_token,
            refresh_token=identity.refresh_token,
        )
        try:
            profile = self.register_with_invite(resolved.code, name, l1, session)
        except ProfileRegistrationFailure as exc:
            return self._compensate(identity, exc)
        return Registered(profile=profile, identity=identity)

    def _compensate(self, identity: IdentityUser, cause: ProfileRegistrationFailure) -> Abandoned:
        try:
            self._identity.delete_user(user_id=identity.id)
        except IdentityServiceError as exc:
            logger.error("compensation failed, identity orphaned code=%s", exc.code)
            return Abandoned(
                failed_stage=Stage.PROFILE_REGISTRATION,
                error=OrphanedIdentity(cause.detail),
                compensated=False,
            )
        logger.info("identity removed after failed registration code=%s", cause.code)
        if self._events is not None:
            self._events.publish(AuthEventKind.USER_DELETED, identity.id)
        return Abandoned(failed_stage=Stage.PROFILE_REGISTRATION, error=cause, compensated=True)

    # --- recovery --------------------------------------------------------------

    def pending_invite_code(self, session) -> Optional[str]:
        """Return the invite code an identity is still registering with, if any."""
        try:
            user = self._identity.get_user(access_token=session.access_token)
        except IdentityServiceError as exc:
            logger.warning("pending invite lookup failed code=%s", exc.code)
            return None
        code = user.user_metadata.get(PENDING_INVITE_KEY)
        return code if isinstance(code, str) and is_well_formed_code(code) else None

    def recover_orphaned_identity(self, session) -> Optional[Profile]:
        """Finish an interrupted registration for a signed-in identity.

        Returns the profile (existing or newly created), or None when the
        identity has no pending invite. Raises `ProfileRegistrationFailure`
        when the stored invite can no longer be redeemed.
        """
        try:
            existing = self._store.get_profile(session.user_id)
        except DataStoreError as exc:
            raise ProfileRegistrationFailure(exc.code) from exc
        if existing is not None:
            return existing
        try:
            user = self._identity.get_user(access_token=session.access_token)
        except IdentityServiceError as exc:
            logger.warning("recovery lookup failed code=%s", exc.code)
            raise ProfileRegistrationFailure(exc.code) from exc
        meta = user.user_metadata
        code = meta.get(PENDING_INVITE_KEY)
        if not isinstance(code, str) or not code:
            return None
        name = meta.get(PENDING_NAME_KEY) or ""
        if not isinstance(name, str) or not name.strip():
            # Nothing to register with yet; the invite page asks for the name.
            return None
        l1 = meta.get(PENDING_L1_KEY)
        profile = self.register_with_invite(code, name, l1 if isinstance(l1, str) else "", session)
        logger.info("orphaned identity recovered")
        return profile


__all__ = [
    "INVITE_CODE_PATTERN",
    "PENDING_INVITE_KEY",
    "Stage",
    "CodeResolved",
    "IdentityCreated",
    "Registered",
    "Abandoned",
    "Outcome",
    "is_well_formed_code",
    "RegistrationFlow",
]
