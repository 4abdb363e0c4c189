"""
Identity Service adapters (Supabase Auth / GoTrue) for sign-up, sign-in and
user deletion.

Design:
- Framework-agnostic, callable from services and web adapters.
- `SupabaseAuthClient` talks to the GoTrue REST API with requests; callers are
  responsible for translating `IdentityServiceError` into user-facing errors.
- `InMemoryIdentityService` keeps users in process memory for dev/tests.

Security:
- Do not log credentials or tokens.
- User deletion (compensation after a failed registration) requires the
  service role key and must only be used server-side.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol
import hashlib
import hmac
import secrets
import uuid

import requests


class IdentityServiceError(Exception):
    """Raised when the Identity Service rejects or fails a request."""

    def __init__(self, code: str, *, status: int | None = None):
        super().__init__(code)
        self.code = code
        self.status = status


@dataclass
class IdentityUser:
    id: str
    email: str
    access_token: str = ""
    refresh_token: Optional[str] = None
    expires_in: int = 3600
    user_metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_session(self) -> bool:
        return bool(self.access_token)


class IdentityServiceProtocol(Protocol):
    def sign_up(self, *, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> IdentityUser: ...

    def sign_in_with_password(self, *, email: str, password: str) -> IdentityUser: ...

    def get_user(self, *, access_token: str) -> IdentityUser: ...

    def sign_out(self, *, access_token: str) -> None: ...

    def delete_user(self, *, user_id: str) -> None: ...


def _normalize_email(email: str) -> str:
    value = (email or "").strip().lower()
    local, _, domain = value.rpartition("@")
    if not local or not domain or "." not in domain or len(value) > 254:
        raise IdentityServiceError("invalid_email")
    return value


def _check_password(password: str) -> str:
    if not isinstance(password, str) or len(password) < 6:
        raise IdentityServiceError("weak_password")
    return password


class SupabaseAuthClient:
    """Minimal GoTrue REST client.

    Parameters
    ----------
    url:
        Project URL, e.g. https://xyz.supabase.co
    anon_key:
        Public anon key, sent as `apikey` on user-level calls.
    service_role_key:
        Optional; required only for `delete_user`.
    http:
        Object exposing `post/get/delete` like the requests module (tests inject fakes).
    """

    def __init__(
        self,
        *,
        url: str,
        anon_key: str,
        service_role_key: str | None = None,
        timeout: float = 10,
        http: Any = None,
    ) -> None:
        self._base = f"{url.rstrip('/')}/auth/v1"
        self._anon_key = anon_key
        self._service_key = service_role_key
        self._timeout = timeout
        self._http = http or requests

    def _headers(self, bearer: str | None = None, *, admin: bool = False) -> Dict[str, str]:
        key = self._service_key if admin else self._anon_key
        headers = {"apikey": key or "", "Content-Type": "application/json"}
        token = bearer or (self._service_key if admin else None)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    @staticmethod
    def _error_code(resp: Any, fallback: str) -> str:
        try:
            body = resp.json() or {}
        except ValueError:
            return fallback
        code = body.get("error_code") or body.get("error") or body.get("code")
        return str(code) if isinstance(code, str) and code else fallback

    @staticmethod
    def _user_from_payload(payload: Dict[str, Any]) -> IdentityUser:
        # Sign-up returns either a session ({access_token, user}) or the bare user
        # when e-mail confirmation is required.
        user = payload.get("user") if isinstance(payload.get("user"), dict) else payload
        uid = user.get("id")
        if not uid:
            raise IdentityServiceError("user_id_missing")
        meta = user.get("user_metadata")
        return IdentityUser(
            id=str(uid),
            email=str(user.get("email") or ""),
            access_token=str(payload.get("access_token") or ""),
            refresh_token=payload.get("refresh_token"),
            expires_in=int(payload.get("expires_in") or 3600),
            user_metadata=meta if isinstance(meta, dict) else {},
        )

    def sign_up(self, *, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> IdentityUser:
        body = {"email": _normalize_email(email), "password": _check_password(password), "data": metadata or {}}
        try:
            r = self._http.post(f"{self._base}/signup", headers=self._headers(), json=body, timeout=self._timeout)
        except requests.RequestException as exc:
            raise IdentityServiceError("identity_unreachable") from exc
        if r.status_code not in (200, 201):
            raise IdentityServiceError(self._error_code(r, "sign_up_failed"), status=r.status_code)
        return self._user_from_payload(r.json() or {})

    def sign_in_with_password(self, *, email: str, password: str) -> IdentityUser:
        body = {"email": _normalize_email(email), "password": password or ""}
        try:
            r = self._http.post(
                f"{self._base}/token",
                params={"grant_type": "password"},
                headers=self._headers(),
                json=body,
                timeout=self._timeout,
            )
        except requests.RequestException as exc:
            raise IdentityServiceError("identity_unreachable") from exc
        if r.status_code != 200:
            raise IdentityServiceError(self._error_code(r, "invalid_credentials"), status=r.status_code)
        user = self._user_from_payload(r.json() or {})
        if not user.access_token:
            raise IdentityServiceError("access_token_missing")
        return user

    def get_user(self, *, access_token: str) -> IdentityUser:
        try:
            r = self._http.get(f"{self._base}/user", headers=self._headers(access_token), timeout=self._timeout)
        except requests.RequestException as exc:
            raise IdentityServiceError("identity_unreachable") from exc
        if r.status_code != 200:
            raise IdentityServiceError("user_lookup_failed", status=r.status_code)
        user = self._user_from_payload(r.json() or {})
        user.access_token = access_token
        return user

    def sign_out(self, *, access_token: str) -> None:
        try:
            r = self._http.post(f"{self._base}/logout", headers=self._headers(access_token), timeout=self._timeout)
        except requests.RequestException as exc:
            raise IdentityServiceError("identity_unreachable") from exc
        if r.status_code not in (200, 204):
            raise IdentityServiceError("sign_out_failed", status=r.status_code)

    def delete_user(self, *, user_id: str) -> None:
        if not self._service_key:
            raise IdentityServiceError("service_role_key_missing")
        try:
            r = self._http.delete(
                f"{self._base}/admin/users/{user_id}", headers=self._headers(admin=True), timeout=self._timeout
            )
        except requests.RequestException as exc:
            raise IdentityServiceError("identity_unreachable") from exc
        if r.status_code not in (200, 204):
            raise IdentityServiceError("user_delete_failed", status=r.status_code)


@dataclass
class _StoredUser:
    id: str
    email: str
    salt: str
    password_hash: str
    user_metadata: Dict[str, Any]


class InMemoryIdentityService:
    """Process-local identity provider for development and tests.

    Mirrors the Supabase contract closely enough for the onboarding flow:
    duplicate e-mails are rejected, sign-in issues an opaque access token and
    deleted users lose all their tokens.
    """

    def __init__(self) -> None:
        self.users: Dict[str, _StoredUser] = {}
        self._by_email: Dict[str, str] = {}
        self._tokens: Dict[str, str] = {}

    @staticmethod
    def _hash(password: str, salt: str) -> str:
        return hashlib.sha256(f"{salt}:{password}".encode("utf-8")).hexdigest()

    def _issue(self, user: _StoredUser) -> IdentityUser:
        token = secrets.token_urlsafe(32)
        self._tokens[token] = user.id
        return IdentityUser(
            id=user.id,
            email=user.email,
            access_token=token,
            refresh_token=secrets.token_urlsafe(16),
            user_metadata=dict(user.user_metadata),
        )

    def sign_up(self, *, email: str, password: str, metadata: Optional[Dict[str, Any]] = None) -> IdentityUser:
        normalized = _normalize_email(email)
        _check_password(password)
        if normalized in self._by_email:
            raise IdentityServiceError("user_already_exists", status=422)
        salt = secrets.token_hex(8)
        user = _StoredUser(
            id=str(uuid.uuid4()),
            email=normalized,
            salt=salt,
            password_hash=self._hash(password, salt),
            user_metadata=dict(metadata or {}),
        )
        self.users[user.id] = user
        self._by_email[normalized] = user.id
        return self._issue(user)

    def sign_in_with_password(self, *, email: str, password: str) -> IdentityUser:
        uid = self._by_email.get(_normalize_email(email))
        user = self.users.get(uid or "")
        if not user or not hmac.compare_digest(user.password_hash, self._hash(password or "", user.salt)):
            raise IdentityServiceError("invalid_credentials", status=400)
        return self._issue(user)

    def get_user(self, *, access_token: str) -> IdentityUser:
        uid = self._tokens.get(access_token or "")
        user = self.users.get(uid or "")
        if not user:
            raise IdentityServiceError("user_lookup_failed", status=401)
        return IdentityUser(
            id=user.id, email=user.email, access_token=access_token, user_metadata=dict(user.user_metadata)
        )

    def sign_out(self, *, access_token: str) -> None:
        self._tokens.pop(access_token or "", None)

    def delete_user(self, *, user_id: str) -> None:
        user = self.users.pop(user_id, None)
        if not user:
            raise IdentityServiceError("user_not_found", status=404)
        self._by_email.pop(user.email, None)
        for token in [t for t, uid in self._tokens.items() if uid == user_id]:
            self._tokens.pop(token, None)


__all__ = [
    "IdentityServiceError",
    "IdentityUser",
    "IdentityServiceProtocol",
    "SupabaseAuthClient",
    "InMemoryIdentityService",
]
