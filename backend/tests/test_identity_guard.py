"""
Role-gated routing: the pure `authorize` rule, the path map and the guard's
role cache tied to the auth event channel.
"""
from __future__ import annotations

from dataclasses import replace

import pytest

from datastore.entities import Profile
from datastore.errors import DataStoreError
from datastore.memory import InMemoryDataStore
from identity_access.events import AuthEventChannel, AuthEventKind
from identity_access.guard import Allow, Redirect, RouteGuard, authorize, required_role_for_path
from identity_access.stores import SessionRecord


SESSION = SessionRecord(session_id="s1", user_id="u1", email="kari@example.no", access_token="t")


class _UnavailableStore:
    def get_profile(self, user_id):
        raise DataStoreError("remote_error")


@pytest.mark.parametrize(
    "path, role",
    [
        ("/admin", "admin"),
        ("/admin/invite-links", "admin"),
        ("/api/admin/classrooms", "admin"),
        ("/teacher", "teacher"),
        ("/teacher/classrooms", "teacher"),
        ("/api/teaching/classrooms", "teacher"),
        ("/elev", "learner"),
        ("/elev/daily-word/abc", "learner"),
        ("/api/learning/profile", "learner"),
        ("/", None),
        ("/invite/kode1234", None),
        ("/api/me", None),
        ("/administrator", None),
        ("/teachers", None),
    ],
)
def test_required_role_for_path(path, role):
    assert required_role_for_path(path) == role


def test_authorize_without_session_goes_to_entry():
    assert authorize(None, "admin", "admin") == Redirect("/")


@pytest.mark.parametrize("role", [None, "", "rektor"])
def test_authorize_fails_closed_without_known_role(role):
    assert authorize(SESSION, "teacher", role) == Redirect("/")


@pytest.mark.parametrize(
    "role, home",
    [("learner", "/elev"), ("teacher", "/teacher"), ("admin", "/admin")],
)
def test_authorize_mismatch_redirects_to_own_home(role, home):
    required = "admin" if role != "admin" else "learner"
    assert authorize(SESSION, required, role) == Redirect(home)


def test_authorize_allows_matching_role():
    assert authorize(SESSION, "learner", "learner") == Allow()


def _store_with(role: str) -> InMemoryDataStore:
    store = InMemoryDataStore()
    store.add_profile(Profile(id="u1", name="Kari", role=role))
    return store


def test_decide_uses_stored_role():
    guard = RouteGuard(_store_with("teacher"))
    assert guard.decide(SESSION, "/teacher/classrooms") == Allow()
    assert guard.decide(SESSION, "/admin") == Redirect("/teacher")
    assert guard.decide(SESSION, "/api/me") == Allow()
    assert guard.decide(None, "/teacher") == Redirect("/")


def test_missing_profile_or_unavailable_store_denies():
    assert RouteGuard(InMemoryDataStore()).decide(SESSION, "/elev") == Redirect("/")
    guard = RouteGuard(_UnavailableStore())
    assert guard.role_for("u1") is None
    assert guard.decide(SESSION, "/elev") == Redirect("/")


def test_cached_role_is_dropped_on_auth_events_while_mounted():
    store = _store_with("learner")
    channel = AuthEventChannel()
    guard = RouteGuard(store)
    guard.mount(channel)
    assert guard.mounted
    assert guard.role_for("u1") == "learner"

    store.profiles["u1"] = replace(store.profiles["u1"], role="teacher")
    assert guard.role_for("u1") == "learner"  # cached

    channel.publish(AuthEventKind.USER_UPDATED, "someone-else")
    assert guard.role_for("u1") == "learner"

    channel.publish(AuthEventKind.USER_UPDATED, "u1")
    assert guard.role_for("u1") == "teacher"

    store.profiles["u1"] = replace(store.profiles["u1"], role="admin")
    channel.publish(AuthEventKind.SIGNED_OUT)
    assert guard.role_for("u1") == "admin"


def test_unmounted_guard_ignores_events():
    store = _store_with("learner")
    channel = AuthEventChannel()
    guard = RouteGuard(store)
    guard.mount(channel)
    guard.unmount()
    assert not guard.mounted
    assert channel.listener_count == 0

    guard.role_for("u1")
    store.profiles["u1"] = replace(store.profiles["u1"], role="teacher")
    channel.publish(AuthEventKind.USER_UPDATED, "u1")
    assert guard.role_for("u1") == "learner"


def test_remount_replaces_previous_subscription():
    channel = AuthEventChannel()
    guard = RouteGuard(InMemoryDataStore())
    guard.mount(channel)
    guard.mount(channel)
    assert channel.listener_count == 1
    guard.unmount()
    guard.unmount()
    assert channel.listener_count == 0


def test_use_store_forgets_cached_roles():
    guard = RouteGuard(_store_with("learner"))
    assert guard.role_for("u1") == "learner"
    guard.use_store(_store_with("admin"))
    assert guard.role_for("u1") == "admin"
