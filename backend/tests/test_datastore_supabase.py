"""
Supabase Data Store against a fake PostgREST client.

The fake supports the builder subset the adapter uses (select/eq/order/limit,
insert, update, rpc) over in-memory tables, so row mapping, error translation
and the register-with-invite contract can be checked without a network.
"""
from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Callable, Dict, List, Optional

import httpx
import pytest
from postgrest.exceptions import APIError

from datastore.entities import Profile
from datastore.errors import DataStoreError
from datastore.supabase_store import SupabaseDataStore


class _Query:
    def __init__(self, db: "_FakeClient", table: str):
        self._db = db
        self._table = table
        self._filters: List[tuple] = []
        self._order: Optional[tuple] = None
        self._limit: Optional[int] = None
        self._mode = "select"
        self._payload: Dict[str, Any] = {}

    def select(self, *_cols):
        self._mode = "select"
        return self

    def insert(self, payload):
        self._mode, self._payload = "insert", dict(payload)
        return self

    def update(self, payload):
        self._mode, self._payload = "update", dict(payload)
        return self

    def eq(self, col, value):
        self._filters.append((col, value))
        return self

    def order(self, col, desc=False):
        self._order = (col, desc)
        return self

    def limit(self, n):
        self._limit = n
        return self

    def _matching(self) -> List[dict]:
        rows = self._db.tables.setdefault(self._table, [])
        return [r for r in rows if all(r.get(c) == v for c, v in self._filters)]

    def execute(self):
        self._db.executed.append((self._table, self._mode))
        if self._db.fail_with is not None:
            raise self._db.fail_with
        if self._mode == "insert":
            row = {"id": f"{self._table}-{len(self._db.tables.get(self._table, [])) + 1}", "created_at": "2024-05-01T08:00:00+00:00"}
            row.update(self._payload)
            self._db.tables.setdefault(self._table, []).append(row)
            return SimpleNamespace(data=[dict(row)])
        if self._mode == "update":
            rows = self._matching()
            for r in rows:
                r.update(self._payload)
            return SimpleNamespace(data=[dict(r) for r in rows])
        rows = [dict(r) for r in self._matching()]
        if self._order:
            col, desc = self._order
            rows.sort(key=lambda r: r.get(col) or "", reverse=desc)
        if self._limit is not None:
            rows = rows[: self._limit]
        return SimpleNamespace(data=rows)


class _Rpc:
    def __init__(self, handler: Callable[[], Any]):
        self._handler = handler

    def execute(self):
        return SimpleNamespace(data=self._handler())


class _FakeClient:
    def __init__(self):
        self.tables: Dict[str, List[dict]] = {}
        self.rpc_handlers: Dict[str, Callable[[dict], Any]] = {}
        self.rpc_calls: List[tuple] = []
        self.executed: List[tuple] = []
        self.fail_with: Optional[Exception] = None

    def table(self, name):
        return _Query(self, name)

    def rpc(self, name, params):
        self.rpc_calls.append((name, params))
        handler = self.rpc_handlers[name]
        return _Rpc(lambda: handler(params))


def _api_error(code: str = "P0001") -> APIError:
    return APIError({"message": "rejected", "code": code, "hint": None, "details": None})


@pytest.fixture
def fake():
    service = _FakeClient()
    user_tokens: List[str] = []

    def user_client(token: str):
        user_tokens.append(token)
        return service

    store = SupabaseDataStore(service, user_client_factory=user_client)
    return store, service, user_tokens


def test_get_invite_role_accepts_scalar_and_list(fake):
    store, service, _ = fake
    service.rpc_handlers["get_invite_role"] = lambda params: "learner"
    assert store.get_invite_role("kode1234") == "learner"
    service.rpc_handlers["get_invite_role"] = lambda params: ["teacher"]
    assert store.get_invite_role("kode1234") == "teacher"
    assert service.rpc_calls[0] == ("get_invite_role", {"code": "kode1234"})


@pytest.mark.parametrize("answer", [None, [], "superuser"])
def test_get_invite_role_rejects_unknown_answers(fake, answer):
    store, service, _ = fake
    service.rpc_handlers["get_invite_role"] = lambda params: answer
    with pytest.raises(DataStoreError) as exc:
        store.get_invite_role("kode1234")
    assert exc.value.code == "invalid_invite_code"


def test_get_invite_role_api_error(fake):
    store, service, _ = fake

    def boom(params):
        raise _api_error()

    service.rpc_handlers["get_invite_role"] = boom
    with pytest.raises(DataStoreError) as exc:
        store.get_invite_role("kode1234")
    assert exc.value.code == "invalid_invite_code"


def test_register_with_invite_runs_as_the_identity(fake):
    store, service, tokens = fake

    def register(params):
        service.tables.setdefault("profiles", []).append(
            {"id": "u1", "name": params["name"], "role": params["want_role"], "l1": params["l1_code"], "difficulty_level": None, "invite_code": params["code"]}
        )
        return None

    service.rpc_handlers["register_with_invite"] = register

    profile = store.register_with_invite(
        code="kode1234", name="Ola", l1_code="", want_role="learner", user_id="u1", email="ola@example.no", access_token="jwt-u1"
    )

    assert tokens == ["jwt-u1"]
    assert service.rpc_calls[-1] == ("register_with_invite", {"code": "kode1234", "name": "Ola", "l1_code": None, "want_role": "learner"})
    assert isinstance(profile, Profile)
    assert profile.role == "learner"
    assert profile.difficulty_level == 1


def test_register_with_invite_returns_existing_profile_without_rpc(fake):
    store, service, tokens = fake
    service.tables["profiles"] = [{"id": "u1", "name": "Ola", "role": "learner", "invite_code": "kode1234"}]

    profile = store.register_with_invite(
        code="kode1234", name="Ola", l1_code=None, want_role="learner", user_id="u1", email="", access_token="jwt"
    )

    assert profile.id == "u1"
    assert tokens == []
    assert service.rpc_calls == []


def test_register_with_invite_matches_legacy_profiles_through_the_link(fake):
    store, service, _ = fake
    service.tables["profiles"] = [{"id": "u1", "name": "Ola", "role": "learner", "classroom_id": "c1"}]
    service.tables["admin_invite_links"] = [
        {"id": "l1", "code": "kode1234", "role": "learner", "classroom_id": "c1", "active": False},
        {"id": "l2", "code": "annen123", "role": "teacher", "classroom_id": "c1", "active": True},
    ]
    kwargs = dict(name="Ola", l1_code=None, want_role="learner", user_id="u1", email="", access_token="jwt")

    assert store.register_with_invite(code="kode1234", **kwargs).id == "u1"
    with pytest.raises(DataStoreError) as exc:
        store.register_with_invite(code="annen123", **kwargs)
    assert exc.value.code == "already_registered"


def test_register_with_invite_rejection(fake):
    store, service, _ = fake

    def reject(params):
        raise _api_error("P0001")

    service.rpc_handlers["register_with_invite"] = reject
    with pytest.raises(DataStoreError) as exc:
        store.register_with_invite(
            code="kode1234", name="Ola", l1_code=None, want_role="learner", user_id="u1", email="", access_token="jwt"
        )
    assert exc.value.code == "registration_rejected"


def test_register_with_invite_requires_token(fake):
    store, _, _ = fake
    with pytest.raises(DataStoreError) as exc:
        store.register_with_invite(code="kode1234", name="Ola", l1_code=None, want_role="learner", user_id="u1", email="", access_token="")
    assert exc.value.code == "not_authenticated"


def test_classrooms_and_invite_links(fake):
    store, service, _ = fake
    classroom = store.create_classroom("Norsk A1")
    service.tables["classrooms"].append({"id": "c0", "name": "Eldre", "created_at": "2023-01-01T00:00:00+00:00"})

    assert [c.name for c in store.list_classrooms()] == ["Norsk A1", "Eldre"]
    assert store.get_classroom(classroom.id).name == "Norsk A1"
    assert store.get_classroom("missing") is None

    link = store.create_invite_link(code="kode1234", role="learner", classroom_id=classroom.id, single_use=True)
    assert link.single_use is True and link.active is True
    assert store.set_invite_link_active(link.id, False).active is False
    assert store.get_invite_link("kode1234").active is False
    with pytest.raises(DataStoreError) as exc:
        store.set_invite_link_active("missing", True)
    assert exc.value.code == "not_found"
    with pytest.raises(DataStoreError):
        store.create_invite_link(code="x1234", role="rektor", classroom_id=None)


def test_update_profile(fake):
    store, service, _ = fake
    service.tables["profiles"] = [{"id": "u1", "name": "Ola", "role": "learner", "difficulty_level": 1}]

    updated = store.update_profile("u1", l1="", difficulty_level=4)

    assert updated.difficulty_level == 4
    assert updated.l1 is None
    with pytest.raises(DataStoreError) as exc:
        store.update_profile("u1", difficulty_level=0)
    assert exc.value.code == "invalid_input"
    with pytest.raises(DataStoreError) as exc:
        store.update_profile("missing", name="X")
    assert exc.value.code == "not_found"
    assert store.update_profile("u1").difficulty_level == 4


def test_daily_word_reads(fake):
    store, service, _ = fake
    service.tables["daily_words"] = [
        {"id": "w1", "norwegian": "hus", "date": "2024-05-01", "classroom_id": "c1"},
        {"id": "w2", "norwegian": "bil", "date": "2024-05-03", "classroom_id": "c1"},
        {"id": "w3", "norwegian": "båt", "date": "2024-05-02", "classroom_id": "c2"},
    ]
    service.tables["level_texts"] = [
        {"id": "t2", "dailyword_id": "w1", "level": 2, "text": "Huset er rødt."},
        {"id": "t1", "dailyword_id": "w1", "level": 1, "text": "Et hus."},
    ]
    service.tables["tasks"] = [{"id": "k1", "dailyword_id": "w1", "type": "quiz", "level": 1, "data": None}]

    assert [w.id for w in store.list_daily_words("c1")] == ["w2", "w1"]
    assert [t.level for t in store.list_level_texts("w1")] == [1, 2]
    assert store.list_tasks("w1")[0].data == {}
    assert store.list_translations("w1") == []
    assert store.get_daily_word("w3").norwegian == "båt"

    created = store.create_daily_word(norwegian="sol", date="2024-05-04", classroom_id="c1", created_by="t1")
    assert created.approved is False
    assert created.created_by == "t1"


def test_transport_errors_become_remote_error(fake):
    store, service, _ = fake
    service.fail_with = httpx.ConnectError("down")
    with pytest.raises(DataStoreError) as exc:
        store.list_classrooms()
    assert exc.value.code == "remote_error"

    service.fail_with = _api_error("42501")
    with pytest.raises(DataStoreError) as exc:
        store.get_profile("u1")
    assert exc.value.code == "remote_error"
    assert exc.value.detail == "42501"
