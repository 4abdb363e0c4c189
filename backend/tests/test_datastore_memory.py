"""
In-memory Data Store: remote-procedure contract and list ordering.
"""
from __future__ import annotations

import pytest

from datastore.entities import Profile
from datastore.errors import DataStoreError
from datastore.memory import InMemoryDataStore


def _register(store, code, user_id, *, want_role="learner", token="t"):
    return store.register_with_invite(
        code=code,
        name="Ola",
        l1_code="pl",
        want_role=want_role,
        user_id=user_id,
        email=f"{user_id}@example.no",
        access_token=token,
    )


@pytest.fixture
def seeded():
    store = InMemoryDataStore()
    classroom = store.create_classroom("Norsk A1")
    link = store.create_invite_link(code="kode1234", role="learner", classroom_id=classroom.id)
    return store, classroom, link


def test_get_invite_role(seeded):
    store, _, link = seeded
    assert store.get_invite_role("kode1234") == "learner"
    store.set_invite_link_active(link.id, False)
    with pytest.raises(DataStoreError) as exc:
        store.get_invite_role("kode1234")
    assert exc.value.code == "invalid_invite_code"
    with pytest.raises(DataStoreError):
        store.get_invite_role("ukjent")


def test_register_creates_profile_and_redemption(seeded):
    store, classroom, _ = seeded

    profile = _register(store, "kode1234", "u1")

    assert profile.role == "learner"
    assert profile.classroom_id == classroom.id
    assert profile.invite_code == "kode1234"
    assert profile.l1 == "pl"
    assert [(r.code, r.user_id) for r in store.redemptions] == [("kode1234", "u1")]


def test_register_requires_token(seeded):
    store, _, _ = seeded
    with pytest.raises(DataStoreError) as exc:
        _register(store, "kode1234", "u1", token="")
    assert exc.value.code == "not_authenticated"


def test_register_role_mismatch(seeded):
    store, _, _ = seeded
    with pytest.raises(DataStoreError) as exc:
        _register(store, "kode1234", "u1", want_role="admin")
    assert exc.value.code == "role_mismatch"
    assert store.profiles == {}


def test_register_is_idempotent_per_code_and_user(seeded):
    store, _, _ = seeded
    first = _register(store, "kode1234", "u1")
    assert _register(store, "kode1234", "u1") is first
    assert len(store.redemptions) == 1


def test_single_use_link_is_consumed(seeded):
    store, classroom, _ = seeded
    single = store.create_invite_link(code="engang01", role="learner", classroom_id=classroom.id, single_use=True)

    _register(store, "engang01", "u1")

    assert single.active is False
    with pytest.raises(DataStoreError) as exc:
        _register(store, "engang01", "u2")
    assert exc.value.code == "invalid_invite_code"


def test_duplicate_code_and_invalid_role_are_rejected(seeded):
    store, classroom, _ = seeded
    with pytest.raises(DataStoreError) as exc:
        store.create_invite_link(code="kode1234", role="learner", classroom_id=classroom.id)
    assert exc.value.code == "duplicate_code"
    with pytest.raises(DataStoreError) as exc:
        store.create_invite_link(code="ny-kode1", role="rektor", classroom_id=classroom.id)
    assert exc.value.code == "invalid_input"


def test_update_profile_validates_level_and_unknown_user():
    store = InMemoryDataStore()
    store.add_profile(Profile(id="u1", name="Ola", role="learner"))
    assert store.update_profile("u1", difficulty_level=3).difficulty_level == 3
    with pytest.raises(DataStoreError) as exc:
        store.update_profile("u1", difficulty_level=6)
    assert exc.value.code == "invalid_input"
    assert store.get_profile("u1").difficulty_level == 3
    with pytest.raises(DataStoreError) as exc:
        store.update_profile("missing", name="X")
    assert exc.value.code == "not_found"


def test_orderings():
    store = InMemoryDataStore()
    a = store.create_classroom("A")
    b = store.create_classroom("B")
    assert [c.id for c in store.list_classrooms()] == [b.id, a.id]

    store.add_profile(Profile(id="1", name="zara", role="learner", classroom_id=a.id))
    store.add_profile(Profile(id="2", name="Anna", role="learner", classroom_id=a.id))
    store.add_profile(Profile(id="3", name="Kari", role="teacher", classroom_id=a.id))
    assert [p.name for p in store.list_learners(a.id)] == ["Anna", "zara"]

    for day in ("2024-05-01", "2024-05-03", "2024-05-02"):
        store.create_daily_word(norwegian=f"ord-{day}", date=day, classroom_id=a.id)
    store.create_daily_word(norwegian="annen", date="2024-05-04", classroom_id=b.id)
    assert [w.date for w in store.list_daily_words(a.id)] == ["2024-05-03", "2024-05-02", "2024-05-01"]
    assert len(store.list_daily_words(a.id, limit=2)) == 2


def test_new_daily_words_start_unapproved():
    store = InMemoryDataStore()
    word = store.create_daily_word(norwegian="hus", date="2024-05-01", classroom_id="c1", created_by="t1")
    assert word.approved is False
    assert word.created_by == "t1"
    assert store.get_daily_word(word.id) is word
