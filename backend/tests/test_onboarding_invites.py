"""
Admin invite link use cases: creation, toggling, listing and the overview.
"""
from __future__ import annotations

import pytest

from datastore.errors import DataStoreError
from datastore.memory import InMemoryDataStore
from identity_access.errors import GenericRemoteError
from onboarding.invites import (
    CODE_LENGTH,
    CreateInviteLinkInput,
    InviteLinkService,
    generate_invite_code,
    invite_path,
)


class _BrokenStore(InMemoryDataStore):
    def list_invite_links(self):
        raise DataStoreError("remote_error")


class _CollidingStore(InMemoryDataStore):
    """Rejects the first generated code as a duplicate."""

    def __init__(self) -> None:
        super().__init__()
        self.attempts = 0

    def create_invite_link(self, **kwargs):
        self.attempts += 1
        if self.attempts == 1:
            raise DataStoreError("duplicate_code")
        return super().create_invite_link(**kwargs)


def test_generated_codes_are_lowercase_alphanumeric():
    code = generate_invite_code()
    assert len(code) == CODE_LENGTH
    assert code.isalnum() and code == code.lower()
    assert generate_invite_code() != code
    assert invite_path(code) == f"/invite/{code}"


def test_create_link_for_role_and_classroom():
    store = InMemoryDataStore()
    classroom = store.create_classroom("Norsk A1")

    link = InviteLinkService(store).create(CreateInviteLinkInput(role=" Teacher ", classroom_id=classroom.id))

    assert link.role == "teacher"
    assert link.classroom_id == classroom.id
    assert link.active is True
    assert link.single_use is False
    assert store.get_invite_role(link.code) == "teacher"


@pytest.mark.parametrize(
    "role, classroom_id, error",
    [("", "x", "invalid_role"), ("rektor", "x", "invalid_role"), ("learner", "", "invalid_classroom"), ("learner", "finnes-ikke", "invalid_classroom")],
)
def test_create_link_validates_input(role, classroom_id, error):
    store = InMemoryDataStore()
    with pytest.raises(ValueError) as exc:
        InviteLinkService(store).create(CreateInviteLinkInput(role=role, classroom_id=classroom_id))
    assert str(exc.value) == error
    assert store.invite_links == {}


def test_create_link_retries_on_code_collision():
    store = _CollidingStore()
    classroom = store.create_classroom("Norsk A1")

    link = InviteLinkService(store).create(CreateInviteLinkInput(role="learner", classroom_id=classroom.id))

    assert store.attempts == 2
    assert link.code in {l.code for l in store.invite_links.values()}


def test_toggle_link_and_unknown_link():
    store = InMemoryDataStore()
    classroom = store.create_classroom("Norsk A1")
    service = InviteLinkService(store)
    link = service.create(CreateInviteLinkInput(role="learner", classroom_id=classroom.id))

    assert service.set_active(link.id, False).active is False
    assert service.overview().active_link_count == 0
    assert service.set_active(link.id, True).active is True
    with pytest.raises(LookupError):
        service.set_active("finnes-ikke", False)


def test_list_links_newest_first_with_classroom_name():
    store = InMemoryDataStore()
    a1 = store.create_classroom("Norsk A1")
    b2 = store.create_classroom("Norsk B2")
    service = InviteLinkService(store)
    first = service.create(CreateInviteLinkInput(role="learner", classroom_id=a1.id))
    second = service.create(CreateInviteLinkInput(role="teacher", classroom_id=b2.id, single_use=True))

    views = service.list_links()

    assert [v.link.id for v in views] == [second.id, first.id]
    assert [v.classroom_name for v in views] == ["Norsk B2", "Norsk A1"]
    assert views[0].path == f"/invite/{second.code}"
    assert views[0].link.single_use is True


def test_overview_counts():
    store = InMemoryDataStore()
    classroom = store.create_classroom("Norsk A1")
    store.create_classroom("Norsk B2")
    service = InviteLinkService(store)
    service.create(CreateInviteLinkInput(role="learner", classroom_id=classroom.id))

    overview = service.overview()

    assert overview.classroom_count == 2
    assert overview.active_link_count == 1


def test_store_failures_become_generic_remote_error():
    service = InviteLinkService(_BrokenStore())
    with pytest.raises(GenericRemoteError):
        service.list_links()
    with pytest.raises(GenericRemoteError):
        service.overview()
