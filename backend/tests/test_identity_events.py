"""
Auth event channel: scoped subscriptions and fault-isolated delivery.
"""
from __future__ import annotations

from identity_access.events import AuthEvent, AuthEventChannel, AuthEventKind


def test_publish_reaches_every_listener():
    channel = AuthEventChannel()
    a, b = [], []
    channel.subscribe(a.append)
    channel.subscribe(b.append)

    channel.publish(AuthEventKind.SIGNED_IN, "u1")

    assert a == b == [AuthEvent(kind=AuthEventKind.SIGNED_IN, user_id="u1")]


def test_plain_string_kinds_are_accepted():
    channel = AuthEventChannel()
    seen = []
    channel.subscribe(seen.append)

    channel.publish("USER_DELETED", "u1")

    assert seen[0].kind is AuthEventKind.USER_DELETED


def test_context_manager_releases_subscription():
    channel = AuthEventChannel()
    seen = []
    with channel.subscribe(seen.append) as sub:
        assert sub.active
        assert channel.listener_count == 1
        channel.publish(AuthEventKind.SIGNED_OUT)
    assert not sub.active
    assert channel.listener_count == 0

    channel.publish(AuthEventKind.SIGNED_OUT)
    assert len(seen) == 1


def test_subscription_is_released_when_the_body_raises():
    channel = AuthEventChannel()
    try:
        with channel.subscribe(lambda event: None):
            raise RuntimeError("boom")
    except RuntimeError:
        pass
    assert channel.listener_count == 0


def test_unsubscribe_is_idempotent_and_scoped():
    channel = AuthEventChannel()
    first = channel.subscribe(lambda event: None)
    second = channel.subscribe(lambda event: None)

    first.unsubscribe()
    first.unsubscribe()

    assert channel.listener_count == 1
    assert second.active


def test_failing_listener_does_not_stop_delivery():
    channel = AuthEventChannel()
    seen = []

    def broken(event):
        raise ValueError("listener bug")

    channel.subscribe(broken)
    channel.subscribe(seen.append)

    channel.publish(AuthEventKind.USER_UPDATED, "u1")

    assert [e.user_id for e in seen] == ["u1"]


def test_listener_added_during_publish_waits_for_next_event():
    channel = AuthEventChannel()
    late = []

    def subscribe_more(event):
        channel.subscribe(late.append)

    channel.subscribe(subscribe_more)
    channel.publish(AuthEventKind.SIGNED_IN, "u1")
    assert late == []
