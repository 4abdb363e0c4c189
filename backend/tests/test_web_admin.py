"""
Admin dashboard: classrooms and invite links (SSR with CSRF tokens, JSON API).
"""
from __future__ import annotations

import pytest

import wiring  # type: ignore
from utils.web import csrf_for, make_client, seed_invite, sign_in_as


pytestmark = pytest.mark.anyio("asyncio")


@pytest.mark.anyio
async def test_dashboard_lists_links_with_classroom_names():
    _, link = seed_invite("learner", classroom_name="Norsk B2")
    async with make_client() as client:
        sign_in_as(client, "admin")
        r = await client.get("/admin")
    assert r.status_code == 200
    assert "Administrasjon" in r.text
    assert f"/invite/{link.code}" in r.text
    assert "Norsk B2" in r.text
    assert "Aktiv" in r.text
    assert r.headers.get("Cache-Control") == "private, no-store"


@pytest.mark.anyio
async def test_dashboard_is_admin_only():
    async with make_client() as client:
        sign_in_as(client, "teacher")
        r = await client.get("/admin", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/teacher"


@pytest.mark.anyio
async def test_create_classroom():
    async with make_client() as client:
        _, rec = sign_in_as(client, "admin")
        r = await client.post(
            "/admin/classrooms", data={"name": "Norsk A1", "csrf_token": csrf_for(rec)}, follow_redirects=False
        )
    assert r.status_code == 303
    assert r.headers["location"] == "/admin?melding=classroom_created"
    assert [c.name for c in wiring.get_data_store().list_classrooms()] == ["Norsk A1"]


@pytest.mark.anyio
async def test_create_classroom_with_empty_name_is_400():
    async with make_client() as client:
        _, rec = sign_in_as(client, "admin")
        r = await client.post("/admin/classrooms", data={"name": "  ", "csrf_token": csrf_for(rec)})
    assert r.status_code == 400
    assert "Navnet må være mellom 1 og 120 tegn." in r.text
    assert wiring.get_data_store().list_classrooms() == []


@pytest.mark.anyio
async def test_create_classroom_without_csrf_token_changes_nothing():
    async with make_client() as client:
        sign_in_as(client, "admin")
        r = await client.post("/admin/classrooms", data={"name": "Norsk A1"}, follow_redirects=False)
    assert r.headers["location"] == "/admin?melding=csrf"
    assert wiring.get_data_store().list_classrooms() == []


@pytest.mark.anyio
async def test_create_invite_link():
    classroom = wiring.get_data_store().create_classroom("Norsk A1")
    async with make_client() as client:
        _, rec = sign_in_as(client, "admin")
        r = await client.post(
            "/admin/invite-links",
            data={"role": "teacher", "classroom_id": classroom.id, "single_use": "1", "csrf_token": csrf_for(rec)},
            follow_redirects=False,
        )
    assert r.status_code == 303
    assert r.headers["location"] == "/admin?melding=invite_created"
    (link,) = wiring.get_data_store().list_invite_links()
    assert (link.role, link.classroom_id, link.single_use, link.active) == ("teacher", classroom.id, True, True)


@pytest.mark.anyio
@pytest.mark.parametrize(
    "role, classroom_id, message",
    [("", "known", "Velg en rolle."), ("rektor", "known", "Velg en rolle."), ("learner", "", "Velg et klasserom."), ("learner", "missing", "Velg et klasserom.")],
)
async def test_create_invite_link_validation(role, classroom_id, message):
    classroom = wiring.get_data_store().create_classroom("Norsk A1")
    if classroom_id == "known":
        classroom_id = classroom.id
    async with make_client() as client:
        _, rec = sign_in_as(client, "admin")
        r = await client.post(
            "/admin/invite-links", data={"role": role, "classroom_id": classroom_id, "csrf_token": csrf_for(rec)}
        )
    assert r.status_code == 400
    assert message in r.text
    assert wiring.get_data_store().list_invite_links() == []


@pytest.mark.anyio
async def test_toggle_invite_link():
    _, link = seed_invite("learner")
    async with make_client() as client:
        _, rec = sign_in_as(client, "admin")
        off = await client.post(
            f"/admin/invite-links/{link.id}/toggle", data={"active": "0", "csrf_token": csrf_for(rec)}, follow_redirects=False
        )
        assert wiring.get_data_store().get_invite_link(link.code).active is False
        on = await client.post(
            f"/admin/invite-links/{link.id}/toggle", data={"active": "1", "csrf_token": csrf_for(rec)}, follow_redirects=False
        )
    assert off.headers["location"] == "/admin?melding=invite_toggled"
    assert on.headers["location"] == "/admin?melding=invite_toggled"
    assert wiring.get_data_store().get_invite_link(link.code).active is True


@pytest.mark.anyio
async def test_toggle_unknown_link():
    async with make_client() as client:
        _, rec = sign_in_as(client, "admin")
        r = await client.post(
            "/admin/invite-links/missing/toggle", data={"active": "0", "csrf_token": csrf_for(rec)}, follow_redirects=False
        )
    assert r.headers["location"] == "/admin?melding=invalid_input"


@pytest.mark.anyio
async def test_api_create_classroom():
    async with make_client() as client:
        sign_in_as(client, "admin")
        ok = await client.post("/api/admin/classrooms", json={"name": "Norsk A1"})
        bad = await client.post("/api/admin/classrooms", json={"name": "x" * 121})
    assert ok.status_code == 201
    assert ok.json()["name"] == "Norsk A1"
    assert bad.status_code == 400
    assert bad.json() == {"error": "invalid_name"}


@pytest.mark.anyio
async def test_api_create_classroom_requires_admin():
    async with make_client() as client:
        anonymous = await client.post("/api/admin/classrooms", json={"name": "Norsk A1"})
        sign_in_as(client, "teacher")
        teacher = await client.post("/api/admin/classrooms", json={"name": "Norsk A1"})
    assert anonymous.status_code == 401
    assert teacher.status_code == 403
    assert teacher.json() == {"error": "forbidden"}
    assert wiring.get_data_store().list_classrooms() == []
