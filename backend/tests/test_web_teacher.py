"""
Teacher dashboard: profile, classrooms with learner levels, daily words and
the JSON classroom list.
"""
from __future__ import annotations

from datetime import date

import pytest

import wiring  # type: ignore
from datastore.entities import Profile
from utils.web import csrf_for, make_client, sign_in_as


pytestmark = pytest.mark.anyio("asyncio")


def _learner(classroom_id: str, user_id: str = "elev-1", name: str = "Ola", level: int = 1) -> Profile:
    return wiring.get_data_store().add_profile(
        Profile(id=user_id, name=name, role="learner", classroom_id=classroom_id, difficulty_level=level)
    )


@pytest.mark.anyio
async def test_dashboard_shows_tiles():
    async with make_client() as client:
        sign_in_as(client, "teacher", name="Kari")
        r = await client.get("/teacher")
    assert r.status_code == 200
    assert "Hei, Kari!" in r.text
    for href in ("/teacher/create-daily-word", "/teacher/classrooms", "/teacher/tests", "/teacher/profile"):
        assert f'href="{href}"' in r.text


@pytest.mark.anyio
async def test_learner_is_sent_to_own_home():
    async with make_client() as client:
        sign_in_as(client, "learner")
        r = await client.get("/teacher/classrooms", follow_redirects=False)
    assert r.status_code == 303
    assert r.headers["location"] == "/elev"


@pytest.mark.anyio
async def test_tests_placeholder():
    async with make_client() as client:
        sign_in_as(client, "teacher")
        r = await client.get("/teacher/tests")
    assert r.status_code == 200
    assert "Prøver kommer snart." in r.text


@pytest.mark.anyio
async def test_profile_update():
    events = []
    async with make_client() as client:
        profile, rec = sign_in_as(client, "teacher")
        page = await client.get("/teacher/profile")
        with wiring.AUTH_EVENTS.subscribe(events.append):
            r = await client.post(
                "/teacher/profile",
                data={"name": "Kari N.", "email": "kari.n@example.no", "csrf_token": csrf_for(rec)},
                follow_redirects=False,
            )
    assert page.status_code == 200
    assert 'value="Kari Nordmann"' in page.text
    assert r.status_code == 303
    assert r.headers["location"] == "/teacher/profile?melding=profile_saved"
    stored = wiring.get_data_store().get_profile(profile.id)
    assert (stored.name, stored.email) == ("Kari N.", "kari.n@example.no")
    assert [e.user_id for e in events] == [profile.id]


@pytest.mark.anyio
async def test_profile_update_rejects_blank_name():
    async with make_client() as client:
        profile, rec = sign_in_as(client, "teacher")
        r = await client.post("/teacher/profile", data={"name": "", "email": "", "csrf_token": csrf_for(rec)})
    assert r.status_code == 400
    assert "Vennligst fyll inn navn" in r.text
    assert wiring.get_data_store().get_profile(profile.id).name == "Kari Nordmann"


@pytest.mark.anyio
async def test_classrooms_page_lists_learners_by_name():
    classroom = wiring.get_data_store().create_classroom("Norsk A1")
    _learner(classroom.id, "elev-1", "Zara")
    _learner(classroom.id, "elev-2", "Anna")
    async with make_client() as client:
        sign_in_as(client, "teacher")
        r = await client.get(f"/teacher/classrooms?classroom_id={classroom.id}")
    assert r.status_code == 200
    assert "Elever i Norsk A1" in r.text
    assert r.text.index("Anna") < r.text.index("Zara")


@pytest.mark.anyio
async def test_create_classroom_redirects_to_selection():
    async with make_client() as client:
        _, rec = sign_in_as(client, "teacher")
        r = await client.post("/teacher/classrooms", data={"name": "Norsk B1", "csrf_token": csrf_for(rec)}, follow_redirects=False)
    (classroom,) = wiring.get_data_store().list_classrooms()
    assert r.status_code == 303
    assert r.headers["location"] == f"/teacher/classrooms?classroom_id={classroom.id}&melding=classroom_created"


@pytest.mark.anyio
async def test_set_learner_level():
    classroom = wiring.get_data_store().create_classroom("Norsk A1")
    learner = _learner(classroom.id)
    async with make_client() as client:
        _, rec = sign_in_as(client, "teacher")
        r = await client.post(
            f"/teacher/classrooms/{classroom.id}/learners/{learner.id}/level",
            data={"difficulty_level": "4", "csrf_token": csrf_for(rec)},
            follow_redirects=False,
        )
    assert r.status_code == 303
    assert r.headers["location"] == f"/teacher/classrooms?classroom_id={classroom.id}&melding=level_saved"
    assert wiring.get_data_store().get_profile(learner.id).difficulty_level == 4


@pytest.mark.anyio
@pytest.mark.parametrize("level", ["0", "6", "3.5", "tre", ""])
async def test_set_learner_level_rejects_out_of_range(level):
    classroom = wiring.get_data_store().create_classroom("Norsk A1")
    learner = _learner(classroom.id, level=2)
    async with make_client() as client:
        _, rec = sign_in_as(client, "teacher")
        r = await client.post(
            f"/teacher/classrooms/{classroom.id}/learners/{learner.id}/level",
            data={"difficulty_level": level, "csrf_token": csrf_for(rec)},
        )
    assert r.status_code == 400
    assert wiring.get_data_store().get_profile(learner.id).difficulty_level == 2


@pytest.mark.anyio
async def test_set_level_for_learner_outside_classroom_is_404():
    store = wiring.get_data_store()
    mine = store.create_classroom("Norsk A1")
    other = store.create_classroom("Norsk B1")
    learner = _learner(other.id)
    async with make_client() as client:
        _, rec = sign_in_as(client, "teacher")
        r = await client.post(
            f"/teacher/classrooms/{mine.id}/learners/{learner.id}/level",
            data={"difficulty_level": "3", "csrf_token": csrf_for(rec)},
        )
    assert r.status_code == 404
    assert store.get_profile(learner.id).difficulty_level == 1


@pytest.mark.anyio
async def test_create_daily_word():
    classroom = wiring.get_data_store().create_classroom("Norsk A1")
    async with make_client() as client:
        profile, rec = sign_in_as(client, "teacher", classroom_id=classroom.id)
        form_page = await client.get("/teacher/create-daily-word")
        r = await client.post(
            "/teacher/create-daily-word",
            data={"norwegian": "sol", "theme": "Vær", "date": "", "csrf_token": csrf_for(rec)},
            follow_redirects=False,
        )
    assert date.today().isoformat() in form_page.text
    assert r.status_code == 303
    assert r.headers["location"] == "/teacher?melding=daily_word_created"
    (word,) = wiring.get_data_store().list_daily_words(classroom.id)
    assert (word.norwegian, word.theme, word.approved, word.created_by) == ("sol", "Vær", False, profile.id)
    assert word.date == date.today().isoformat()


@pytest.mark.anyio
async def test_create_daily_word_validation():
    classroom = wiring.get_data_store().create_classroom("Norsk A1")
    async with make_client() as client:
        _, rec = sign_in_as(client, "teacher", classroom_id=classroom.id)
        r = await client.post(
            "/teacher/create-daily-word", data={"norwegian": "", "csrf_token": csrf_for(rec)}
        )
    assert r.status_code == 400
    assert "Skriv inn et norsk ord (maks 100 tegn)." in r.text
    assert wiring.get_data_store().list_daily_words(classroom.id) == []


@pytest.mark.anyio
async def test_create_daily_word_without_classroom():
    async with make_client() as client:
        _, rec = sign_in_as(client, "teacher")
        page = await client.get("/teacher/create-daily-word")
        r = await client.post("/teacher/create-daily-word", data={"norwegian": "sol", "csrf_token": csrf_for(rec)})
    assert "Du er ikke knyttet til et klasserom ennå." in page.text
    assert r.status_code == 400
    assert wiring.get_data_store().daily_words == {}


@pytest.mark.anyio
async def test_api_classrooms():
    store = wiring.get_data_store()
    store.create_classroom("Norsk A1")
    store.create_classroom("Norsk B1")
    async with make_client() as client:
        sign_in_as(client, "teacher")
        r = await client.get("/api/teaching/classrooms")
    assert r.status_code == 200
    assert [c["name"] for c in r.json()] == ["Norsk B1", "Norsk A1"]
    assert r.headers.get("Cache-Control") == "private, no-store"


@pytest.mark.anyio
async def test_classroom_created_by_admin_shows_up_for_teachers():
    async with make_client() as admin:
        _, rec = sign_in_as(admin, "admin")
        created = await admin.post(
            "/admin/classrooms", data={"name": "5A", "csrf_token": csrf_for(rec)}, follow_redirects=False
        )
    async with make_client() as teacher:
        sign_in_as(teacher, "teacher")
        page = await teacher.get("/teacher/classrooms")
        api = await teacher.get("/api/teaching/classrooms")
    assert created.headers["location"] == "/admin?melding=classroom_created"
    assert page.status_code == 200
    assert "5A" in page.text
    assert [c["name"] for c in api.json()] == ["5A"]
