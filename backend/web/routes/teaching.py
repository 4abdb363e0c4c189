"""
Teacher dashboard routes (SSR + JSON).

Why:
    Teachers manage their own profile, look after classrooms and learners and
    publish daily words. Keeping the teacher area in one router mirrors the
    `/teacher` prefix the route guard protects.

Behavior:
    - GET  /teacher: dashboard cards (daily word, classrooms, tests, profile).
    - GET/POST /teacher/profile: name and e-mail.
    - GET  /teacher/classrooms[?classroom_id=]: classrooms newest first, the
      selected classroom's learners ordered by name.
    - POST /teacher/classrooms: create a classroom.
    - POST /teacher/classrooms/{classroom_id}/learners/{learner_id}/level:
      change a learner's difficulty level (1..5, never clamped).
    - GET/POST /teacher/create-daily-word: unapproved word for the teacher's
      classroom; the date defaults to today.
    - GET  /teacher/tests: placeholder.
    - GET  /api/teaching/classrooms: JSON list.

Permissions:
    Caller must have role `teacher` (auth middleware + route guard).
"""
from __future__ import annotations

from datetime import date as _date
from typing import Optional
import logging

from fastapi import APIRouter, Request

from components import ClassroomCreateForm, DailyWordCreateForm, DashboardCard, DashboardTile, ProfileForm
from components.base import Component
from components.forms.profile_form import level_options
from identity_access.errors import GenericRemoteError, ProfileFetchFailure
from identity_access.events import AuthEventKind
from teaching.services.daily_words import CreateDailyWordInput, CreateDailyWordUseCase
from pages import (
    csrf_token_for,
    form_csrf_ok,
    json_private,
    layout_response,
    private_error,
    profile_or_redirect,
    redirect,
)
import wiring


teaching_router = APIRouter(tags=["Teaching"])
logger = logging.getLogger("norgeskole.teaching")

TEACHER_TILES = (
    DashboardTile("/teacher/create-daily-word", "Nytt dagens ord", "Legg inn ordet klassen skal lære i dag."),
    DashboardTile("/teacher/classrooms", "Klasserom", "Se klasserom og elever, og juster nivået deres."),
    DashboardTile("/teacher/tests", "Prøver", "Lag og følg opp prøver."),
    DashboardTile("/teacher/profile", "Min profil", "Oppdater navn og e-post."),
)


@teaching_router.get("/teacher")
async def teacher_dashboard(request: Request):
    profile, bounce = profile_or_redirect(request)
    if bounce:
        return bounce
    cards = "".join(DashboardCard(tile).render() for tile in TEACHER_TILES)
    content = (
        '<section class="dashboard">'
        f"<h1>Hei, {Component.escape(profile.name)}!</h1>"
        f'<div class="grid grid-2">{cards}</div>'
        "</section>"
    )
    return layout_response(request, title="Lærer", content=content, profile=profile)


# --- Profile ----------------------------------------------------------------------


def _profile_page(request: Request, profile, *, error: Optional[str] = None, values=None, toast=None, status_code=200):
    form = ProfileForm(csrf_token_for(request), profile, action="/teacher/profile", error=error, values=values)
    content = f'<section class="profile"><h1>Min profil</h1>{form.render()}</section>'
    return layout_response(
        request, title="Min profil", content=content, profile=profile, toast=toast, status_code=status_code
    )


@teaching_router.get("/teacher/profile")
async def teacher_profile(request: Request):
    profile, bounce = profile_or_redirect(request)
    if bounce:
        return bounce
    return _profile_page(request, profile)


@teaching_router.post("/teacher/profile")
async def teacher_profile_update(request: Request):
    """Update the teacher's name and e-mail. PRG on success, 400 on invalid input."""
    profile, bounce = profile_or_redirect(request)
    if bounce:
        return bounce
    form = await request.form()
    if not form_csrf_ok(request, form.get("csrf_token")):
        return redirect("/teacher/profile", toast="csrf")
    values = {"name": str(form.get("name") or ""), "email": str(form.get("email") or "")}
    try:
        wiring.profile_service().update_own(profile.id, name=values["name"], email=values["email"])
    except ValueError as exc:
        return _profile_page(request, profile, error=str(exc), values=values, toast="invalid_input", status_code=400)
    except GenericRemoteError as exc:
        return redirect("/teacher/profile", toast=exc.code)
    wiring.AUTH_EVENTS.publish(AuthEventKind.USER_UPDATED, profile.id)
    return redirect("/teacher/profile", toast="profile_saved")


# --- Classrooms & learners --------------------------------------------------------


def _learners_section(request: Request, classroom, learners) -> str:
    esc = Component.escape
    csrf = csrf_token_for(request)
    if not learners:
        body = '<p class="text-muted">Ingen elever i dette klasserommet ennå.</p>'
    else:
        rows = []
        for learner in learners:
            options = "".join(
                f'<option value="{value}"{" selected" if value == str(learner.difficulty_level) else ""}>{esc(label)}</option>'
                for value, label in level_options()
            )
            rows.append(
                "<tr>"
                f"<td>{esc(learner.name)}</td>"
                f"<td>{esc(learner.l1 or '-')}</td>"
                "<td>"
                f'<form method="post" action="/teacher/classrooms/{esc(classroom.id)}/learners/{esc(learner.id)}/level" class="inline-form">'
                f'<input type="hidden" name="csrf_token" value="{esc(csrf)}">'
                f'<select name="difficulty_level" class="form-input" aria-label="Nivå for {esc(learner.name)}">{options}</select>'
                '<button type="submit" class="btn btn-secondary btn-sm">Lagre</button>'
                "</form>"
                "</td>"
                "</tr>"
            )
        body = (
            '<table class="table learners">'
            "<thead><tr><th>Navn</th><th>Morsmål</th><th>Nivå</th></tr></thead>"
            f"<tbody>{''.join(rows)}</tbody>"
            "</table>"
        )
    return f'<section class="card"><h2 class="card__title">Elever i {esc(classroom.name)}</h2>{body}</section>'


def _classrooms_page(
    request: Request,
    profile,
    *,
    selected_id: Optional[str] = None,
    create_error: Optional[str] = None,
    create_value: str = "",
    toast: Optional[str] = None,
    status_code: int = 200,
):
    esc = Component.escape
    try:
        classrooms = wiring.classroom_service().list()
        selected = next((c for c in classrooms if c.id == selected_id), None) if selected_id else None
        learners = wiring.profile_service().list_learners(selected.id) if selected else []
    except (GenericRemoteError, ProfileFetchFailure) as exc:
        content = '<section class="classrooms"><h1>Klasserom</h1><p class="text-muted">Kunne ikke laste data.</p></section>'
        return layout_response(request, title="Klasserom", content=content, profile=profile, toast=exc.code, status_code=502)
    items = "".join(
        f'<li class="{"active" if selected and c.id == selected.id else ""}">'
        f'<a href="/teacher/classrooms?classroom_id={esc(c.id)}">{esc(c.name)}</a></li>'
        for c in classrooms
    ) or '<li class="text-muted">Ingen klasserom ennå.</li>'
    create_form = ClassroomCreateForm(
        csrf_token_for(request), action="/teacher/classrooms", error=create_error, value=create_value
    ).render()
    learners_html = _learners_section(request, selected, learners) if selected else ""
    content = f"""
    <section class="classrooms">
        <h1>Klasserom</h1>
        <div class="grid grid-2">
            <section class="card"><h2 class="card__title">Alle klasserom</h2><ul class="classroom-list">{items}</ul></section>
            <section class="card"><h2 class="card__title">Nytt klasserom</h2>{create_form}</section>
        </div>
        {learners_html}
    </section>
    """
    return layout_response(
        request, title="Klasserom", content=content, profile=profile, toast=toast, status_code=status_code
    )


@teaching_router.get("/teacher/classrooms")
async def teacher_classrooms(request: Request, classroom_id: Optional[str] = None):
    profile, bounce = profile_or_redirect(request)
    if bounce:
        return bounce
    return _classrooms_page(request, profile, selected_id=classroom_id)


@teaching_router.post("/teacher/classrooms")
async def teacher_create_classroom(request: Request):
    profile, bounce = profile_or_redirect(request)
    if bounce:
        return bounce
    form = await request.form()
    if not form_csrf_ok(request, form.get("csrf_token")):
        return redirect("/teacher/classrooms", toast="csrf")
    name = str(form.get("name") or "")
    try:
        classroom = wiring.classroom_service().create(name)
    except ValueError as exc:
        return _classrooms_page(
            request, profile, create_error=str(exc), create_value=name, toast="invalid_input", status_code=400
        )
    except GenericRemoteError as exc:
        return redirect("/teacher/classrooms", toast=exc.code)
    return redirect(f"/teacher/classrooms?classroom_id={classroom.id}", toast="classroom_created")


@teaching_router.post("/teacher/classrooms/{classroom_id}/learners/{learner_id}/level")
async def teacher_set_learner_level(request: Request, classroom_id: str, learner_id: str):
    """Change a learner's difficulty level.

    Behavior:
        - Values outside 1..5 or non-integers: 400 with the classroom page and
          a toast; the stored level stays unchanged.
        - Learners outside the classroom: 404.
    """
    profile, bounce = profile_or_redirect(request)
    if bounce:
        return bounce
    form = await request.form()
    back = f"/teacher/classrooms?classroom_id={classroom_id}"
    if not form_csrf_ok(request, form.get("csrf_token")):
        return redirect(back, toast="csrf")
    profiles = wiring.profile_service()
    try:
        in_classroom = any(learner.id == learner_id for learner in profiles.list_learners(classroom_id))
        if not in_classroom:
            return _classrooms_page(request, profile, selected_id=classroom_id, toast="invalid_input", status_code=404)
        profiles.set_learner_level(learner_id, form.get("difficulty_level"))
    except ValueError:
        return _classrooms_page(request, profile, selected_id=classroom_id, toast="invalid_input", status_code=400)
    except LookupError:
        return _classrooms_page(request, profile, selected_id=classroom_id, toast="invalid_input", status_code=404)
    except (GenericRemoteError, ProfileFetchFailure) as exc:
        return redirect(back, toast=exc.code)
    wiring.AUTH_EVENTS.publish(AuthEventKind.USER_UPDATED, learner_id)
    return redirect(back, toast="level_saved")


# --- Daily words ------------------------------------------------------------------


def _daily_word_page(request: Request, profile, *, error=None, values=None, toast=None, status_code=200):
    values = values or {"date": _date.today().isoformat()}
    notice = ""
    if not profile.classroom_id:
        notice = '<p class="text-muted">Du er ikke knyttet til et klasserom ennå.</p>'
    form = DailyWordCreateForm(csrf_token_for(request), error=error, values=values)
    content = f'<section class="daily-word-create"><h1>Nytt dagens ord</h1>{notice}{form.render()}</section>'
    return layout_response(
        request, title="Nytt dagens ord", content=content, profile=profile, toast=toast, status_code=status_code
    )


@teaching_router.get("/teacher/create-daily-word")
async def teacher_daily_word_form(request: Request):
    profile, bounce = profile_or_redirect(request)
    if bounce:
        return bounce
    return _daily_word_page(request, profile)


@teaching_router.post("/teacher/create-daily-word")
async def teacher_create_daily_word(request: Request):
    """Insert an unapproved daily word for the teacher's classroom."""
    profile, bounce = profile_or_redirect(request)
    if bounce:
        return bounce
    form = await request.form()
    if not form_csrf_ok(request, form.get("csrf_token")):
        return redirect("/teacher/create-daily-word", toast="csrf")
    values = {
        "norwegian": str(form.get("norwegian") or ""),
        "theme": str(form.get("theme") or ""),
        "date": str(form.get("date") or ""),
    }
    use_case = CreateDailyWordUseCase(wiring.get_data_store())
    try:
        use_case.execute(
            CreateDailyWordInput(author=profile, norwegian=values["norwegian"], theme=values["theme"], date=values["date"])
        )
    except ValueError as exc:
        return _daily_word_page(request, profile, error=str(exc), values=values, toast="invalid_input", status_code=400)
    except GenericRemoteError as exc:
        return redirect("/teacher/create-daily-word", toast=exc.code)
    return redirect("/teacher", toast="daily_word_created")


@teaching_router.get("/teacher/tests")
async def teacher_tests(request: Request):
    profile, bounce = profile_or_redirect(request)
    if bounce:
        return bounce
    content = '<section class="tests"><h1>Prøver</h1><p class="text-muted">Prøver kommer snart.</p></section>'
    return layout_response(request, title="Prøver", content=content, profile=profile)


# --- JSON -------------------------------------------------------------------------


@teaching_router.get("/api/teaching/classrooms")
async def api_list_classrooms(request: Request):
    """List classrooms (newest first) as JSON; 502 when the Data Store fails."""
    try:
        classrooms = wiring.classroom_service().list()
    except GenericRemoteError as exc:
        return private_error({"error": exc.code}, status_code=502)
    return json_private([{"id": c.id, "name": c.name, "created_at": c.created_at} for c in classrooms])


__all__ = ["teaching_router", "TEACHER_TILES"]
