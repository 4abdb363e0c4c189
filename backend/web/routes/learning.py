"""
Learner routes (SSR + JSON).

Why:
    Learners see the daily words of their classroom, tailored to their mother
    tongue and difficulty level, and maintain their own profile.

Behavior:
    - GET  /elev: up to ten daily words, newest date first.
    - GET/POST /elev/profile: name, e-mail, mother tongue, difficulty level.
    - GET  /elev/daily-word/{word_id}: one word with translation, level text,
      pronunciations and tasks; 404 for words outside the learner's classroom.
    - PATCH /api/learning/profile: JSON profile update.

Permissions:
    Caller must have role `learner` (auth middleware + route guard).

Security:
    Difficulty levels outside 1..5 are rejected (400), never clamped.
"""
from __future__ import annotations

from typing import Any, Optional
import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from components import DailyWordCard, DailyWordDetailCard, ProfileForm
from datastore.errors import DataStoreError
from identity_access.errors import GenericRemoteError, ProfileFetchFailure
from identity_access.events import AuthEventKind
from learning.usecases import (
    GetDailyWordInput,
    GetDailyWordUseCase,
    ListLearnerWordsInput,
    ListLearnerWordsUseCase,
)
from pages import (
    csrf_guard,
    csrf_token_for,
    form_csrf_ok,
    json_private,
    layout_response,
    load_profile,
    private_error,
    profile_or_redirect,
    redirect,
)
import wiring


learning_router = APIRouter(tags=["Learning"])
logger = logging.getLogger("norgeskole.web")


class LearnerProfileUpdate(BaseModel):
    name: str = Field(..., max_length=500)
    email: Optional[str] = Field(default=None, max_length=254)
    l1: Optional[str] = Field(default=None, max_length=8)
    # Validated by the profile service so floats and strings yield our 400.
    difficulty_level: Any = None


def _serialize_profile(profile) -> dict:
    return {
        "id": profile.id,
        "name": profile.name,
        "role": profile.role,
        "email": profile.email,
        "l1": profile.l1,
        "difficulty_level": profile.difficulty_level,
        "classroom_id": profile.classroom_id,
    }


@learning_router.get("/elev")
async def learner_home(request: Request):
    profile, bounce = profile_or_redirect(request)
    if bounce:
        return bounce
    try:
        words = ListLearnerWordsUseCase(wiring.get_data_store()).execute(ListLearnerWordsInput(learner=profile))
    except DataStoreError as exc:
        logger.warning("daily word list failed code=%s", exc.code)
        words = []
        toast = GenericRemoteError.code
    else:
        toast = None
    if words:
        cards = "".join(DailyWordCard(w.id, w.norwegian, w.date, w.theme).render() for w in words)
        body = f'<div class="word-list">{cards}</div>'
    elif not profile.classroom_id:
        body = '<p class="text-muted">Du er ikke knyttet til et klasserom ennå.</p>'
    else:
        body = '<p class="text-muted">Ingen ord ennå. Kom tilbake i morgen!</p>'
    content = f'<section class="learner-home"><h1>Dagens ord</h1>{body}</section>'
    return layout_response(request, title="Dagens ord", content=content, profile=profile, toast=toast)


@learning_router.get("/elev/daily-word/{word_id}")
async def learner_daily_word(request: Request, word_id: str):
    profile, bounce = profile_or_redirect(request)
    if bounce:
        return bounce
    try:
        detail = GetDailyWordUseCase(wiring.get_data_store()).execute(GetDailyWordInput(learner=profile, word_id=word_id))
    except DataStoreError as exc:
        logger.warning("daily word fetch failed code=%s", exc.code)
        return redirect("/elev", toast=GenericRemoteError.code)
    if detail is None:
        content = (
            '<section class="word-detail word-detail--missing">'
            "<h1>Fant ikke ordet</h1>"
            '<p><a href="/elev">Tilbake</a></p>'
            "</section>"
        )
        return layout_response(request, title="Fant ikke ordet", content=content, profile=profile, status_code=404)
    card = DailyWordDetailCard(detail, l1=profile.l1, level=profile.difficulty_level)
    return layout_response(request, title=detail.word.norwegian, content=card.render(), profile=profile)


def _profile_page(request: Request, profile, *, error=None, values=None, toast=None, status_code=200):
    form = ProfileForm(
        csrf_token_for(request), profile, action="/elev/profile", learner_fields=True, error=error, values=values
    )
    content = f'<section class="profile"><h1>Min profil</h1>{form.render()}</section>'
    return layout_response(
        request, title="Min profil", content=content, profile=profile, toast=toast, status_code=status_code
    )


@learning_router.get("/elev/profile")
async def learner_profile(request: Request):
    profile, bounce = profile_or_redirect(request)
    if bounce:
        return bounce
    return _profile_page(request, profile)


@learning_router.post("/elev/profile")
async def learner_profile_update(request: Request):
    """Update the learner's profile. PRG on success, 400 with the form on invalid input."""
    profile, bounce = profile_or_redirect(request)
    if bounce:
        return bounce
    form = await request.form()
    if not form_csrf_ok(request, form.get("csrf_token")):
        return redirect("/elev/profile", toast="csrf")
    values = {
        "name": str(form.get("name") or ""),
        "email": str(form.get("email") or ""),
        "l1": str(form.get("l1") or ""),
        "difficulty_level": str(form.get("difficulty_level") or ""),
    }
    try:
        wiring.profile_service().update_own(
            profile.id,
            name=values["name"],
            email=values["email"],
            l1=values["l1"],
            difficulty_level=values["difficulty_level"],
        )
    except ValueError as exc:
        return _profile_page(request, profile, error=str(exc), values=values, toast="invalid_input", status_code=400)
    except GenericRemoteError as exc:
        return redirect("/elev/profile", toast=exc.code)
    wiring.AUTH_EVENTS.publish(AuthEventKind.USER_UPDATED, profile.id)
    return redirect("/elev/profile", toast="profile_saved")


@learning_router.patch("/api/learning/profile")
async def api_update_learner_profile(request: Request, payload: LearnerProfileUpdate):
    """Update the caller's learner profile via JSON.

    Behavior:
        - 200 with the updated profile
        - 400 {"error": "invalid_name" | "invalid_email" | "invalid_l1" |
          "invalid_difficulty_level"}
        - 404 {"error": "profile_not_found"} when the caller has no profile
        - 502 {"error": "profile_fetch_failed"} when the Data Store is unreachable
    """
    csrf = csrf_guard(request)
    if csrf:
        return csrf
    try:
        profile = load_profile(request)
    except ProfileFetchFailure as exc:
        return private_error({"error": exc.code}, status_code=502)
    if profile is None:
        return private_error({"error": "profile_not_found"}, status_code=404)
    try:
        updated = wiring.profile_service().update_own(
            profile.id,
            name=payload.name,
            email=payload.email,
            l1=payload.l1,
            difficulty_level=payload.difficulty_level,
        )
    except ValueError as exc:
        return private_error({"error": str(exc)}, status_code=400)
    except GenericRemoteError as exc:
        return private_error({"error": exc.code}, status_code=502)
    wiring.AUTH_EVENTS.publish(AuthEventKind.USER_UPDATED, profile.id)
    return json_private(_serialize_profile(updated))


__all__ = ["learning_router", "LearnerProfileUpdate"]
