"""
Admin dashboard routes (SSR + JSON).

Why:
    Admins prepare the school: classrooms and the invite links through which
    teachers and learners join. Everything here is reachable only for the
    `admin` role (enforced by the auth middleware and the route guard).

Behavior:
    - GET  /admin: overview counts, creation forms and the invite link list
      (newest first, with classroom name and the shareable `/invite/{code}`).
    - POST /admin/classrooms, /admin/invite-links,
      /admin/invite-links/{link_id}/toggle: PRG with a toast.
    - POST /api/admin/classrooms: JSON variant of classroom creation.

Security:
    SSR forms carry the per-session CSRF token; the JSON endpoint uses the
    same-origin guard.
"""
from __future__ import annotations

from typing import Dict, Optional
import logging

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from components import ClassroomCreateForm, InviteLinkCreateForm
from components.base import Component
from identity_access.domain import ROLE_LABELS_NO
from identity_access.errors import GenericRemoteError
from onboarding.invites import CreateInviteLinkInput
from pages import csrf_guard, csrf_token_for, form_csrf_ok, json_private, layout_response, private_error, redirect
import wiring


admin_router = APIRouter(tags=["Admin"])
logger = logging.getLogger("norgeskole.web")

ADMIN_HOME = "/admin"


class ClassroomCreatePayload(BaseModel):
    name: str = Field(..., max_length=500)


def _serialize_classroom(classroom) -> dict:
    return {"id": classroom.id, "name": classroom.name, "created_at": classroom.created_at}


def _links_table(views, csrf_token: str) -> str:
    esc = Component.escape
    if not views:
        return '<p class="text-muted">Ingen invitasjonslenker ennå.</p>'
    rows = []
    for view in views:
        link = view.link
        status = "Aktiv" if link.active else "Inaktiv"
        toggle_label = "Deaktiver" if link.active else "Aktiver"
        usage = "Engangs" if link.single_use else "Flergangs"
        rows.append(
            "<tr>"
            f"<td><code>{esc(view.path)}</code></td>"
            f"<td>{esc(ROLE_LABELS_NO.get(link.role, link.role))}</td>"
            f"<td>{esc(view.classroom_name or '-')}</td>"
            f"<td>{usage}</td>"
            f"<td>{status}</td>"
            "<td>"
            f'<form method="post" action="/admin/invite-links/{esc(link.id)}/toggle">'
            f'<input type="hidden" name="csrf_token" value="{esc(csrf_token)}">'
            f'<input type="hidden" name="active" value="{"0" if link.active else "1"}">'
            f'<button type="submit" class="btn btn-secondary btn-sm">{toggle_label}</button>'
            "</form>"
            "</td>"
            "</tr>"
        )
    return (
        '<table class="table invite-links">'
        "<thead><tr><th>Lenke</th><th>Rolle</th><th>Klasserom</th><th>Bruk</th><th>Status</th><th></th></tr></thead>"
        f"<tbody>{''.join(rows)}</tbody>"
        "</table>"
    )


def _admin_page(
    request: Request,
    *,
    classroom_error: Optional[str] = None,
    classroom_value: str = "",
    link_errors: Optional[Dict[str, str]] = None,
    link_values: Optional[Dict[str, str]] = None,
    toast: Optional[str] = None,
    status_code: int = 200,
):
    invites = wiring.invite_link_service()
    try:
        overview = invites.overview()
        views = invites.list_links()
        classrooms = wiring.classroom_service().list()
    except GenericRemoteError as exc:
        content = '<section class="admin"><h1>Administrasjon</h1><p class="text-muted">Kunne ikke laste data.</p></section>'
        return layout_response(request, title="Administrasjon", content=content, toast=exc.code, status_code=502)
    csrf = csrf_token_for(request)
    content = f"""
    <section class="admin">
        <h1>Administrasjon</h1>
        <div class="stats">
            <div class="stat"><span class="stat__value">{overview.classroom_count}</span><span class="stat__label">Klasserom</span></div>
            <div class="stat"><span class="stat__value">{overview.active_link_count}</span><span class="stat__label">Aktive invitasjonslenker</span></div>
        </div>
        <div class="grid grid-2">
            <section class="card">
                <h2 class="card__title">Nytt klasserom</h2>
                {ClassroomCreateForm(csrf, action="/admin/classrooms", error=classroom_error, value=classroom_value).render()}
            </section>
            <section class="card">
                <h2 class="card__title">Ny invitasjonslenke</h2>
                {InviteLinkCreateForm(csrf, classrooms, errors=link_errors, values=link_values).render()}
            </section>
        </div>
        <section class="card">
            <h2 class="card__title">Invitasjonslenker</h2>
            {_links_table(views, csrf)}
        </section>
    </section>
    """
    return layout_response(request, title="Administrasjon", content=content, toast=toast, status_code=status_code)


@admin_router.get("/admin")
async def admin_dashboard(request: Request):
    return _admin_page(request)


@admin_router.post("/admin/classrooms")
async def admin_create_classroom(request: Request):
    """Create a classroom (admin). PRG to /admin with a toast."""
    form = await request.form()
    if not form_csrf_ok(request, form.get("csrf_token")):
        return redirect(ADMIN_HOME, toast="csrf")
    name = str(form.get("name") or "")
    try:
        wiring.classroom_service().create(name)
    except ValueError as exc:
        return _admin_page(request, classroom_error=str(exc), classroom_value=name, toast="invalid_input", status_code=400)
    except GenericRemoteError as exc:
        return redirect(ADMIN_HOME, toast=exc.code)
    return redirect(ADMIN_HOME, toast="classroom_created")


@admin_router.post("/admin/invite-links")
async def admin_create_invite_link(request: Request):
    """Create an invite link for a role and classroom (admin).

    Both fields are required; the code is generated server-side.
    """
    form = await request.form()
    if not form_csrf_ok(request, form.get("csrf_token")):
        return redirect(ADMIN_HOME, toast="csrf")
    values = {
        "role": str(form.get("role") or ""),
        "classroom_id": str(form.get("classroom_id") or ""),
        "single_use": "1" if form.get("single_use") else "",
    }
    req = CreateInviteLinkInput(role=values["role"], classroom_id=values["classroom_id"], single_use=bool(values["single_use"]))
    try:
        wiring.invite_link_service().create(req)
    except ValueError as exc:
        field = "role" if str(exc) == "invalid_role" else "classroom_id"
        message = "Velg en rolle." if field == "role" else "Velg et klasserom."
        return _admin_page(request, link_errors={field: message}, link_values=values, toast="invalid_input", status_code=400)
    except GenericRemoteError as exc:
        return redirect(ADMIN_HOME, toast=exc.code)
    return redirect(ADMIN_HOME, toast="invite_created")


@admin_router.post("/admin/invite-links/{link_id}/toggle")
async def admin_toggle_invite_link(request: Request, link_id: str):
    """Activate or deactivate an invite link; `active` is "1" or "0"."""
    form = await request.form()
    if not form_csrf_ok(request, form.get("csrf_token")):
        return redirect(ADMIN_HOME, toast="csrf")
    active = str(form.get("active") or "") == "1"
    try:
        wiring.invite_link_service().set_active(link_id, active)
    except LookupError:
        return redirect(ADMIN_HOME, toast="invalid_input")
    except GenericRemoteError as exc:
        return redirect(ADMIN_HOME, toast=exc.code)
    return redirect(ADMIN_HOME, toast="invite_toggled")


@admin_router.post("/api/admin/classrooms")
async def api_create_classroom(request: Request, payload: ClassroomCreatePayload):
    """Create a classroom via JSON.

    Behavior:
        - 201 with the classroom
        - 400 {"error": "invalid_name"} for empty or too long names
        - 502 {"error": <code>} when the Data Store fails
    """
    csrf = csrf_guard(request)
    if csrf:
        return csrf
    try:
        classroom = wiring.classroom_service().create(payload.name)
    except ValueError as exc:
        return private_error({"error": str(exc)}, status_code=400)
    except GenericRemoteError as exc:
        return private_error({"error": exc.code}, status_code=502)
    return json_private(_serialize_classroom(classroom), status_code=201)


__all__ = ["admin_router", "ClassroomCreatePayload"]
