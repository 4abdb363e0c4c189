"""
Classroom and invite-link creation forms (admin and teacher dashboards).
"""
from typing import Dict, Iterable, Optional

from datastore.entities import Classroom
from identity_access.domain import ROLE_LABELS_NO

from ..base import Component
from .fields import SelectField, TextInputField
from .submit import SubmitButton


class ClassroomCreateForm(Component):
    def __init__(self, csrf_token: str, *, action: str, error: Optional[str] = None, value: str = ""):
        self.csrf_token = csrf_token
        self.action = action
        self.error = error
        self.value = value

    def render(self) -> str:
        error_text = "Navnet må være mellom 1 og 120 tegn." if self.error == "invalid_name" else None
        field = TextInputField("classroom-name", "Navn på klasserom", name="name", required=True, error_text=error_text)
        return f"""
        <form method="post" action="{self.escape(self.action)}" class="classroom-create-form">
            <input type="hidden" name="csrf_token" value="{self.escape(self.csrf_token)}">
            {field.render(value=self.value, placeholder="F.eks. Norsk A1")}
            <div class="form-actions">{SubmitButton("Opprett").render()}</div>
        </form>
        """


class InviteLinkCreateForm(Component):
    def __init__(
        self,
        csrf_token: str,
        classrooms: Iterable[Classroom],
        *,
        errors: Optional[Dict[str, str]] = None,
        values: Optional[Dict[str, str]] = None,
    ):
        self.csrf_token = csrf_token
        self.classrooms = list(classrooms)
        self.errors = errors or {}
        self.values = values or {}

    def render(self) -> str:
        role = SelectField("invite-role", "Rolle", name="role", required=True, error_text=self.errors.get("role"))
        classroom = SelectField(
            "invite-classroom", "Klasserom", name="classroom_id", required=True, error_text=self.errors.get("classroom_id")
        )
        role_options = [(key, ROLE_LABELS_NO[key]) for key in ("learner", "teacher", "admin")]
        classroom_options = [(c.id, c.name) for c in sorted(self.classrooms, key=lambda c: c.name.lower())]
        checked = " checked" if self.values.get("single_use") else ""
        return f"""
        <form method="post" action="/admin/invite-links" class="invite-link-create-form">
            <input type="hidden" name="csrf_token" value="{self.escape(self.csrf_token)}">
            {role.render(options=role_options, selected=self.values.get("role"), placeholder="Velg rolle")}
            {classroom.render(options=classroom_options, selected=self.values.get("classroom_id"), placeholder="Velg klasserom")}
            <div class="form-field form-field--checkbox">
                <label class="form-label" for="invite-single-use">
                    <input type="checkbox" id="invite-single-use" name="single_use" value="1"{checked}>
                    Kan bare brukes én gang
                </label>
            </div>
            <div class="form-actions">{SubmitButton("Opprett invitasjonslenke").render()}</div>
        </form>
        """
