"""
Entry page form with two tabs: teacher login and learner registration.

Tabs are plain links (`/?tab=laerer`, `/?tab=elev`) so the page works without
JavaScript; only the active tab's form is rendered.
"""
from typing import Dict, Optional

from identity_access.domain import MOTHER_TONGUES

from ..base import Component
from .fields import SelectField, TextInputField
from .submit import SubmitButton


TEACHER_TAB = "laerer"
LEARNER_TAB = "elev"


def mother_tongue_options():
    return list(MOTHER_TONGUES.items())


class AuthForm(Component):
    def __init__(
        self,
        *,
        active_tab: str = TEACHER_TAB,
        values: Optional[Dict[str, str]] = None,
        errors: Optional[Dict[str, str]] = None,
    ):
        self.active_tab = active_tab if active_tab in (TEACHER_TAB, LEARNER_TAB) else TEACHER_TAB
        self.values = values or {}
        self.errors = errors or {}

    def _tab(self, key: str, label: str) -> str:
        active = key == self.active_tab
        attrs = self.attributes(
            href=f"/?tab={key}",
            class_=self.classes("tabs__trigger", active=active),
            role="tab",
            aria_selected="true" if active else "false",
        )
        return f"<a {attrs}>{self.escape(label)}</a>"

    def _teacher_form(self) -> str:
        email = TextInputField("teacher-email", "E-post", name="email", required=True, error_text=self.errors.get("email"))
        password = TextInputField("teacher-password", "Passord", name="password", required=True)
        return (
            '<form method="post" action="/auth/login" class="auth-form">'
            + email.render(value=self.values.get("email", ""), input_type="email", autocomplete="email", placeholder="din@epost.no")
            + password.render(input_type="password", autocomplete="current-password", placeholder="Ditt passord")
            + f'<div class="form-actions">{SubmitButton("Logg inn som lærer", full_width=True).render()}</div>'
            + "</form>"
        )

    def _learner_form(self) -> str:
        code = TextInputField("invite-code", "Invitasjonskode", name="invite_code", required=True, error_text=self.errors.get("invite_code"))
        name = TextInputField("learner-name", "Navn", name="name", required=True, error_text=self.errors.get("name"))
        email = TextInputField("learner-email", "E-post", name="email", required=True, error_text=self.errors.get("email"))
        password = TextInputField(
            "learner-password",
            "Passord",
            name="password",
            required=True,
            help_text="Minst 6 tegn.",
            error_text=self.errors.get("password"),
        )
        l1 = SelectField("learner-l1", "Morsmål", name="l1", error_text=self.errors.get("l1"))
        return (
            '<form method="post" action="/auth/register" class="auth-form">'
            + code.render(value=self.values.get("invite_code", ""), placeholder="Skriv inn invitasjonskoden")
            + name.render(value=self.values.get("name", ""), autocomplete="name", placeholder="Ditt navn")
            + email.render(value=self.values.get("email", ""), input_type="email", autocomplete="email", placeholder="din@epost.no")
            + password.render(input_type="password", autocomplete="new-password")
            + l1.render(options=mother_tongue_options(), selected=self.values.get("l1"), placeholder="Velg morsmål")
            + f'<div class="form-actions">{SubmitButton("Registrer som elev", full_width=True).render()}</div>'
            + "</form>"
        )

    def render(self) -> str:
        body = self._teacher_form() if self.active_tab == TEACHER_TAB else self._learner_form()
        return (
            '<section class="card auth-card">'
            '<header class="card__header">'
            '<h1 class="card__title text-center">Norgeskole Hjelper</h1>'
            '<p class="card__description text-center">Logg inn eller registrer deg</p>'
            "</header>"
            '<div class="tabs" role="tablist">'
            f"{self._tab(TEACHER_TAB, 'Lærer')}{self._tab(LEARNER_TAB, 'Elev')}"
            "</div>"
            f'<div class="tabs__content" role="tabpanel">{body}</div>'
            "</section>"
        )
