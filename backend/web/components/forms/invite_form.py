"""
Registration form shown on `/invite/{code}`.

Anonymous visitors create an account (name, e-mail, password). Signed-in
identities without a profile only confirm their name, which completes an
interrupted registration. The mother tongue is only asked for learner invites.
"""
from typing import Dict, Optional

from identity_access.domain import ROLE_LABELS_NO

from ..base import Component
from .auth_form import mother_tongue_options
from .fields import SelectField, TextInputField
from .submit import SubmitButton


class InviteRegistrationForm(Component):
    def __init__(
        self,
        *,
        code: str,
        role: str,
        signed_in: bool,
        csrf_token: str = "",
        values: Optional[Dict[str, str]] = None,
        errors: Optional[Dict[str, str]] = None,
    ):
        self.code = code
        self.role = role
        self.signed_in = signed_in
        self.csrf_token = csrf_token
        self.values = values or {}
        self.errors = errors or {}

    def render(self) -> str:
        parts = []
        if self.signed_in:
            parts.append(f'<input type="hidden" name="csrf_token" value="{self.escape(self.csrf_token)}">')
        name = TextInputField("invite-name", "Navn", name="name", required=True, error_text=self.errors.get("name"))
        parts.append(name.render(value=self.values.get("name", ""), autocomplete="name", placeholder="Ditt fulle navn"))
        if not self.signed_in:
            email = TextInputField("invite-email", "E-post", name="email", required=True, error_text=self.errors.get("email"))
            password = TextInputField(
                "invite-password",
                "Passord",
                name="password",
                required=True,
                help_text="Minst 6 tegn.",
                error_text=self.errors.get("password"),
            )
            parts.append(email.render(value=self.values.get("email", ""), input_type="email", autocomplete="email"))
            parts.append(password.render(input_type="password", autocomplete="new-password"))
        if self.role == "learner":
            l1 = SelectField("invite-l1", "Morsmål (valgfritt)", name="l1", error_text=self.errors.get("l1"))
            parts.append(l1.render(options=mother_tongue_options(), selected=self.values.get("l1"), placeholder="Velg morsmål"))
        label = ROLE_LABELS_NO.get(self.role, self.role)
        action = f"/invite/{self.escape(self.code)}"
        return (
            '<section class="card invite-card">'
            '<header class="card__header">'
            '<h1 class="card__title">Velkommen til Norgeskole!</h1>'
            f'<p class="card__description">Du er invitert som <strong>{self.escape(label)}</strong>.</p>'
            "</header>"
            f'<form method="post" action="{action}" class="invite-form">'
            + "".join(parts)
            + f'<div class="form-actions">{SubmitButton("Fullfør registrering", full_width=True).render()}</div>'
            + "</form></section>"
        )
