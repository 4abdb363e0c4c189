"""
Profile form for teachers (name, e-mail) and learners (plus mother tongue and
difficulty level).
"""
from typing import Dict, Optional

from datastore.entities import Profile
from identity_access.domain import MAX_DIFFICULTY_LEVEL, MIN_DIFFICULTY_LEVEL

from ..base import Component
from .auth_form import mother_tongue_options
from .fields import SelectField, TextInputField
from .submit import SubmitButton


_ERROR_TEXT = {
    "invalid_name": ("name", "Vennligst fyll inn navn"),
    "invalid_email": ("email", "Ugyldig e-postadresse."),
    "invalid_l1": ("l1", "Velg et morsmål fra listen."),
    "invalid_difficulty_level": ("difficulty_level", "Nivået må være et helt tall fra 1 til 5."),
}


def level_options():
    return [(str(n), f"Nivå {n}") for n in range(MIN_DIFFICULTY_LEVEL, MAX_DIFFICULTY_LEVEL + 1)]


class ProfileForm(Component):
    def __init__(
        self,
        csrf_token: str,
        profile: Profile,
        *,
        action: str,
        learner_fields: bool = False,
        error: Optional[str] = None,
        values: Optional[Dict[str, str]] = None,
    ):
        self.csrf_token = csrf_token
        self.profile = profile
        self.action = action
        self.learner_fields = learner_fields
        self.error = error
        self.values = values

    def _value(self, key: str, current: object) -> str:
        if self.values is not None and key in self.values:
            return str(self.values[key] or "")
        return "" if current is None else str(current)

    def render(self) -> str:
        field_key, message = _ERROR_TEXT.get(self.error or "", (None, None))
        errs = {field_key: message} if field_key else {}
        name = TextInputField("profile-name", "Navn", name="name", required=True, error_text=errs.get("name"))
        email = TextInputField("profile-email", "E-post", name="email", error_text=errs.get("email"))
        parts = [
            name.render(value=self._value("name", self.profile.name), autocomplete="name"),
            email.render(value=self._value("email", self.profile.email), input_type="email", autocomplete="email"),
        ]
        if self.learner_fields:
            l1 = SelectField("profile-l1", "Morsmål", name="l1", error_text=errs.get("l1"))
            level = SelectField("profile-level", "Vanskelighetsgrad", name="difficulty_level", error_text=errs.get("difficulty_level"))
            parts.append(l1.render(options=mother_tongue_options(), selected=self._value("l1", self.profile.l1), placeholder="Velg morsmål"))
            parts.append(level.render(options=level_options(), selected=self._value("difficulty_level", self.profile.difficulty_level)))
        return f"""
        <form method="post" action="{self.escape(self.action)}" class="profile-form">
            <input type="hidden" name="csrf_token" value="{self.escape(self.csrf_token)}">
            {"".join(parts)}
            <div class="form-actions">{SubmitButton("Lagre").render()}</div>
        </form>
        """
