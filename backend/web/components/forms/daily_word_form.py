"""
Daily word creation form (teacher).
"""
from typing import Dict, Optional

from ..base import Component
from .fields import TextInputField
from .submit import SubmitButton


_ERROR_TEXT = {
    "invalid_norwegian": "Skriv inn et norsk ord (maks 100 tegn).",
    "invalid_theme": "Temaet kan være maks 100 tegn.",
    "invalid_date": "Ugyldig dato.",
}


class DailyWordCreateForm(Component):
    def __init__(self, csrf_token: str, *, error: Optional[str] = None, values: Optional[Dict[str, str]] = None):
        self.csrf_token = csrf_token
        self.error = error
        self.values = values or {}

    def _error_for(self, field_code: str) -> Optional[str]:
        return _ERROR_TEXT.get(field_code) if self.error == field_code else None

    def render(self) -> str:
        word = TextInputField("word-norwegian", "Norsk ord", name="norwegian", required=True, error_text=self._error_for("invalid_norwegian"))
        theme = TextInputField("word-theme", "Tema (valgfritt)", name="theme", error_text=self._error_for("invalid_theme"))
        day = TextInputField("word-date", "Dato", name="date", required=True, error_text=self._error_for("invalid_date"))
        return f"""
        <form method="post" action="/teacher/create-daily-word" class="daily-word-form">
            <input type="hidden" name="csrf_token" value="{self.escape(self.csrf_token)}">
            {word.render(value=self.values.get("norwegian", ""), placeholder="F.eks. hus")}
            {theme.render(value=self.values.get("theme", ""), placeholder="F.eks. hjemme")}
            {day.render(value=self.values.get("date", ""), input_type="date")}
            <div class="form-actions">{SubmitButton("Opprett dagens ord").render()}</div>
        </form>
        """
