"""
Identity domain constants and simple helpers.

Why:
- Centralize allowed roles and their home routes to avoid drift between the
  guard, the web layer and the onboarding flow.
- Keep terms aligned with the glossary (learner = "elev" in the UI).
"""

from __future__ import annotations

# Keep roles minimal and explicit. Immutable to prevent accidental mutation.
ALLOWED_ROLES = frozenset({"admin", "teacher", "learner"})

# Where each role lands after login or after a role mismatch.
ROLE_HOME = {
    "admin": "/admin",
    "teacher": "/teacher",
    "learner": "/elev",
}

ENTRY_PATH = "/"

# Human-readable role names for the Norwegian UI.
ROLE_LABELS_NO = {
    "admin": "Administrator",
    "teacher": "Lærer",
    "learner": "Elev",
}

MIN_DIFFICULTY_LEVEL = 1
MAX_DIFFICULTY_LEVEL = 5
DEFAULT_DIFFICULTY_LEVEL = 1

# Mother tongues offered in the registration and profile forms.
MOTHER_TONGUES = {
    "en": "Engelsk",
    "es": "Spansk",
    "fr": "Fransk",
    "de": "Tysk",
    "pl": "Polsk",
    "ar": "Arabisk",
    "so": "Somali",
    "ur": "Urdu",
}


def role_home(role: str | None) -> str:
    """Return the home path for a role; unknown roles go to the entry page."""
    return ROLE_HOME.get((role or "").lower(), ENTRY_PATH)


def is_valid_difficulty_level(value: object) -> bool:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return MIN_DIFFICULTY_LEVEL <= value <= MAX_DIFFICULTY_LEVEL


__all__ = [
    "ALLOWED_ROLES",
    "ROLE_HOME",
    "ENTRY_PATH",
    "ROLE_LABELS_NO",
    "MIN_DIFFICULTY_LEVEL",
    "MAX_DIFFICULTY_LEVEL",
    "DEFAULT_DIFFICULTY_LEVEL",
    "MOTHER_TONGUES",
    "role_home",
    "is_valid_difficulty_level",
]
