"""
Toast notifications.

Routes redirect with `?melding=<code>`; the layout looks the code up in a fixed
catalog and renders the Norwegian text. Only known codes render, so the query
string can never inject arbitrary text into a page.
"""

from typing import Dict, Optional, Tuple

from identity_access.errors import (
    AuthorizationFailure,
    EmailConfirmationPending,
    GenericRemoteError,
    IdentityCreationFailure,
    InvalidInviteCode,
    NorgeskoleError,
    OrphanedIdentity,
    ProfileFetchFailure,
    ProfileRegistrationFailure,
)

from .base import Component


# code -> (title, description, variant)
TOASTS: Dict[str, Tuple[str, str, str]] = {
    "logged_in": ("Logget inn", "Velkommen tilbake!", "success"),
    "logged_out": ("Logget ut", "Du er nå logget ut.", "success"),
    "registered": ("Velkommen!", "Din konto er opprettet", "success"),
    "profile_saved": ("Lagret", "Profilen din er oppdatert.", "success"),
    "classroom_created": ("Klasserom opprettet", "Det nye klasserommet er klart.", "success"),
    "invite_created": ("Invitasjonslenke opprettet", "Lenken kan nå deles.", "success"),
    "invite_toggled": ("Oppdatert", "Invitasjonslenken er oppdatert.", "success"),
    "level_saved": ("Lagret", "Nivået er oppdatert.", "success"),
    "daily_word_created": ("Dagens ord opprettet", "Ordet venter på godkjenning.", "success"),
    "invalid_credentials": ("Feil ved innlogging", "Feil e-post eller passord.", "error"),
    "csrf": ("Feil", "Skjemaet er utløpt. Last inn siden på nytt.", "error"),
    "invalid_input": ("Feil", "Kontroller feltene og prøv igjen.", "error"),
}

for _err in (
    GenericRemoteError,
    InvalidInviteCode,
    IdentityCreationFailure,
    ProfileRegistrationFailure,
    OrphanedIdentity,
    EmailConfirmationPending,
    ProfileFetchFailure,
    AuthorizationFailure,
):
    TOASTS[_err.code] = (_err.toast_title, _err.toast_description, "error")


def toast_code_for(error: NorgeskoleError) -> str:
    return error.code if error.code in TOASTS else GenericRemoteError.code


class Toast(Component):
    def __init__(self, code: Optional[str]):
        self.code = code

    def render(self) -> str:
        entry = TOASTS.get(self.code or "")
        if not entry:
            return ""
        title, description, variant = entry
        role = "alert" if variant == "error" else "status"
        return (
            f'<div class="{self.classes("toast", f"toast--{variant}")}" role="{role}">'
            f'<strong class="toast__title">{self.escape(title)}</strong>'
            f'<p class="toast__description">{self.escape(description)}</p>'
            "</div>"
        )


__all__ = ["TOASTS", "Toast", "toast_code_for"]
