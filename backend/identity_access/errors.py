"""
User-facing error taxonomy for onboarding and role-gated routing.

Why:
    Adapters (Identity Service, Data Store) raise low-level errors with
    technical codes. Services translate them into this small taxonomy so the
    web layer can turn every failure into one Norwegian toast without knowing
    which remote call failed.

Each error carries:
    - `code`: stable machine identifier (used in JSON bodies and logs)
    - `toast_title` / `toast_description`: Norwegian UI text
    - `detail`: optional technical detail for logs (never shown to users)
"""
from __future__ import annotations


class NorgeskoleError(Exception):
    """Base class for errors surfaced to users as a toast."""

    code = "generic_remote_error"
    toast_title = "Feil"
    toast_description = "Noe gikk galt. Prøv igjen."

    def __init__(self, detail: str | None = None):
        super().__init__(detail or self.code)
        self.detail = detail


class GenericRemoteError(NorgeskoleError):
    """A remote call failed for a reason the user cannot act on."""


class InvalidInviteCode(NorgeskoleError):
    code = "invalid_invite_code"
    toast_title = "Ugyldig invitasjonskode"
    toast_description = "Invitasjonskoden er ugyldig eller utløpt"


class IdentityCreationFailure(NorgeskoleError):
    code = "identity_creation_failed"
    toast_title = "Feil ved registrering"
    toast_description = "Kunne ikke opprette konto. Prøv igjen."


class ProfileRegistrationFailure(NorgeskoleError):
    code = "profile_registration_failed"
    toast_title = "Registreringsfeil"
    toast_description = "Kunne ikke registrere bruker"


class OrphanedIdentity(ProfileRegistrationFailure):
    """Identity exists but no profile could be created and cleanup failed.

    The identity keeps its pending invite code so the next login can resume
    registration.
    """

    code = "orphaned_identity"
    toast_title = "Registreringen ble ikke fullført"
    toast_description = "Kontoen din er opprettet, men profilen mangler. Logg inn igjen for å fullføre registreringen."


class EmailConfirmationPending(OrphanedIdentity):
    """Identity created without a session; registration resumes after first login."""

    code = "email_confirmation_pending"
    toast_title = "Bekreft e-postadressen din"
    toast_description = "Vi har sendt deg en e-post. Bekreft adressen og logg inn for å fullføre registreringen."


class ProfileFetchFailure(NorgeskoleError):
    code = "profile_fetch_failed"
    toast_title = "Feil"
    toast_description = "Kunne ikke hente brukerprofil"


class AuthorizationFailure(NorgeskoleError):
    code = "forbidden"
    toast_title = "Ingen tilgang"
    toast_description = "Du har ikke tilgang til denne siden"


__all__ = [
    "NorgeskoleError",
    "GenericRemoteError",
    "InvalidInviteCode",
    "IdentityCreationFailure",
    "ProfileRegistrationFailure",
    "OrphanedIdentity",
    "EmailConfirmationPending",
    "ProfileFetchFailure",
    "AuthorizationFailure",
]
