"""Low-level Data Store error raised by every store implementation."""
from __future__ import annotations


class DataStoreError(Exception):
    """A Data Store call failed.

    `code` is a short machine identifier. Known codes:
        - invalid_invite_code: unknown, inactive or malformed invite code
        - already_registered: the identity already has a profile from another invite
        - role_mismatch: requested role differs from the invite's role
        - not_found: row does not exist
        - invalid_input: a value failed validation
        - remote_error: transport or server failure
    """

    def __init__(self, code: str, detail: str | None = None):
        super().__init__(code)
        self.code = code
        self.detail = detail


__all__ = ["DataStoreError"]
