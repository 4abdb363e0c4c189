"""
JWT verification helpers for the identity_access bounded context.

Why: Keep cryptographic validation of Identity Service access tokens outside
the web adapter so we can unit test it independently.

Security: Supabase Auth signs access tokens with the project's JWT secret
(HS256). We verify the signature and audience, then check the temporal claims
ourselves with a small clock-skew allowance.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict
import time

from jose import jwt
from jose.exceptions import JOSEError


class AccessTokenVerificationError(Exception):
    """Raised when the access token fails verification."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


MAX_CLOCK_SKEW_SECONDS = 5  # Allow minimal skew between servers
DEFAULT_AUDIENCE = "authenticated"


@dataclass(frozen=True)
class AccessTokenClaims:
    sub: str
    email: str
    user_metadata: Dict[str, object]
    expires_at: int | None


def verify_access_token(
    *,
    access_token: str,
    jwt_secret: str,
    audience: str = DEFAULT_AUDIENCE,
) -> AccessTokenClaims:
    """Validate an access token and return the identity claims.

    Parameters
    ----------
    access_token:
        The raw JWT string returned by the Identity Service.
    jwt_secret:
        Project JWT secret (`SUPABASE_JWT_SECRET`).
    audience:
        Expected `aud` claim; Supabase uses "authenticated" for user tokens.

    Raises
    ------
    AccessTokenVerificationError:
        When the token is missing, malformed, badly signed or expired.
    """
    if not access_token or not isinstance(access_token, str):
        raise AccessTokenVerificationError("missing_token")
    if not jwt_secret:
        raise AccessTokenVerificationError("missing_secret")
    try:
        claims = jwt.decode(
            access_token,
            jwt_secret,
            algorithms=["HS256"],
            audience=audience,
            options={
                "verify_signature": True,
                "verify_aud": True,
                "verify_exp": False,
                "verify_iat": False,
                "verify_nbf": False,
            },
        )
    except JOSEError as exc:
        raise AccessTokenVerificationError("invalid_access_token") from exc

    _validate_temporal_claims(claims)

    sub = claims.get("sub")
    if not isinstance(sub, str) or not sub:
        raise AccessTokenVerificationError("missing_sub")
    meta = claims.get("user_metadata")
    exp = claims.get("exp")
    return AccessTokenClaims(
        sub=sub,
        email=str(claims.get("email") or ""),
        user_metadata=meta if isinstance(meta, dict) else {},
        expires_at=int(exp) if isinstance(exp, (int, float)) else None,
    )


def _validate_temporal_claims(claims: Dict[str, object]) -> None:
    now = time.time()
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        raise AccessTokenVerificationError("invalid_access_token")
    if exp + MAX_CLOCK_SKEW_SECONDS < now:
        raise AccessTokenVerificationError("expired_access_token")

    iat = claims.get("iat")
    if isinstance(iat, (int, float)):
        if iat - MAX_CLOCK_SKEW_SECONDS > now:
            raise AccessTokenVerificationError("invalid_access_token")

    nbf = claims.get("nbf")
    if isinstance(nbf, (int, float)) and nbf - MAX_CLOCK_SKEW_SECONDS > now:
        raise AccessTokenVerificationError("invalid_access_token")
