"""
Shared authentication utilities.

Why:
    Avoid duplicating cookie policy and session lookup logic across modules
    (main app, auth router, invite router). Keeping single helpers improves
    consistency.

Design:
    `cookie_opts` is pure. `session_from_request` takes the session store as a
    parameter so callers decide which store (in-memory or DB) is active.
"""

from __future__ import annotations

from typing import Any, Optional
import logging


logger = logging.getLogger("norgeskole.web.auth")

SESSION_COOKIE_NAME = "norgeskole_session"


def cookie_opts(environment: str) -> dict:
    """Return hardened cookie flags (dev = prod).

    Returns a mapping with keys:
      - secure: True
      - samesite: "lax"  # cookie survives top-level navigation from invite links
    """
    return {"secure": True, "samesite": "lax"}


def session_from_request(request: Any, store: Any) -> Optional[Any]:
    """Return the server-side session for the request's cookie, or None.

    Store failures are logged and treated as "no session" so callers fail closed.
    """
    sid = request.cookies.get(SESSION_COOKIE_NAME)
    if not sid:
        return None
    try:
        return store.get(sid)
    except Exception as exc:
        logger.warning("Session store get failed: %s", exc.__class__.__name__)
        return None
