"""
Pytest configuration for backend tests.

Why: Force AnyIO to use the asyncio backend to avoid sandbox restrictions
that can affect the Trio backend (e.g., socketpair permission errors), and
give every test fresh in-memory adapters so state never leaks between tests.
"""
import os
import sys
from pathlib import Path

import pytest


# Unit tests never talk to a real Supabase project; without these the web
# wiring keeps its in-memory Data Store and Identity Service.
for _var in ("SUPABASE_URL", "SUPABASE_ANON_KEY", "SUPABASE_SERVICE_ROLE_KEY", "SESSIONS_BACKEND"):
    os.environ.pop(_var, None)

# Ensure modules in backend/ and backend/web are importable across tests
REPO_ROOT = Path(__file__).resolve().parents[2]
BACKEND_DIR = REPO_ROOT / "backend"
WEB_DIR = BACKEND_DIR / "web"
TESTS_DIR = BACKEND_DIR / "tests"
for p in (str(REPO_ROOT), str(BACKEND_DIR), str(WEB_DIR), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture(autouse=True)
def _fresh_adapters(monkeypatch: pytest.MonkeyPatch):
    """Reset the Data Store, Identity Service and session store per test.

    Why:
        Routers reach adapters through `wiring`; a profile or invite created
        in one test must not decide the outcome of another.

    Behavior:
        - Wires a new `InMemoryDataStore` (this also clears the guard's role cache).
        - Wires a new `InMemoryIdentityService`.
        - Replaces `main.SESSION_STORE` with an empty in-memory store.
        - Resets the environment override and env-driven toggles.
    """
    import main  # type: ignore
    import wiring  # type: ignore
    from datastore.memory import InMemoryDataStore
    from identity_access.identity_client import InMemoryIdentityService
    from identity_access.stores import SessionStore

    wiring.set_data_store(InMemoryDataStore())
    wiring.set_identity_service(InMemoryIdentityService())
    monkeypatch.setattr(main, "SESSION_STORE", SessionStore(), raising=False)
    main.SETTINGS.override_environment(None)
    for var in ("NORGESKOLE_ENV", "NORGESKOLE_TRUST_PROXY", "SUPABASE_JWT_SECRET"):
        monkeypatch.delenv(var, raising=False)
    yield
    main.SETTINGS.override_environment(None)
    wiring.GUARD.unmount()
