"""
Unit tests for the session store, credential check and application
context lifecycle.
"""

import json

import pytest

from pharmachain.config import SESSION_KEY
from pharmachain.context import AppContext
from pharmachain.database import init_engine
from pharmachain.errors import AuthenticationError, PermissionDenied
from pharmachain.session import (
    DatabaseSessionStore,
    MemorySessionStore,
    check_credentials,
    load_user,
)


# ── Tests: check_credentials ─────────────────────────────────────────

def test_check_credentials_ok():
    user = check_credentials("abia@caritas.org", "state123")
    assert user.role == "state_manager"
    assert user.location.id == "abia"
    assert user.location.name == "Abia State"


@pytest.mark.parametrize("email,password", [
    ("abia@caritas.org", "wrong"),
    ("nobody@caritas.org", "state123"),
    ("enugu@caritas.org", ""),
])
def test_check_credentials_rejected(email, password):
    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        check_credentials(email, password)


# ── Tests: stored session ────────────────────────────────────────────

def test_login_persists_and_restores():
    store = MemorySessionStore()
    ctx = AppContext(store, delay=0)
    ctx.login("pharm@caritas.org", "pharm123")
    assert json.loads(store.get(SESSION_KEY))["email"] == "pharm@caritas.org"

    resumed = AppContext(store, delay=0).restore()
    assert resumed.role == "pharmacist"
    assert resumed.location_id == "facility1"


def test_failed_login_leaves_store_untouched():
    store = MemorySessionStore()
    ctx = AppContext(store, delay=0)
    with pytest.raises(AuthenticationError):
        ctx.login("admin@caritas.org", "nope")
    assert store.get(SESSION_KEY) is None
    assert not ctx.is_authenticated


def test_corrupt_stored_user_is_cleared(capsys):
    store = MemorySessionStore()
    store.set(SESSION_KEY, "{not json")
    assert load_user(store) is None
    assert store.get(SESSION_KEY) is None
    assert "[WARN] Failed to parse stored user data" in capsys.readouterr().out


@pytest.mark.parametrize("raw", ["null", "[]", "42", "\"x\""])
def test_stored_user_not_an_object_is_cleared(raw, capsys):
    store = MemorySessionStore()
    store.set(SESSION_KEY, raw)
    assert AppContext(store, delay=0).restore() is None
    assert store.get(SESSION_KEY) is None
    assert "[WARN]" in capsys.readouterr().out


def test_stored_user_missing_fields_is_cleared():
    store = MemorySessionStore()
    store.set(SESSION_KEY, json.dumps({"id": "1"}))
    assert AppContext(store, delay=0).restore() is None
    assert store.get(SESSION_KEY) is None


def test_database_store_survives_new_engine(tmp_path, capsys):
    uri = f"sqlite:///{tmp_path / 'local.db'}"
    ctx = AppContext(DatabaseSessionStore(init_engine(uri)), delay=0)
    ctx.login("admin@caritas.org", "admin123")

    store = DatabaseSessionStore(init_engine(uri))
    user = AppContext(store, delay=0).restore()
    assert user.email == "admin@caritas.org"
    assert "[init] Local storage ready" in capsys.readouterr().out

    store.remove(SESSION_KEY)
    assert store.get(SESSION_KEY) is None


# ── Tests: context lifecycle ─────────────────────────────────────────

def test_logout_cancels_open_screens(admin_ctx):
    screen = admin_ctx.screen("inventory")
    assert admin_ctx.screen("inventory") is screen

    admin_ctx.logout()
    assert screen.token.cancelled
    assert admin_ctx.screens == {}
    assert admin_ctx.user is None
    assert admin_ctx.store.get(SESSION_KEY) is None


def test_screen_access_denied(pharm_ctx):
    with pytest.raises(PermissionDenied):
        pharm_ctx.screen("settings")


def test_screen_requires_login():
    with pytest.raises(PermissionDenied, match="sign in"):
        AppContext(MemorySessionStore(), delay=0).screen("dashboard")
