"""
Unit tests for RBAC – record visibility, screen access and mutation
permissions – plus the environment helper.
"""

from dataclasses import FrozenInstanceError
from datetime import date

import pytest

from pharmachain.config import get_env
from pharmachain.models import LocationRef, User
from pharmachain.rbac import (
    can_access_screen,
    can_add_drug,
    can_add_user,
    can_create_distribution,
    can_delete_drug,
    can_delete_user,
    can_distribute,
    can_edit_drug,
    can_edit_user,
    can_import_inventory,
    can_manage_locations,
    can_order_more,
    can_view,
    state_scope,
    visible_locations,
    visible_records,
    visible_users,
)
from pharmachain.seed import build_drugs, build_locations, build_users

LOCATIONS = build_locations()
USERS = {u.email.split("@")[0]: u for u in build_users(LOCATIONS)}
ADMIN = USERS["admin"]
ABIA = USERS["abia"]
FACILITY = USERS["facility"]
PHARM = USERS["pharm"]


# ── Tests: get_env ───────────────────────────────────────────────────

def test_get_env_ok(monkeypatch):
    monkeypatch.setenv("X", "123")
    assert get_env("X") == "123"


def test_get_env_missing_exits(monkeypatch, capsys):
    monkeypatch.delenv("MISSING_ENV", raising=False)
    with pytest.raises(SystemExit) as e:
        get_env("MISSING_ENV")
    assert e.value.code == 1
    err = capsys.readouterr().err
    assert "ERROR: env var MISSING_ENV is not set" in err


# ── Tests: visibility ────────────────────────────────────────────────

def test_inventory_visibility_per_role():
    drugs = build_drugs(date.today())
    ids = lambda actor: [d.id for d in visible_records(actor, drugs)]
    assert ids(ADMIN) == ["1", "2", "3", "4", "5", "6", "7"]
    assert ids(ABIA) == ["1", "2", "3", "4"]
    assert ids(FACILITY) == ["5", "6"]
    assert ids(PHARM) == ["5", "6"]


def test_unknown_or_missing_actor_sees_nothing():
    drugs = build_drugs(date.today())
    stranger = User("99", "X", "x@x.org", "auditor", LocationRef("central", "central", "HQ"))
    assert visible_records(None, drugs) == []
    assert visible_records(stranger, drugs) == []


def test_non_admin_without_location_sees_nothing():
    orphan = User("98", "Orphan", "o@caritas.org", "state_manager", None)
    assert can_view(orphan, "central") is False
    assert visible_users(orphan, USERS.values(), LOCATIONS) == []


def test_state_scope_includes_facilities():
    assert state_scope(ABIA, LOCATIONS) == {"abia", "facility1", "facility2", "facility3"}
    assert state_scope(ADMIN, LOCATIONS) == set()


def test_visible_users_and_locations():
    assert {u.id for u in visible_users(ABIA, USERS.values(), LOCATIONS)} == {"2", "3", "6"}
    assert {u.id for u in visible_users(PHARM, USERS.values(), LOCATIONS)} == {"3", "6"}
    assert {loc.id for loc in visible_locations(ABIA, LOCATIONS)} == {
        "central", "abia", "facility1", "facility2", "facility3",
    }


# ── Tests: screens ───────────────────────────────────────────────────

@pytest.mark.parametrize("actor,screen,allowed", [
    (ADMIN, "settings", True),
    (ABIA, "distribution", True),
    (FACILITY, "distribution", False),
    (PHARM, "dispensing", True),
    (ADMIN, "patients", False),
    (PHARM, "reports", True),
    (None, "dashboard", False),
])
def test_can_access_screen(actor, screen, allowed):
    assert bool(can_access_screen(actor, screen)) is allowed


def test_unknown_screen_denied():
    decision = can_access_screen(ADMIN, "billing")
    assert not decision
    assert decision.reason == "no-access"


# ── Tests: inventory permissions ─────────────────────────────────────

def test_add_drug_facility_roles_denied():
    assert can_add_drug(ADMIN)
    assert can_add_drug(ABIA)
    decision = can_add_drug(PHARM)
    assert not decision
    assert decision.reason == "no-permission"


def test_state_manager_edit_scope():
    assert can_edit_drug(ABIA, "abia")
    assert can_edit_drug(ABIA, "central")
    assert not can_edit_drug(ABIA, "enugu")
    assert not can_edit_drug(FACILITY, "facility1")


def test_order_more_messages():
    assert can_order_more(ADMIN, "central")
    assert can_order_more(ABIA, "abia")
    assert can_order_more(FACILITY, "facility1").message == (
        "Please contact your state manager to request more inventory."
    )
    assert can_order_more(ABIA, "central").message == (
        "Only administrators can order more for central inventory."
    )
    assert can_order_more(ABIA, "enugu").message == "You can only order more for your location."


def test_import_admin_only():
    assert can_import_inventory(ADMIN)
    assert not can_import_inventory(ABIA)


# ── Tests: user management ───────────────────────────────────────────

def test_state_manager_adds_user_within_state_only():
    assert can_add_user(ABIA, "pharmacist", "facility2", LOCATIONS)
    assert not can_add_user(ABIA, "pharmacist", "facility4", LOCATIONS)
    denied = can_add_user(ABIA, "state_manager", "facility1", LOCATIONS)
    assert denied.message == "State managers cannot create or edit other state managers."
    assert not can_add_user(ABIA, "admin", "abia", LOCATIONS)


def test_edit_user_checks_old_and_new_location():
    assert can_edit_user(ABIA, FACILITY, "pharmacist", "facility2", LOCATIONS)
    assert not can_edit_user(ABIA, FACILITY, "pharmacist", "facility4", LOCATIONS)
    assert not can_edit_user(ABIA, ADMIN, "admin", "central", LOCATIONS)


def test_delete_user():
    assert can_delete_user(ADMIN, ABIA, LOCATIONS)
    assert can_delete_user(ABIA, PHARM, LOCATIONS)
    assert not can_delete_user(PHARM, FACILITY, LOCATIONS)


def test_locations_admin_only():
    assert can_manage_locations(ADMIN)
    assert not can_manage_locations(ABIA)


# ── Tests: distribution ──────────────────────────────────────────────

def test_admin_distributes_to_states_only():
    assert can_create_distribution(ADMIN, LOCATIONS["abia"])
    assert not can_create_distribution(ADMIN, LOCATIONS["facility1"])


def test_state_manager_distributes_to_own_facilities():
    assert can_create_distribution(ABIA, LOCATIONS["facility1"])
    assert not can_create_distribution(ABIA, LOCATIONS["facility4"])
    assert not can_create_distribution(ABIA, LOCATIONS["enugu"])
    assert not can_create_distribution(PHARM, LOCATIONS["facility1"])


# ── Tests: policy-wide properties ────────────────────────────────────

@pytest.mark.parametrize("actor", list(USERS.values()))
def test_visibility_is_a_stable_subset(actor):
    drugs = build_drugs(date.today())
    first = visible_records(actor, drugs)
    assert visible_records(actor, drugs) == first
    assert all(d in drugs for d in first)
    assert (len(first) == len(drugs)) == (actor.role == "admin")


@pytest.mark.parametrize("actor", [FACILITY, PHARM])
def test_facility_roles_cannot_mutate_anything(actor):
    own = actor.location_id
    checks = [
        can_add_drug(actor),
        can_edit_drug(actor, own),
        can_delete_drug(actor, own),
        can_order_more(actor, own),
        can_import_inventory(actor),
        can_distribute(actor),
        can_create_distribution(actor, LOCATIONS["facility1"]),
        can_add_user(actor, "pharmacist", own, LOCATIONS),
        can_edit_user(actor, PHARM, "pharmacist", own, LOCATIONS),
        can_delete_user(actor, PHARM, LOCATIONS),
        can_manage_locations(actor),
    ]
    assert not any(checks)
    assert {d.reason for d in checks} == {"no-permission"}


def test_decisions_are_immutable():
    decision = can_add_drug(ADMIN)
    with pytest.raises(FrozenInstanceError):
        decision.allowed = False
    assert can_add_drug(ADMIN).allowed is True
