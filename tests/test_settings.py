"""
Tests for user and location management on the settings screen.
"""

import pytest

from pharmachain.errors import NotFound, PermissionDenied, ValidationFailed


def _user(**overrides):
    data = {"name": "Ngozi Eze", "email": "ngozi@caritas.org",
            "role": "pharmacist", "location": "facility2"}
    data.update(overrides)
    return data


def _location(**overrides):
    data = {"name": "Aba North Clinic", "type": "facility", "parent": "abia",
            "address": "12 Market Rd, Aba", "contact": "+234-80-1111-2222"}
    data.update(overrides)
    return data


# ── Tests: users ─────────────────────────────────────────────────────

def test_user_lists_are_scoped(admin_ctx, state_ctx):
    assert len(admin_ctx.screen("settings").list_users()) == 6
    assert [u.id for u in state_ctx.screen("settings").list_users()] == ["2", "3", "6"]
    assert [u.email for u in admin_ctx.screen("settings").list_users("pharm")] == ["pharm@caritas.org"]


def test_state_manager_adds_facility_user(state_ctx):
    screen = state_ctx.screen("settings")
    user = screen.add_user(_user())
    assert user.id == "7"
    assert user.location.name == "Primary Health Center Aba"
    assert screen.get_user("7") is user


def test_state_manager_cannot_add_outside_state(state_ctx):
    screen = state_ctx.screen("settings")
    with pytest.raises(PermissionDenied, match="within your state"):
        screen.add_user(_user(location="facility4"))
    with pytest.raises(PermissionDenied, match="other state managers"):
        screen.add_user(_user(role="state_manager"))
    assert len(screen.users) == 6


def test_duplicate_email_rejected(admin_ctx):
    with pytest.raises(ValidationFailed) as e:
        admin_ctx.screen("settings").add_user(_user(email="ADMIN@caritas.org"))
    assert e.value.errors == {"email": "Email address is already in use"}


def test_unknown_location_rejected(admin_ctx):
    with pytest.raises(ValidationFailed) as e:
        admin_ctx.screen("settings").add_user(_user(location="mars"))
    assert "location" in e.value.errors


def test_edit_user_moves_location(admin_ctx):
    screen = admin_ctx.screen("settings")
    user = screen.edit_user("6", _user(name="Pharmacist Two", email="pharm@caritas.org",
                                       location="facility4"))
    assert user.name == "Pharmacist Two"
    assert user.location_id == "facility4"


def test_delete_user(admin_ctx):
    screen = admin_ctx.screen("settings")
    assert screen.delete_user("5").email == "imo@caritas.org"
    with pytest.raises(NotFound):
        screen.get_user("5")


def test_cannot_delete_self(admin_ctx):
    with pytest.raises(ValidationFailed, match="your own account"):
        admin_ctx.screen("settings").delete_user("1")


# ── Tests: locations ─────────────────────────────────────────────────

def test_location_lists_are_scoped(state_ctx):
    screen = state_ctx.screen("settings")
    ids = [loc.id for loc in screen.list_locations()]
    assert ids == ["central", "abia", "facility1", "facility2", "facility3"]
    assert screen.parent_name(screen.get_location("facility1")) == "Abia State"
    assert screen.parent_name(screen.get_location("abia")) == "-"


def test_locations_are_admin_only(state_ctx):
    with pytest.raises(PermissionDenied, match="Only administrators"):
        state_ctx.screen("settings").add_location(_location())


def test_add_facility(admin_ctx):
    screen = admin_ctx.screen("settings")
    loc = screen.add_location(_location())
    assert loc.id == "loc1"
    assert loc.parent == "abia"
    assert screen.add_location(_location(name="Kano State", type="state")).id == "loc2"


def test_facility_parent_must_be_state(admin_ctx):
    with pytest.raises(ValidationFailed) as e:
        admin_ctx.screen("settings").add_location(_location(parent="facility1"))
    assert e.value.errors == {"parent": "A facility must belong to a state"}


def test_single_central_location(admin_ctx):
    with pytest.raises(ValidationFailed):
        admin_ctx.screen("settings").add_location(_location(name="Second HQ", type="central"))


def test_rename_location_updates_users(admin_ctx):
    screen = admin_ctx.screen("settings")
    screen.edit_location("abia", _location(name="Abia State Office", type="state"))
    assert screen.get_user("2").location.name == "Abia State Office"


def test_delete_location_guards(admin_ctx):
    screen = admin_ctx.screen("settings")
    with pytest.raises(ValidationFailed, match="facilities"):
        screen.delete_location("abia")
    with pytest.raises(ValidationFailed, match="Users are still assigned"):
        screen.delete_location("imo")

    screen.delete_user("5")
    assert screen.delete_location("imo").name == "Imo State"
    with pytest.raises(NotFound):
        screen.get_location("imo")


def test_state_with_facilities_cannot_become_facility(admin_ctx):
    screen = admin_ctx.screen("settings")
    with pytest.raises(ValidationFailed) as e:
        screen.edit_location("abia", _location(name="Abia State", parent="abia"))
    assert e.value.errors == {"type": "This location still has facilities under it"}
    assert screen.get_location("abia").type == "state"
    assert screen.get_location("abia").parent is None


def test_facility_cannot_be_its_own_parent(admin_ctx):
    screen = admin_ctx.screen("settings")
    with pytest.raises(ValidationFailed) as e:
        screen.edit_location("facility1", _location(name="General Hospital Umuahia", parent="facility1"))
    assert "parent" in e.value.errors
    assert screen.get_location("facility1").parent == "abia"


def test_central_location_keeps_its_type(admin_ctx):
    screen = admin_ctx.screen("settings")
    with pytest.raises(ValidationFailed, match="central location cannot change type"):
        screen.edit_location("central", _location(name="CARITAS HQ", type="state"))
    assert screen.get_location("central").type == "central"


def test_childless_state_can_become_facility(admin_ctx):
    screen = admin_ctx.screen("settings")
    loc = screen.edit_location("imo", _location(name="Imo Clinic", parent="abia"))
    assert (loc.type, loc.parent) == ("facility", "abia")
    assert screen.get_user("5").location.type == "facility"
