"""
Role-Based Access Control – record visibility and mutation permissions.

Every check is a pure predicate: it never raises and returns a Decision.
Callers turn a denied Decision into a PermissionDenied notice.
"""

from typing import Callable, Iterable, List, Mapping, Optional, Set, TypeVar

from pharmachain.config import CENTRAL_LOCATION_ID, FACILITY_ROLES, ROLES, SCREEN_ROLES
from pharmachain.models import Decision, Location, User

T = TypeVar("T")

ALLOW = Decision(True)


def _deny(message: str) -> Decision:
    return Decision(False, "no-permission", message)


def _is_known(actor: Optional[User]) -> bool:
    return actor is not None and actor.role in ROLES


def _located(actor: Optional[User]) -> bool:
    """Admins may be unassigned; every other role needs a location."""
    if not _is_known(actor):
        return False
    return actor.role == "admin" or bool(actor.location_id)


def state_scope(actor: Optional[User], locations: Mapping[str, Location]) -> Set[str]:
    """Location ids governed by a state manager: the state and its facilities."""
    if not _located(actor) or actor.role != "state_manager":
        return set()
    state_id = actor.location_id
    scope = {state_id}
    scope.update(loc.id for loc in locations.values() if loc.parent == state_id)
    return scope


# ── Visibility ───────────────────────────────────────────────────────

def can_view(actor: Optional[User], record_location: Optional[str]) -> bool:
    """Visibility rule shared by inventory and distribution records."""
    if not _located(actor):
        return False
    if actor.role == "admin":
        return True
    if actor.role == "state_manager":
        return record_location in (CENTRAL_LOCATION_ID, actor.location_id)
    if actor.role in FACILITY_ROLES:
        return record_location == actor.location_id
    return False


def visible_records(actor: Optional[User], records: Iterable[T],
                    key: Callable[[T], Optional[str]] = lambda r: r.location) -> List[T]:
    """Filter *records* down to the ones *actor* may see (order preserved)."""
    return [r for r in records if can_view(actor, key(r))]


def visible_users(actor: Optional[User], users: Iterable[User],
                  locations: Mapping[str, Location]) -> List[User]:
    if not _located(actor):
        return []
    if actor.role == "admin":
        return list(users)
    if actor.role == "state_manager":
        scope = state_scope(actor, locations)
        return [u for u in users if u.location_id in scope]
    return [u for u in users if u.location_id == actor.location_id]


def visible_locations(actor: Optional[User], locations: Mapping[str, Location]) -> List[Location]:
    if not _located(actor):
        return []
    if actor.role == "admin":
        return list(locations.values())
    if actor.role == "state_manager":
        scope = state_scope(actor, locations) | {CENTRAL_LOCATION_ID}
        return [loc for loc in locations.values() if loc.id in scope]
    return [loc for loc in locations.values() if loc.id == actor.location_id]


def can_access_screen(actor: Optional[User], screen: str) -> Decision:
    if not _is_known(actor):
        return Decision(False, "no-access", "Please sign in to continue.")
    if screen not in SCREEN_ROLES:
        return Decision(False, "no-access", f"Unknown screen '{screen}'.")
    allowed = SCREEN_ROLES[screen]
    if allowed is not None and actor.role not in allowed:
        return Decision(False, "no-access", f"Your role cannot open the {screen} screen.")
    return ALLOW


# ── Inventory ────────────────────────────────────────────────────────

def can_add_drug(actor: Optional[User]) -> Decision:
    if not _located(actor):
        return _deny("You don't have permission to add inventory items.")
    if actor.role in ("admin", "state_manager"):
        return ALLOW
    return _deny("Please contact your state manager to add inventory items.")


def can_edit_drug(actor: Optional[User], drug_location: str) -> Decision:
    if not _located(actor) or actor.role not in ("admin", "state_manager"):
        return _deny("You don't have permission to edit inventory items.")
    if actor.role == "state_manager" and drug_location not in (actor.location_id, CENTRAL_LOCATION_ID):
        return _deny("You can only edit inventory items for your state.")
    return ALLOW


def can_delete_drug(actor: Optional[User], drug_location: str) -> Decision:
    decision = can_edit_drug(actor, drug_location)
    if not decision:
        return _deny(decision.message.replace("edit", "delete"))
    return decision


def can_order_more(actor: Optional[User], drug_location: str) -> Decision:
    """Edit predicate, with central stock reserved to administrators."""
    if _is_known(actor) and actor.role in FACILITY_ROLES:
        return _deny("Please contact your state manager to request more inventory.")
    if drug_location == CENTRAL_LOCATION_ID and not (_is_known(actor) and actor.role == "admin"):
        return _deny("Only administrators can order more for central inventory.")
    decision = can_edit_drug(actor, drug_location)
    if not decision:
        return _deny("You can only order more for your location.")
    return decision


def can_import_inventory(actor: Optional[User]) -> Decision:
    if _is_known(actor) and actor.role == "admin":
        return ALLOW
    return _deny("Only administrators can import inventory data.")


# ── Users ────────────────────────────────────────────────────────────

def can_assign_role(actor: Optional[User], target_role: str) -> Decision:
    if not _is_known(actor):
        return _deny("You don't have permission to manage users.")
    if target_role == "admin" and actor.role != "admin":
        return _deny("Only administrators can assign the admin role.")
    if target_role == "state_manager" and actor.role == "state_manager":
        return _deny("State managers cannot create or edit other state managers.")
    return ALLOW


def _can_manage_user_at(actor: Optional[User], location_id: Optional[str],
                        locations: Mapping[str, Location]) -> Decision:
    if not _located(actor) or actor.role not in ("admin", "state_manager"):
        return _deny("You don't have permission to manage users.")
    if actor.role == "state_manager" and location_id not in state_scope(actor, locations):
        return _deny("You can only manage users within your state.")
    return ALLOW


def can_add_user(actor: Optional[User], target_role: str, target_location_id: Optional[str],
                 locations: Mapping[str, Location]) -> Decision:
    decision = _can_manage_user_at(actor, target_location_id, locations)
    if not decision:
        return decision
    return can_assign_role(actor, target_role)


def can_edit_user(actor: Optional[User], target: User, new_role: str,
                  new_location_id: Optional[str], locations: Mapping[str, Location]) -> Decision:
    for loc_id in (target.location_id, new_location_id):
        decision = _can_manage_user_at(actor, loc_id, locations)
        if not decision:
            return decision
    for role in (target.role, new_role):
        decision = can_assign_role(actor, role)
        if not decision:
            return decision
    return ALLOW


def can_delete_user(actor: Optional[User], target: User,
                    locations: Mapping[str, Location]) -> Decision:
    decision = _can_manage_user_at(actor, target.location_id, locations)
    if not decision:
        return decision
    return can_assign_role(actor, target.role)


# ── Locations ────────────────────────────────────────────────────────

def can_manage_locations(actor: Optional[User]) -> Decision:
    """Add, edit and delete of locations are admin-only."""
    if _is_known(actor) and actor.role == "admin":
        return ALLOW
    return _deny("Only administrators can manage locations.")


# ── Distribution ─────────────────────────────────────────────────────

def can_distribute(actor: Optional[User]) -> Decision:
    if not _located(actor) or actor.role not in ("admin", "state_manager"):
        return _deny("You don't have permission to create distributions.")
    return ALLOW


def can_create_distribution(actor: Optional[User], destination: Optional[Location]) -> Decision:
    """Admins ship to states; state managers ship to their own facilities."""
    decision = can_distribute(actor)
    if not decision:
        return decision
    if destination is None:
        return _deny("Unknown destination.")
    if actor.role == "admin" and destination.type != "state":
        return _deny("Central distributions can only be sent to states.")
    if actor.role == "state_manager" and (
        destination.type != "facility" or destination.parent != actor.location_id
    ):
        return _deny("You can only distribute to facilities in your state.")
    return ALLOW
