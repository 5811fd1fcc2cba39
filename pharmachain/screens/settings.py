"""
Settings screen – user accounts and the location hierarchy.
"""

from typing import Dict, List, Optional

from pharmachain.errors import NotFound, ValidationFailed
from pharmachain.models import Location, User
from pharmachain.rbac import (
    can_add_user,
    can_delete_user,
    can_edit_user,
    can_manage_locations,
    visible_locations,
    visible_users,
)
from pharmachain.screens.base import Screen, matches, next_id
from pharmachain.seed import build_locations, build_users
from pharmachain.validation import LocationForm, UserForm, parse


class SettingsScreen(Screen):
    name = "settings"

    def __init__(self, ctx):
        super().__init__(ctx)
        self.locations: Dict[str, Location] = build_locations()
        self.users: List[User] = build_users(self.locations)

    # ── Users ────────────────────────────────────────────────────────

    def list_users(self, search: Optional[str] = None) -> List[User]:
        rows = visible_users(self.user, self.users, self.locations)
        return [u for u in rows if matches(search, u.name, u.email, u.role)]

    def get_user(self, user_id: str) -> User:
        for u in visible_users(self.user, self.users, self.locations):
            if u.id == user_id:
                return u
        raise NotFound(f"User {user_id} not found")

    def _user_location(self, form: UserForm, exclude_id: Optional[str] = None) -> Location:
        location = self.locations.get(form.location)
        if location is None:
            raise ValidationFailed({"location": "Please select a location"})
        if any(u.email.lower() == form.email.lower() and u.id != exclude_id for u in self.users):
            raise ValidationFailed({"email": "Email address is already in use"})
        return location

    def add_user(self, data: Dict) -> User:
        form = parse(UserForm, data)
        self.require(can_add_user(self.user, form.role, form.location, self.locations))
        location = self._user_location(form)
        user = User(
            id=next_id(u.id for u in self.users),
            name=form.name,
            email=form.email,
            role=form.role,
            location=location.ref(),
        )
        self.users.append(user)
        return user

    def edit_user(self, user_id: str, data: Dict) -> User:
        target = self.get_user(user_id)
        form = parse(UserForm, data)
        self.require(can_edit_user(self.user, target, form.role, form.location, self.locations))
        location = self._user_location(form, exclude_id=target.id)
        target.name = form.name
        target.email = form.email
        target.role = form.role
        target.location = location.ref()
        return target

    def delete_user(self, user_id: str) -> User:
        target = self.get_user(user_id)
        self.require(can_delete_user(self.user, target, self.locations))
        if target.id == self.user.id:
            raise ValidationFailed({"id": "You cannot delete your own account"})
        self.users.remove(target)
        return target

    # ── Locations ────────────────────────────────────────────────────

    def list_locations(self, search: Optional[str] = None) -> List[Location]:
        rows = visible_locations(self.user, self.locations)
        return [loc for loc in rows if matches(search, loc.name, loc.type, loc.address)]

    def get_location(self, location_id: str) -> Location:
        for loc in visible_locations(self.user, self.locations):
            if loc.id == location_id:
                return loc
        raise NotFound(f"Location {location_id} not found")

    def parent_name(self, location: Location) -> str:
        parent = self.locations.get(location.parent) if location.parent else None
        return parent.name if parent else "-"

    def _check_hierarchy(self, form: LocationForm, location_id: Optional[str] = None) -> None:
        current = self.locations.get(location_id) if location_id else None
        if current is not None and current.type != form.type:
            if current.type == "central":
                raise ValidationFailed({"type": "The central location cannot change type"})
            if any(loc.parent == location_id for loc in self.locations.values()):
                raise ValidationFailed({"type": "This location still has facilities under it"})
        if form.type == "facility":
            parent = self.locations.get(form.parent)
            if form.parent == location_id or parent is None or parent.type != "state":
                raise ValidationFailed({"parent": "A facility must belong to a state"})
        if form.type == "central" and any(
            loc.type == "central" and loc.id != location_id for loc in self.locations.values()
        ):
            raise ValidationFailed({"type": "There can only be one central location"})

    def add_location(self, data: Dict) -> Location:
        self.require(can_manage_locations(self.user))
        form = parse(LocationForm, data)
        self._check_hierarchy(form)
        existing = [loc_id for loc_id in self.locations if loc_id.startswith("loc")]
        location = Location(id=next_id(existing, prefix="loc"), **form.model_dump())
        self.locations[location.id] = location
        return location

    def edit_location(self, location_id: str, data: Dict) -> Location:
        self.require(can_manage_locations(self.user))
        location = self.get_location(location_id)
        form = parse(LocationForm, data)
        self._check_hierarchy(form, location_id)
        for key, value in form.model_dump().items():
            setattr(location, key, value)
        for u in self.users:
            if u.location_id == location.id:
                u.location = location.ref()
        return location

    def delete_location(self, location_id: str) -> Location:
        self.require(can_manage_locations(self.user))
        location = self.get_location(location_id)
        if any(loc.parent == location_id for loc in self.locations.values()):
            raise ValidationFailed({"id": "Remove the facilities of this location first"})
        if any(u.location_id == location_id for u in self.users):
            raise ValidationFailed({"id": "Users are still assigned to this location"})
        del self.locations[location_id]
        return location
