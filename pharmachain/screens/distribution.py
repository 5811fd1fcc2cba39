"""
Distribution screen – shipments from central to states and from states to
their facilities.

Central-origin and state-origin shipments live in two independent lists,
neither reconciled with inventory stock.
"""

import threading
from typing import Dict, List, Optional

from pharmachain.config import CENTRAL_LOCATION_ID
from pharmachain.errors import NotFound, ValidationFailed
from pharmachain.models import Distribution, DistributionItem, Location
from pharmachain.rbac import can_create_distribution, can_distribute, visible_records
from pharmachain.screens.base import Screen, matches, next_id
from pharmachain.seed import (
    DISTRIBUTABLE_DRUGS,
    build_central_distributions,
    build_locations,
    build_state_distributions,
)
from pharmachain.status import tracking_timeline
from pharmachain.validation import DistributionForm, parse


class DistributionScreen(Screen):
    name = "distribution"

    def __init__(self, ctx):
        super().__init__(ctx)
        self.locations: Dict[str, Location] = build_locations()
        self.central_distributions: List[Distribution] = build_central_distributions(self.today)
        self.state_distributions: List[Distribution] = build_state_distributions(self.today)
        self._lock = threading.Lock()

    @property
    def is_state_view(self) -> bool:
        return bool(self.user and self.user.location and self.user.location.type == "state")

    def _board(self) -> List[Distribution]:
        return self.state_distributions if self.is_state_view else self.central_distributions

    # ── Queries ──────────────────────────────────────────────────────

    def visible(self) -> List[Distribution]:
        return visible_records(self.user, self._board())

    def list(self, search: Optional[str] = None) -> List[Distribution]:
        return [d for d in self.visible() if matches(search, d.destination)]

    def get(self, distribution_id: str) -> Distribution:
        for dist in self.visible():
            if dist.id == distribution_id:
                return dist
        raise NotFound(f"Distribution {distribution_id} not found")

    def track(self, distribution_id: str) -> Dict:
        return tracking_timeline(self.get(distribution_id))

    def destinations(self) -> List[Location]:
        """Locations the current user may ship to."""
        if not self.user:
            return []
        if self.user.role == "admin":
            return [loc for loc in self.locations.values() if loc.type == "state"]
        if self.user.role == "state_manager":
            return [loc for loc in self.locations.values()
                    if loc.type == "facility" and loc.parent == self.user.location_id]
        return []

    def _resolve(self, value: str) -> Optional[Location]:
        """Accept a location id or its display name."""
        if value in self.locations:
            return self.locations[value]
        for loc in self.locations.values():
            if loc.name.lower() == value.lower():
                return loc
        return None

    def catalogue(self) -> List[str]:
        return list(DISTRIBUTABLE_DRUGS)

    def stats(self) -> Dict[str, int]:
        rows = self.visible()
        return {
            "total_units": sum(d.total_units for d in rows),
            "in_transit_units": sum(d.total_units for d in rows if d.status == "in-transit"),
            "recipients": len(self.destinations()),
        }

    # ── Mutations ────────────────────────────────────────────────────

    def create(self, data: Dict) -> Distribution:
        """Create a pending distribution after the simulated service delay."""
        self.require(can_distribute(self.user))
        form = parse(DistributionForm, data)
        destination = self._resolve(form.destination)
        if destination is None:
            raise ValidationFailed({"destination": "Unknown destination"})
        self.require(can_create_distribution(self.user, destination))

        merged: Dict[str, int] = {}
        for item in form.items:
            merged[item.name] = merged.get(item.name, 0) + item.quantity

        board = self._board()
        origin = self.user.location_id or CENTRAL_LOCATION_ID
        items = [DistributionItem(name, qty) for name, qty in merged.items()]

        def apply() -> Distribution:
            with self._lock:
                existing = [d.id for d in self.central_distributions + self.state_distributions]
                dist = Distribution(
                    id=next_id(existing, prefix="DIST-", width=4),
                    origin=origin,
                    destination=destination.name,
                    destination_type=destination.type,
                    date=self.today,
                    status="pending",
                    items=items,
                )
                board.insert(0, dist)
            return dist

        return self.simulate(apply, name="create-distribution")
