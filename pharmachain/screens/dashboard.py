"""
Dashboard screen – overview tailored to the user's tier (central, state or
facility).
"""

from typing import Any, Dict, List

from pharmachain.config import FACILITY_ROLES
from pharmachain.screens.base import Screen
from pharmachain.screens.reports import (
    dispensing_frame,
    inventory_frame,
    summarize_dispensing,
    summarize_inventory,
)


class DashboardScreen(Screen):
    name = "dashboard"

    @property
    def tier(self) -> str:
        if self.user and self.user.location:
            return self.user.location.type
        return "central"

    def alerts(self, inventory: Dict[str, Any]) -> List[str]:
        out = []
        if inventory["low_stock"]:
            out.append(f"{inventory['low_stock']} items low on stock")
        if inventory["expired"]:
            out.append(f"{inventory['expired']} expired items")
        return out

    def overview(self) -> Dict[str, Any]:
        inventory = summarize_inventory(
            inventory_frame(self.ctx.snapshot("inventory").visible(), self.today), self.today
        )
        data: Dict[str, Any] = {
            "tier": self.tier,
            "total_drugs": inventory["total_items"],
            "low_stock": inventory["low_stock"],
            "expired": inventory["expired"],
            "alerts": self.alerts(inventory),
        }

        if self.tier in ("central", "state") and self.user.role not in FACILITY_ROLES:
            board = self.ctx.snapshot("distribution")
            recent = board.visible()[:3]
            data["recent_distributions"] = [
                {"id": d.id, "destination": d.destination, "date": d.date.isoformat(),
                 "items": len(d.items), "status": d.status}
                for d in recent
            ]
            data["drugs_distributed"] = board.stats()["total_units"]
            data["recipients"] = len(board.destinations())
        else:
            dispensing = summarize_dispensing(
                dispensing_frame(self.ctx.snapshot("dispensing").records)
            )
            data["patients_served"] = dispensing["patients_served"]
            data["top_medicines"] = dispensing["top_medicines"]
            data["dispensing_history"] = dispensing["per_day"][-5:]
        return data
