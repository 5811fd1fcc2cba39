"""
Inventory screen – role-scoped drug list, add/edit/delete, order-more and
spreadsheet import.
"""

from dataclasses import replace
from typing import Dict, List, Optional

from pharmachain.config import CENTRAL_LOCATION_ID
from pharmachain.errors import NotFound
from pharmachain.models import Drug
from pharmachain.rbac import (
    can_add_drug,
    can_delete_drug,
    can_edit_drug,
    can_import_inventory,
    can_order_more,
    visible_records,
)
from pharmachain.screens.base import Screen, matches, next_id
from pharmachain.seed import build_drugs, build_import_batch
from pharmachain.validation import DrugForm, OrderForm, parse


class InventoryScreen(Screen):
    name = "inventory"

    def __init__(self, ctx):
        super().__init__(ctx)
        self.drugs: List[Drug] = build_drugs(self.today)

    # ── Queries ──────────────────────────────────────────────────────

    def visible(self) -> List[Drug]:
        return visible_records(self.user, self.drugs)

    def list(self, search: Optional[str] = None) -> List[Drug]:
        return [d for d in self.visible() if matches(search, d.name, d.category)]

    def empty_state(self) -> Optional[str]:
        """Placeholder text when a facility user has nothing to look at."""
        if self.visible() or (self.user and self.user.role in ("admin", "state_manager")):
            return None
        return ("You don't have access to any inventory records. Please contact your "
                "administrator or state manager to request access.")

    def get(self, drug_id: str) -> Drug:
        for drug in self.visible():
            if drug.id == drug_id:
                return drug
        raise NotFound(f"Drug {drug_id} not found")

    # ── Mutations ────────────────────────────────────────────────────

    def _new_location(self) -> str:
        if self.user.role == "admin":
            return CENTRAL_LOCATION_ID
        return self.user.location_id

    def add(self, data: Dict) -> Drug:
        self.require(can_add_drug(self.user))
        form = parse(DrugForm, data)
        drug = Drug(
            id=next_id(d.id for d in self.drugs),
            location=self._new_location(),
            **form.model_dump(),
        )
        self.drugs.append(drug)
        return drug

    def edit(self, drug_id: str, data: Dict) -> Drug:
        drug = self.get(drug_id)
        self.require(can_edit_drug(self.user, drug.location))
        form = parse(DrugForm, data)
        for key, value in form.model_dump().items():
            setattr(drug, key, value)
        return drug

    def delete(self, drug_id: str) -> Drug:
        drug = self.get(drug_id)
        self.require(can_delete_drug(self.user, drug.location))
        self.drugs.remove(drug)
        return drug

    def order_more(self, drug_id: str, data: Dict) -> Drug:
        drug = self.get(drug_id)
        self.require(can_order_more(self.user, drug.location))
        form = parse(OrderForm, data)
        drug.stock += form.quantity
        return drug

    def import_batch(self, rows: Optional[List[Drug]] = None) -> List[Drug]:
        """Add parsed spreadsheet rows (the bundled sample batch by default)."""
        self.require(can_import_inventory(self.user))
        imported = []
        for row in rows if rows is not None else build_import_batch(self.today):
            drug = replace(row, id=next_id(d.id for d in self.drugs))
            self.drugs.append(drug)
            imported.append(drug)
        return imported
