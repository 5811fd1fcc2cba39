"""
Domain dataclasses used across the application.
"""

from dataclasses import asdict, dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional

from pharmachain.status import drug_status


@dataclass
class Location:
    """A node of the central → state → facility hierarchy."""
    id: str
    name: str
    type: str                     # "central", "state" or "facility"
    address: str
    contact: str
    parent: Optional[str] = None  # state id, facilities only

    def ref(self) -> "LocationRef":
        return LocationRef(id=self.id, type=self.type, name=self.name)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class LocationRef:
    """Denormalized location carried on a User record."""
    id: str
    type: str
    name: str


@dataclass
class User:
    id: str
    name: str
    email: str
    role: str
    location: Optional[LocationRef] = None

    @property
    def location_id(self) -> Optional[str]:
        return self.location.id if self.location else None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        loc = data.get("location")
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            email=str(data["email"]),
            role=str(data["role"]),
            location=LocationRef(**loc) if loc else None,
        )


@dataclass
class Drug:
    """Inventory item. ``status`` is always derived, never stored."""
    id: str
    name: str
    category: str
    stock: int
    reorder_level: int
    expiry_date: date
    location: str

    @property
    def status(self) -> str:
        return self.status_on(date.today())

    def status_on(self, today: date) -> str:
        return drug_status(self.stock, self.reorder_level, self.expiry_date, today)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category,
            "stock": self.stock,
            "reorder_level": self.reorder_level,
            "expiry_date": self.expiry_date.isoformat(),
            "location": self.location,
            "status": self.status,
        }


@dataclass
class DistributionItem:
    name: str
    quantity: int


@dataclass
class Distribution:
    id: str
    origin: str                   # sending location id
    destination: str              # receiving location name
    destination_type: str
    date: date
    status: str                   # "pending", "in-transit" or "delivered"
    items: List[DistributionItem] = field(default_factory=list)

    @property
    def location(self) -> str:
        return self.origin

    @property
    def total_units(self) -> int:
        return sum(item.quantity for item in self.items)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "origin": self.origin,
            "destination": self.destination,
            "destination_type": self.destination_type,
            "date": self.date.isoformat(),
            "status": self.status,
            "items": [asdict(i) for i in self.items],
            "total_units": self.total_units,
        }


@dataclass
class DispensedDrug:
    name: str
    quantity: int
    days: int
    instructions: Optional[str] = None


@dataclass
class DispensingRecord:
    id: str
    patient_id: str
    patient_name: str
    date: date
    drugs: List[DispensedDrug] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "patient_id": self.patient_id,
            "patient_name": self.patient_name,
            "date": self.date.isoformat(),
            "drugs": [asdict(d) for d in self.drugs],
        }


@dataclass
class Patient:
    id: str
    name: str
    age: int
    gender: str
    contact: str = ""
    allergies: List[str] = field(default_factory=list)
    chronic_conditions: List[str] = field(default_factory=list)
    last_visit: Optional[date] = None
    visit_count: int = 0
    dispensing_history: List[DispensingRecord] = field(default_factory=list)

    def to_dict(self, with_history: bool = False) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "age": self.age,
            "gender": self.gender,
            "contact": self.contact,
            "allergies": list(self.allergies),
            "chronic_conditions": list(self.chronic_conditions),
            "last_visit": self.last_visit.isoformat() if self.last_visit else None,
            "visit_count": self.visit_count,
        }
        if with_history:
            data["dispensing_history"] = [r.to_dict() for r in self.dispensing_history]
        return data


@dataclass(frozen=True)
class Decision:
    """Outcome of an access-policy check."""
    allowed: bool
    reason: str = "ok"            # "ok", "no-permission" or "no-access"
    message: str = ""

    def __bool__(self) -> bool:
        return self.allowed
