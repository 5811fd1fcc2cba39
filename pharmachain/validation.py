"""
Form schemas for every entity dialog, and helpers turning pydantic errors
into field-level validation results.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationError, model_validator

from pharmachain.errors import ValidationFailed

F = TypeVar("F", bound=BaseModel)


class FormModel(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


# ── Inventory ────────────────────────────────────────────────────────

class DrugForm(FormModel):
    name: str = Field(..., min_length=1, description="Drug name")
    category: str = Field(..., min_length=1)
    stock: int = Field(0, ge=0)
    reorder_level: int = Field(10, ge=1)
    expiry_date: date


class OrderForm(FormModel):
    quantity: int = Field(10, ge=1)


# ── Settings ─────────────────────────────────────────────────────────

class UserForm(FormModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    role: Literal["admin", "state_manager", "facility_manager", "pharmacist"] = "facility_manager"
    location: str = Field(..., min_length=1, description="Location id")


class LocationForm(FormModel):
    name: str = Field(..., min_length=2)
    type: Literal["central", "state", "facility"] = "facility"
    parent: Optional[str] = None
    address: str = Field(..., min_length=5)
    contact: str = Field(..., min_length=5)

    @model_validator(mode="after")
    def _parent_only_for_facilities(self):
        if self.type != "facility":
            self.parent = None
        elif not self.parent:
            raise ValueError("A facility must belong to a state")
        return self


# ── Distribution ─────────────────────────────────────────────────────

class DistributionItemForm(FormModel):
    name: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)


class DistributionForm(FormModel):
    destination: str = Field(..., min_length=1, description="Destination location id")
    items: List[DistributionItemForm] = Field(..., min_length=1)


# ── Dispensing / patients ────────────────────────────────────────────

class MedicationForm(FormModel):
    name: str = Field(..., min_length=1)
    quantity: int = Field(1, ge=1)
    days: int = Field(1, ge=1)
    instructions: Optional[str] = None


class PrescriptionForm(FormModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore", populate_by_name=True)

    patient_id: str = Field(..., min_length=1)
    dispensing_date: date = Field(default_factory=date.today, alias="date")
    drugs: List[MedicationForm] = Field(..., min_length=1)


class PatientForm(FormModel):
    name: str = Field(..., min_length=2)
    age: int = Field(..., ge=0, le=130)
    gender: Literal["Male", "Female", "Other"]
    contact: str = ""
    allergies: List[str] = Field(default_factory=list)
    chronic_conditions: List[str] = Field(default_factory=list)


# ── Helpers ──────────────────────────────────────────────────────────

@dataclass
class ValidationResult:
    ok: bool
    errors: Dict[str, str] = field(default_factory=dict)
    value: Optional[BaseModel] = None


def _field_errors(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        name = ".".join(str(p) for p in err["loc"]) or "__all__"
        msg = err["msg"]
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        errors.setdefault(name, msg)
    return errors


def validate(form: Type[F], data: Dict[str, Any]) -> ValidationResult:
    """Validate *data* against *form* without raising."""
    try:
        return ValidationResult(ok=True, value=form.model_validate(data or {}))
    except ValidationError as e:
        return ValidationResult(ok=False, errors=_field_errors(e))


def parse(form: Type[F], data: Dict[str, Any]) -> F:
    """Validate *data* against *form*, raising ValidationFailed on error."""
    result = validate(form, data)
    if not result.ok:
        raise ValidationFailed(result.errors)
    return result.value
