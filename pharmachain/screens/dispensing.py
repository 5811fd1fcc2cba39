"""
Dispensing screen – recent dispensing records, patient lookup and the
prescription workflow.
"""

from collections import Counter
from dataclasses import asdict
from datetime import date
from typing import Dict, List, Optional

from pharmachain.errors import NotFound, ValidationFailed
from pharmachain.models import DispensedDrug, DispensingRecord, Patient
from pharmachain.screens.base import Screen, matches, next_id
from pharmachain.seed import AVAILABLE_MEDICATIONS
from pharmachain.validation import MedicationForm, PrescriptionForm, parse


class PrescriptionDraft:
    """Prescription being assembled before it is dispensed."""

    def __init__(self, dispensing_date: date):
        self.patient_id: Optional[str] = None
        self.date = dispensing_date
        self.items: List[DispensedDrug] = []

    def to_dict(self) -> Dict:
        return {
            "patient_id": self.patient_id,
            "date": self.date.isoformat(),
            "items": [asdict(i) for i in self.items],
        }


class DispensingScreen(Screen):
    name = "dispensing"

    def __init__(self, ctx):
        super().__init__(ctx)
        self.patients: List[Patient] = ctx.snapshot("patients").patients
        self.records: List[DispensingRecord] = sorted(
            (r for p in self.patients for r in p.dispensing_history),
            key=lambda r: r.date, reverse=True,
        )
        self.draft: Optional[PrescriptionDraft] = None

    # ── Queries ──────────────────────────────────────────────────────

    def list(self, search: Optional[str] = None) -> List[DispensingRecord]:
        return [r for r in self.records if matches(search, r.patient_name, r.patient_id)]

    def patient(self, patient_id: str) -> Patient:
        for p in self.patients:
            if p.id == patient_id:
                return p
        raise NotFound(f"Patient {patient_id} not found")

    def find_patient(self, query: str) -> Patient:
        """Match by exact id first, then by name substring."""
        query = (query or "").strip()
        if query:
            for p in self.patients:
                if p.id.lower() == query.lower():
                    return p
            for p in self.patients:
                if query.lower() in p.name.lower():
                    return p
        raise NotFound("No matching patient record found.")

    def medications(self) -> List[str]:
        return list(AVAILABLE_MEDICATIONS)

    def most_dispensed(self, limit: int = 5) -> List[Dict]:
        counts: Counter = Counter()
        for record in self.records:
            for drug in record.drugs:
                counts[drug.name] += drug.quantity
        return [{"name": name, "count": n} for name, n in counts.most_common(limit)]

    # ── Prescription workflow ────────────────────────────────────────

    def new_prescription(self, dispensing_date: Optional[date] = None) -> PrescriptionDraft:
        self.draft = PrescriptionDraft(dispensing_date or self.today)
        return self.draft

    def require_draft(self) -> PrescriptionDraft:
        if self.draft is None:
            raise NotFound("No prescription in progress")
        return self.draft

    def select_patient(self, query: str) -> Patient:
        patient = self.find_patient(query)
        self.require_draft().patient_id = patient.id
        return patient

    def add_medication(self, data: Dict) -> DispensedDrug:
        draft = self.require_draft()
        form = parse(MedicationForm, data)
        if form.name not in AVAILABLE_MEDICATIONS:
            raise ValidationFailed({"name": f"Unknown medication '{form.name}'"})
        item = DispensedDrug(**form.model_dump())
        draft.items.append(item)
        return item

    def remove_medication(self, index: int) -> DispensedDrug:
        draft = self.require_draft()
        if not 0 <= index < len(draft.items):
            raise NotFound(f"No medication at position {index + 1}")
        return draft.items.pop(index)

    def cancel_prescription(self) -> None:
        self.draft = None

    def save_prescription(self) -> DispensingRecord:
        draft = self.require_draft()
        errors = {}
        if not draft.patient_id:
            errors["patient_id"] = "Please select a patient before saving the prescription."
        if not draft.items:
            errors["drugs"] = "Please add at least one medication to the prescription."
        if errors:
            raise ValidationFailed(errors)
        record = self._dispense(self.patient(draft.patient_id), draft.date, list(draft.items))
        self.draft = None
        return record

    def dispense(self, data: Dict) -> DispensingRecord:
        """One-shot prescription: patient, date and medications in one payload."""
        form = parse(PrescriptionForm, data)
        unknown = [m.name for m in form.drugs if m.name not in AVAILABLE_MEDICATIONS]
        if unknown:
            raise ValidationFailed({"drugs": f"Unknown medication(s): {', '.join(unknown)}"})
        patient = self.patient(form.patient_id)
        drugs = [DispensedDrug(**m.model_dump()) for m in form.drugs]
        return self._dispense(patient, form.dispensing_date, drugs)

    def _dispense(self, patient: Patient, on: date, drugs: List[DispensedDrug]) -> DispensingRecord:
        record = DispensingRecord(
            id=next_id((r.id for r in self.records), prefix="rx-"),
            patient_id=patient.id,
            patient_name=patient.name,
            date=on,
            drugs=drugs,
        )
        self.records.insert(0, record)
        patient.dispensing_history.append(record)
        patient.visit_count += 1
        if patient.last_visit is None or on > patient.last_visit:
            patient.last_visit = on
        return record
