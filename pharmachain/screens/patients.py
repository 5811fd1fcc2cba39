"""
Patient registry screen.
"""

from typing import Dict, List, Optional

from pharmachain.errors import NotFound
from pharmachain.models import Patient
from pharmachain.screens.base import Screen, matches, next_id
from pharmachain.seed import build_patients
from pharmachain.validation import PatientForm, parse


class PatientsScreen(Screen):
    name = "patients"

    def __init__(self, ctx):
        super().__init__(ctx)
        self.patients: List[Patient] = build_patients(self.today)

    def list(self, search: Optional[str] = None) -> List[Patient]:
        return [p for p in self.patients if matches(search, p.name, p.id)]

    def get(self, patient_id: str) -> Patient:
        for p in self.patients:
            if p.id == patient_id:
                return p
        raise NotFound(f"Patient {patient_id} not found")

    def register(self, data: Dict) -> Patient:
        """Quick registration from the patients screen."""
        form = parse(PatientForm, data)
        patient = Patient(
            id=next_id((p.id for p in self.patients), prefix="P", width=3),
            **form.model_dump(),
        )
        self.patients.append(patient)
        return patient
