"""
Synthetic dataset – locations, users, credential directory, inventory,
distributions, patients and dispensing records.

Dates are laid out relative to *today* so that derived statuses stay
meaningful whenever the data is loaded.
"""

from datetime import date, timedelta
from typing import Dict, List, Optional, Tuple

from pharmachain.models import (
    DispensedDrug,
    DispensingRecord,
    Distribution,
    DistributionItem,
    Drug,
    Location,
    Patient,
    User,
)


def _today(today: Optional[date]) -> date:
    return today or date.today()


# ── Locations / users ────────────────────────────────────────────────

def build_locations() -> Dict[str, Location]:
    rows = [
        Location("central", "CARITAS HQ", "central", "Abuja, Nigeria", "+234-80-1234-5678"),
        Location("abia", "Abia State", "state", "Umuahia, Abia, Nigeria", "+234-80-2345-6789"),
        Location("enugu", "Enugu State", "state", "Enugu, Enugu, Nigeria", "+234-80-3456-7890"),
        Location("imo", "Imo State", "state", "Owerri, Imo, Nigeria", "+234-80-4567-8901"),
        Location("facility1", "General Hospital Umuahia", "facility",
                 "Main St, Umuahia, Abia, Nigeria", "+234-80-5678-9012", parent="abia"),
        Location("facility2", "Primary Health Center Aba", "facility",
                 "Health Rd, Aba, Abia, Nigeria", "+234-80-6789-0123", parent="abia"),
        Location("facility3", "St. Mary's Hospital", "facility",
                 "Hospital Rd, Umuahia, Abia, Nigeria", "+234-80-7890-1234", parent="abia"),
        Location("facility4", "Enugu Teaching Hospital", "facility",
                 "Park Ave, Enugu, Nigeria", "+234-80-8901-2345", parent="enugu"),
    ]
    return {loc.id: loc for loc in rows}


def build_users(locations: Optional[Dict[str, Location]] = None) -> List[User]:
    locs = locations or build_locations()
    rows = [
        ("1", "Admin User", "admin@caritas.org", "admin", "central"),
        ("2", "Abia Manager", "abia@caritas.org", "state_manager", "abia"),
        ("3", "Facility User", "facility@caritas.org", "facility_manager", "facility1"),
        ("4", "Enugu Manager", "enugu@caritas.org", "state_manager", "enugu"),
        ("5", "Imo Manager", "imo@caritas.org", "state_manager", "imo"),
        ("6", "Pharmacist", "pharm@caritas.org", "pharmacist", "facility1"),
    ]
    return [User(uid, name, email, role, locs[loc].ref()) for uid, name, email, role, loc in rows]


# Placeholder credential directory – plaintext on purpose, not a security boundary.
CREDENTIALS: Dict[str, str] = {
    "admin@caritas.org": "admin123",
    "abia@caritas.org": "state123",
    "facility@caritas.org": "facility123",
    "pharm@caritas.org": "pharm123",
}


def credential_directory() -> List[Tuple[User, str]]:
    """(user, password) pairs accepted by the mock credential check."""
    return [(u, CREDENTIALS[u.email]) for u in build_users() if u.email in CREDENTIALS]


# ── Inventory ────────────────────────────────────────────────────────

def build_drugs(today: Optional[date] = None) -> List[Drug]:
    t = _today(today)
    return [
        Drug("1", "Paracetamol 500mg", "Analgesic", 345, 100, t + timedelta(days=410), "central"),
        Drug("2", "Amoxicillin 250mg", "Antibiotic", 212, 80, t + timedelta(days=360), "central"),
        Drug("3", "Metformin 500mg", "Antidiabetic", 67, 100, t + timedelta(days=395), "abia"),
        Drug("4", "Ibuprofen 400mg", "NSAID", 189, 75, t + timedelta(days=60), "abia"),
        Drug("5", "Loratadine 10mg", "Antihistamine", 42, 50, t - timedelta(days=120), "facility1"),
        Drug("6", "Omeprazole 20mg", "PPI", 23, 30, t + timedelta(days=320), "facility1"),
        Drug("7", "Artemether/Lumefantrine", "Antimalarial", 540, 200, t + timedelta(days=280), "enugu"),
    ]


def build_import_batch(today: Optional[date] = None) -> List[Drug]:
    """Sample rows standing in for a parsed inventory spreadsheet."""
    t = _today(today)
    return [
        Drug("", "Aspirin 100mg", "NSAID", 150, 30, t + timedelta(days=400), "central"),
        Drug("", "Cetirizine 10mg", "Antihistamine", 75, 25, t + timedelta(days=450), "central"),
    ]


# ── Distribution ─────────────────────────────────────────────────────

def _items(*pairs) -> List[DistributionItem]:
    return [DistributionItem(name, qty) for name, qty in pairs]


def build_central_distributions(today: Optional[date] = None) -> List[Distribution]:
    t = _today(today)
    return [
        Distribution("DIST-0001", "central", "Abia State", "state", t - timedelta(days=4), "delivered",
                     _items(("Paracetamol 500mg", 1000), ("Metformin 500mg", 500))),
        Distribution("DIST-0002", "central", "Enugu State", "state", t - timedelta(days=7), "in-transit",
                     _items(("Amoxicillin 250mg", 800), ("Ibuprofen 400mg", 600))),
        Distribution("DIST-0003", "central", "Imo State", "state", t - timedelta(days=10), "delivered",
                     _items(("Omeprazole 20mg", 400), ("Loratadine 10mg", 300))),
    ]


def build_state_distributions(today: Optional[date] = None) -> List[Distribution]:
    t = _today(today)
    return [
        Distribution("DIST-0101", "abia", "General Hospital Umuahia", "facility", t - timedelta(days=3),
                     "delivered", _items(("Paracetamol 500mg", 300), ("Metformin 500mg", 150))),
        Distribution("DIST-0102", "abia", "Primary Health Center Aba", "facility", t - timedelta(days=5),
                     "in-transit", _items(("Amoxicillin 250mg", 200), ("Ibuprofen 400mg", 180))),
        Distribution("DIST-0103", "abia", "St. Mary's Hospital", "facility", t - timedelta(days=8),
                     "delivered", _items(("Omeprazole 20mg", 120), ("Loratadine 10mg", 90))),
        Distribution("DIST-0104", "enugu", "Enugu Teaching Hospital", "facility", t - timedelta(days=6),
                     "delivered", _items(("Artemether/Lumefantrine", 240),)),
    ]


DISTRIBUTABLE_DRUGS = [
    "Paracetamol 500mg",
    "Amoxicillin 250mg",
    "Metformin 500mg",
    "Ibuprofen 400mg",
    "Omeprazole 20mg",
    "Loratadine 10mg",
]


# ── Patients / dispensing ────────────────────────────────────────────

AVAILABLE_MEDICATIONS = [
    "Paracetamol 500mg",
    "Amoxicillin 250mg",
    "Metformin 500mg",
    "Ibuprofen 400mg",
    "Omeprazole 20mg",
    "Hydrochlorothiazide 25mg",
    "Atorvastatin 10mg",
    "Lisinopril 10mg",
    "Metoprolol 50mg",
    "Loratadine 10mg",
    "Salbutamol Inhaler 100mcg",
]


def build_patients(today: Optional[date] = None) -> List[Patient]:
    t = _today(today)
    rows = [
        ("P001", "John Doe", 45, "Male", "080-1234-5678", ["Penicillin"], ["Hypertension", "Diabetes"], 8, 0,
         [("Paracetamol 500mg", 20, 10), ("Metformin 500mg", 30, 30)]),
        ("P002", "Jane Smith", 38, "Female", "080-2345-6789", ["Sulfa drugs"], ["Asthma"], 5, 1,
         [("Amoxicillin 250mg", 21, 7), ("Ibuprofen 400mg", 10, 5)]),
        ("P003", "Robert Johnson", 62, "Male", "080-3456-7890", [], ["GERD", "Allergic Rhinitis"], 12, 1,
         [("Omeprazole 20mg", 30, 30), ("Loratadine 10mg", 10, 10)]),
        ("P004", "Sarah Williams", 55, "Female", "080-4567-8901", ["NSAIDs"], ["Hypertension", "Hyperlipidemia"], 3, 2,
         [("Hydrochlorothiazide 25mg", 30, 30), ("Atorvastatin 10mg", 30, 30)]),
        ("P005", "Michael Brown", 70, "Male", "080-5678-9012", ["Aspirin"],
         ["Hypertension", "Coronary Artery Disease"], 15, 2,
         [("Lisinopril 10mg", 30, 30), ("Metoprolol 50mg", 60, 30)]),
    ]
    patients = []
    for n, (pid, name, age, gender, contact, allergies, chronic, visits, ago, drugs) in enumerate(rows, 1):
        visit = t - timedelta(days=ago)
        record = DispensingRecord(
            id=str(n), patient_id=pid, patient_name=name, date=visit,
            drugs=[DispensedDrug(d, q, days) for d, q, days in drugs],
        )
        patients.append(Patient(pid, name, age, gender, contact, allergies, chronic,
                                last_visit=visit, visit_count=visits, dispensing_history=[record]))
    return patients
