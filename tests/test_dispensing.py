"""
Tests for the dispensing workflow and the patient registry.
"""

from datetime import date

import pytest

from pharmachain.errors import NotFound, PermissionDenied, ValidationFailed

PARACETAMOL = {"name": "Paracetamol 500mg", "quantity": 10, "days": 5}


# ── Tests: dispensing screen ─────────────────────────────────────────

def test_records_newest_first(pharm_ctx):
    records = pharm_ctx.screen("dispensing").list()
    assert len(records) == 5
    assert records[0].patient_id == "P001"
    assert records[0].date >= records[-1].date


def test_most_dispensed(pharm_ctx):
    top = pharm_ctx.screen("dispensing").most_dispensed()
    assert top[0] == {"name": "Metoprolol 50mg", "count": 60}
    assert len(top) == 5


def test_find_patient_by_id_or_name(pharm_ctx):
    screen = pharm_ctx.screen("dispensing")
    assert screen.find_patient("p003").name == "Robert Johnson"
    assert screen.find_patient("smith").id == "P002"
    with pytest.raises(NotFound, match="No matching patient"):
        screen.find_patient("nobody")


def test_dispense_updates_patient(pharm_ctx):
    screen = pharm_ctx.screen("dispensing")
    record = screen.dispense({"patient_id": "P002", "drugs": [PARACETAMOL]})
    patient = screen.patient("P002")
    assert record.id == "rx-1"
    assert screen.list()[0] is record
    assert patient.visit_count == 6
    assert patient.last_visit == date.today()
    assert patient.dispensing_history[-1] is record


def test_dispense_shows_on_patients_screen(pharm_ctx):
    pharm_ctx.screen("dispensing").dispense({"patient_id": "P002", "drugs": [PARACETAMOL]})
    patient = pharm_ctx.screen("patients").get("P002")
    assert patient.visit_count == 6
    assert patient.dispensing_history[-1].drugs[0].name == "Paracetamol 500mg"


def test_registered_patient_can_be_dispensed_to(pharm_ctx):
    pharm_ctx.screen("patients").register({"name": "Ada Obi", "age": 29, "gender": "Female"})
    record = pharm_ctx.screen("dispensing").dispense({"patient_id": "P006", "drugs": [PARACETAMOL]})
    assert record.patient_name == "Ada Obi"


def test_dispense_unknown_medication(pharm_ctx):
    screen = pharm_ctx.screen("dispensing")
    with pytest.raises(ValidationFailed) as e:
        screen.dispense({"patient_id": "P002", "drugs": [{"name": "Snake Oil", "quantity": 1}]})
    assert "Snake Oil" in e.value.errors["drugs"]
    assert len(screen.records) == 5


def test_dispense_unknown_patient(pharm_ctx):
    with pytest.raises(NotFound):
        pharm_ctx.screen("dispensing").dispense({"patient_id": "P999", "drugs": [PARACETAMOL]})


def test_draft_workflow(facility_ctx):
    screen = facility_ctx.screen("dispensing")
    screen.new_prescription()
    with pytest.raises(ValidationFailed) as e:
        screen.save_prescription()
    assert set(e.value.errors) == {"patient_id", "drugs"}

    screen.select_patient("Jane")
    screen.add_medication(PARACETAMOL)
    screen.add_medication({"name": "Ibuprofen 400mg", "quantity": 6, "days": 3})
    assert screen.remove_medication(1).name == "Ibuprofen 400mg"

    record = screen.save_prescription()
    assert record.patient_name == "Jane Smith"
    assert [d.name for d in record.drugs] == ["Paracetamol 500mg"]
    assert screen.draft is None


def test_add_medication_outside_catalogue(pharm_ctx):
    screen = pharm_ctx.screen("dispensing")
    screen.new_prescription()
    with pytest.raises(ValidationFailed):
        screen.add_medication({"name": "Snake Oil", "quantity": 1, "days": 1})
    assert screen.draft.items == []


def test_no_draft(pharm_ctx):
    with pytest.raises(NotFound):
        pharm_ctx.screen("dispensing").add_medication(PARACETAMOL)


def test_dispensing_is_facility_only(admin_ctx):
    with pytest.raises(PermissionDenied):
        admin_ctx.screen("dispensing")


# ── Tests: patients screen ───────────────────────────────────────────

def test_patient_search(pharm_ctx):
    screen = pharm_ctx.screen("patients")
    assert [p.id for p in screen.list("john")] == ["P001", "P003"]


def test_register_patient(pharm_ctx):
    screen = pharm_ctx.screen("patients")
    patient = screen.register({"name": "Ada Obi", "age": 29, "gender": "Female",
                               "allergies": ["Latex"]})
    assert patient.id == "P006"
    assert patient.visit_count == 0
    assert screen.get("P006") is patient


def test_register_patient_invalid(pharm_ctx):
    screen = pharm_ctx.screen("patients")
    with pytest.raises(ValidationFailed) as e:
        screen.register({"name": "A", "age": 200, "gender": "Unknown"})
    assert set(e.value.errors) == {"name", "age", "gender"}
    assert len(screen.patients) == 5
