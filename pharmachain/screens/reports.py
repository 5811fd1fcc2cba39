"""
Reports screen – pandas summaries over the data visible to the current
user, and the CSV export contract.
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from pharmachain.config import DEFAULT_REPORT_PERIOD, EXPIRY_ALERT_DAYS, FACILITY_ROLES, REPORT_PERIODS
from pharmachain.errors import NotFound, PermissionDenied, ValidationFailed
from pharmachain.models import DispensingRecord, Distribution, Drug, Patient
from pharmachain.screens.base import Screen

INVENTORY_COLUMNS = ["id", "name", "category", "stock", "reorder_level", "expiry_date", "location", "status"]
DISTRIBUTION_COLUMNS = ["id", "date", "origin", "destination", "destination_type", "status", "items", "total_units"]
DISPENSING_COLUMNS = ["record_id", "date", "patient_id", "patient_name", "drug", "quantity", "days"]
PATIENT_COLUMNS = ["id", "name", "age", "gender", "last_visit", "visit_count"]

DATASETS = ("inventory", "distribution", "dispensing", "patients")
FACILITY_DATASETS = {"dispensing", "patients"}


# ── Frames ───────────────────────────────────────────────────────────

def inventory_frame(drugs: List[Drug], today: date) -> pd.DataFrame:
    rows = [{
        "id": d.id, "name": d.name, "category": d.category, "stock": d.stock,
        "reorder_level": d.reorder_level, "expiry_date": d.expiry_date,
        "location": d.location, "status": d.status_on(today),
    } for d in drugs]
    return pd.DataFrame(rows, columns=INVENTORY_COLUMNS)


def distribution_frame(distributions: List[Distribution]) -> pd.DataFrame:
    rows = [{
        "id": d.id, "date": d.date, "origin": d.origin, "destination": d.destination,
        "destination_type": d.destination_type, "status": d.status,
        "items": len(d.items), "total_units": d.total_units,
    } for d in distributions]
    return pd.DataFrame(rows, columns=DISTRIBUTION_COLUMNS)


def dispensing_frame(records: List[DispensingRecord]) -> pd.DataFrame:
    rows = [{
        "record_id": r.id, "date": r.date, "patient_id": r.patient_id,
        "patient_name": r.patient_name, "drug": drug.name,
        "quantity": drug.quantity, "days": drug.days,
    } for r in records for drug in r.drugs]
    return pd.DataFrame(rows, columns=DISPENSING_COLUMNS)


def patient_frame(patients: List[Patient]) -> pd.DataFrame:
    rows = [{
        "id": p.id, "name": p.name, "age": p.age, "gender": p.gender,
        "last_visit": p.last_visit, "visit_count": p.visit_count,
    } for p in patients]
    return pd.DataFrame(rows, columns=PATIENT_COLUMNS)


def since(df: pd.DataFrame, column: str, start: date) -> pd.DataFrame:
    if df.empty:
        return df
    return df[df[column] >= start]


# ── Summaries ────────────────────────────────────────────────────────

def summarize_inventory(df: pd.DataFrame, today: date) -> Dict[str, Any]:
    if df.empty:
        return {"total_items": 0, "total_stock": 0, "low_stock": 0, "expired": 0,
                "expiring_soon": [], "by_category": []}

    horizon = today + timedelta(days=EXPIRY_ALERT_DAYS)
    expiring = df[(df["expiry_date"] >= today) & (df["expiry_date"] <= horizon)]
    by_category = (
        df.groupby("category")
        .agg(items=("id", "count"), stock=("stock", "sum"))
        .reset_index()
        .sort_values("stock", ascending=False)
    )
    return {
        "total_items": int(len(df)),
        "total_stock": int(df["stock"].sum()),
        "low_stock": int((df["status"] == "low").sum()),
        "expired": int((df["status"] == "expired").sum()),
        "expiring_soon": [
            {"id": r.id, "name": r.name, "expiry_date": r.expiry_date.isoformat(),
             "days_left": (r.expiry_date - today).days}
            for r in expiring.sort_values("expiry_date").itertuples()
        ],
        "by_category": [
            {"category": r.category, "items": int(r.items), "stock": int(r.stock)}
            for r in by_category.itertuples()
        ],
    }


def summarize_distributions(df: pd.DataFrame) -> Dict[str, Any]:
    if df.empty:
        return {"distributions": 0, "total_units": 0, "in_transit_units": 0,
                "completed": 0, "recipients": 0}
    return {
        "distributions": int(len(df)),
        "total_units": int(df["total_units"].sum()),
        "in_transit_units": int(df.loc[df["status"] == "in-transit", "total_units"].sum()),
        "completed": int((df["status"] == "delivered").sum()),
        "recipients": int(df["destination"].nunique()),
    }


def summarize_dispensing(df: pd.DataFrame, limit: int = 5) -> Dict[str, Any]:
    if df.empty:
        return {"prescriptions": 0, "units": 0, "patients_served": 0,
                "top_medicines": [], "per_day": []}
    top = df.groupby("drug")["quantity"].sum().sort_values(ascending=False).head(limit)
    per_day = df.groupby("date")["record_id"].nunique().sort_index()
    return {
        "prescriptions": int(df["record_id"].nunique()),
        "units": int(df["quantity"].sum()),
        "patients_served": int(df["patient_id"].nunique()),
        "top_medicines": [{"name": name, "dispensed": int(n)} for name, n in top.items()],
        "per_day": [{"date": d.isoformat(), "count": int(n)} for d, n in per_day.items()],
    }


def summarize_patients(df: pd.DataFrame) -> Dict[str, Any]:
    if df.empty:
        return {"patients": 0, "visits": 0, "average_age": None, "by_gender": {}}
    return {
        "patients": int(len(df)),
        "visits": int(df["visit_count"].sum()),
        "average_age": round(float(df["age"].mean()), 1),
        "by_gender": {k: int(v) for k, v in df["gender"].value_counts().items()},
    }


# ── CSV export ───────────────────────────────────────────────────────

def report_filename(dataset: str, on: date) -> str:
    return f"{dataset}-report-{on.isoformat()}.csv"


def to_csv(df: pd.DataFrame, columns: Optional[List[str]] = None) -> str:
    """Header line plus one comma-joined line per row, joined by newlines."""
    frame = df[columns] if columns else df
    return frame.to_csv(index=False, lineterminator="\n").rstrip("\n")


class ReportsScreen(Screen):
    name = "reports"

    def datasets(self) -> List[str]:
        if self.user and self.user.role in FACILITY_ROLES:
            return list(DATASETS)
        return [d for d in DATASETS if d not in FACILITY_DATASETS]

    def _period_start(self, period: Optional[str]) -> date:
        period = period or DEFAULT_REPORT_PERIOD
        if period not in REPORT_PERIODS:
            raise ValidationFailed({"period": f"Unknown period '{period}'"})
        return self.today - timedelta(days=REPORT_PERIODS[period])

    def frame(self, dataset: str, period: Optional[str] = None) -> pd.DataFrame:
        if dataset not in DATASETS:
            raise NotFound(f"Unknown report '{dataset}'")
        if dataset not in self.datasets():
            raise PermissionDenied(f"The {dataset} report is only available to facility staff.")
        start = self._period_start(period)

        if dataset == "inventory":
            return inventory_frame(self.ctx.snapshot("inventory").visible(), self.today)
        if dataset == "distribution":
            df = distribution_frame(self.ctx.snapshot("distribution").visible())
            return since(df, "date", start)
        if dataset == "dispensing":
            df = dispensing_frame(self.ctx.snapshot("dispensing").records)
            return since(df, "date", start)
        return patient_frame(self.ctx.snapshot("patients").patients)

    def summary(self, dataset: str, period: Optional[str] = None) -> Dict[str, Any]:
        df = self.frame(dataset, period)
        if dataset == "inventory":
            body = summarize_inventory(df, self.today)
        elif dataset == "distribution":
            body = summarize_distributions(df)
        elif dataset == "dispensing":
            body = summarize_dispensing(df)
        else:
            body = summarize_patients(df)
        return {"dataset": dataset, "period": period or DEFAULT_REPORT_PERIOD, **body}

    def export(self, dataset: str, period: Optional[str] = None) -> Tuple[str, str]:
        """Simulated report generation; returns (filename, csv_text)."""
        df = self.frame(dataset, period)
        return self.simulate(lambda: (report_filename(dataset, self.today), to_csv(df)),
                             name=f"{dataset}-report")
