"""
Status derivation – drug stock status, badge styles and the synthetic
distribution tracking narrative.
"""

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional

# ── Badge styles ─────────────────────────────────────────────────────

NEUTRAL_BADGE = "bg-slate-100 text-slate-800"

DRUG_BADGES = {
    "low": "bg-yellow-100 text-yellow-800",
    "expired": "bg-red-100 text-red-800",
    "adequate": "bg-green-100 text-green-800",
}

DISTRIBUTION_BADGES = {
    "delivered": "bg-green-100 text-green-800",
    "in-transit": "bg-blue-100 text-blue-800",
    "pending": "bg-yellow-100 text-yellow-800",
}

DISTRIBUTION_LABELS = {
    "delivered": "Delivered",
    "in-transit": "In Transit",
    "pending": "Pending",
}

TRACKING_PROGRESS = {"pending": 10, "in-transit": 60, "delivered": 100}
ARRIVAL_OFFSET_DAYS = 3


# ── Drug status ──────────────────────────────────────────────────────

def drug_status(stock: int, reorder_level: int, expiry_date: date, today: date) -> str:
    """
    Classify a drug record. Expiry dominates stock level:
    expired if expiry_date < today, else low if stock < reorder_level,
    else adequate.
    """
    if expiry_date < today:
        return "expired"
    if stock < reorder_level:
        return "low"
    return "adequate"


def drug_badge(status: str) -> str:
    return DRUG_BADGES.get(status, NEUTRAL_BADGE)


def distribution_badge(status: str) -> str:
    return DISTRIBUTION_BADGES.get(status, NEUTRAL_BADGE)


def distribution_label(status: str) -> str:
    return DISTRIBUTION_LABELS.get(status, status.replace("-", " ").title())


# ── Tracking narrative ───────────────────────────────────────────────

def tracking_timeline(distribution: Any, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Build the display-only tracking view of a distribution.

    Events are synthesized from ``distribution.date`` by fixed offsets;
    nothing here changes ``distribution.status``.
    """
    now = now or datetime.now()
    shipped = datetime.combine(distribution.date, time())
    status = distribution.status

    events: List[Dict[str, str]] = []
    if status == "delivered":
        events.append({"at": shipped.isoformat(), "event": "Delivered",
                       "detail": f"Delivered to {distribution.destination}"})
        events.append({"at": (shipped - timedelta(days=1)).isoformat(),
                       "event": "Out for delivery", "detail": "Left the dispatch point"})
    elif status == "in-transit":
        events.append({"at": now.isoformat(), "event": "In transit",
                       "detail": f"Currently in transit to {distribution.destination}"})
    events.append({"at": (shipped - timedelta(days=2)).isoformat(),
                   "event": "Prepared", "detail": "Order processed and packed"})

    if status == "delivered":
        eta = "Delivered"
    else:
        eta = (distribution.date + timedelta(days=ARRIVAL_OFFSET_DAYS)).isoformat()

    if status == "delivered":
        summary = f"Delivered on {distribution.date.isoformat()}"
    elif status == "in-transit":
        summary = f"Shipment is currently in transit to {distribution.destination}"
    else:
        summary = "This distribution is being prepared for shipping"

    return {
        "id": distribution.id,
        "status": status,
        "label": distribution_label(status),
        "badge": distribution_badge(status),
        "progress": TRACKING_PROGRESS.get(status, 0),
        "estimated_arrival": eta,
        "summary": summary,
        "events": events,
    }
