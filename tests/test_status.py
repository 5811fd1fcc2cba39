"""
Unit tests for drug status derivation, badges and the tracking timeline.
"""

from datetime import date, datetime, timedelta

from pharmachain.models import Distribution, DistributionItem, Drug
from pharmachain.status import (
    NEUTRAL_BADGE,
    distribution_badge,
    distribution_label,
    drug_badge,
    drug_status,
    tracking_timeline,
)

TODAY = date(2024, 6, 1)


def _dist(status, on=TODAY):
    return Distribution("DIST-0009", "central", "Abia State", "state", on, status,
                        [DistributionItem("Paracetamol 500mg", 100)])


# ── Tests: drug_status ───────────────────────────────────────────────

def test_expired_dominates_low_stock():
    assert drug_status(0, 10, TODAY - timedelta(days=1), TODAY) == "expired"


def test_expiring_today_is_not_expired():
    assert drug_status(50, 10, TODAY, TODAY) == "adequate"


def test_low_when_below_reorder_level():
    assert drug_status(9, 10, TODAY + timedelta(days=30), TODAY) == "low"


def test_stock_equal_to_reorder_level_is_adequate():
    assert drug_status(10, 10, TODAY + timedelta(days=30), TODAY) == "adequate"


def test_drug_status_recomputed_after_mutation():
    drug = Drug("1", "Aspirin", "NSAID", 5, 10, TODAY + timedelta(days=100), "central")
    assert drug.status_on(TODAY) == "low"
    drug.stock += 10
    assert drug.status_on(TODAY) == "adequate"
    drug.expiry_date = TODAY - timedelta(days=1)
    assert drug.status_on(TODAY) == "expired"


# ── Tests: badges / labels ───────────────────────────────────────────

def test_badges_fall_back_to_neutral():
    assert drug_badge("expired") == "bg-red-100 text-red-800"
    assert drug_badge("unknown") == NEUTRAL_BADGE
    assert distribution_badge("in-transit") == "bg-blue-100 text-blue-800"
    assert distribution_badge("lost") == NEUTRAL_BADGE


def test_distribution_label():
    assert distribution_label("in-transit") == "In Transit"
    assert distribution_label("on-hold") == "On Hold"


# ── Tests: tracking_timeline ─────────────────────────────────────────

def test_tracking_delivered():
    t = tracking_timeline(_dist("delivered"))
    assert t["progress"] == 100
    assert t["estimated_arrival"] == "Delivered"
    assert [e["event"] for e in t["events"]] == ["Delivered", "Out for delivery", "Prepared"]
    assert t["events"][1]["at"].startswith("2024-05-31")
    assert t["events"][2]["at"].startswith("2024-05-30")


def test_tracking_in_transit_uses_now():
    now = datetime(2024, 6, 2, 9, 30)
    t = tracking_timeline(_dist("in-transit"), now=now)
    assert t["progress"] == 60
    assert t["estimated_arrival"] == "2024-06-04"
    assert t["events"][0] == {
        "at": now.isoformat(),
        "event": "In transit",
        "detail": "Currently in transit to Abia State",
    }
    assert t["label"] == "In Transit"


def test_tracking_pending():
    dist = _dist("pending")
    t = tracking_timeline(dist)
    assert t["progress"] == 10
    assert [e["event"] for e in t["events"]] == ["Prepared"]
    assert t["summary"] == "This distribution is being prepared for shipping"
    assert dist.status == "pending"
