# tests/test_induction.py
"""Unit tests for induction expiry and the induction log."""

from datetime import datetime, timedelta, timezone
from gatehouse.services.induction import (
    InductionStatus,
    build_induction_rows,
    dedupe_inductees,
    format_date,
    get_expiry_info,
)

INDUCTED = datetime(2025, 3, 5, 8, 0, tzinfo=timezone.utc)
EXPIRY = INDUCTED + timedelta(days=365)


def record(**extra):
    return {"name": "Sam Fixer", "company": "Acme", "induction_timestamp": INDUCTED,
            "induction_valid": True, **extra}


class TestExpiryInfo:
    def test_no_timestamp_is_unknown(self):
        info = get_expiry_info({"name": "Sam"}, now=INDUCTED)
        assert info.status == InductionStatus.UNKNOWN
        assert info.expiry_date is None
        assert info.days_remaining is None
        assert info.label == "Unknown"

    def test_fresh_induction_is_valid(self):
        info = get_expiry_info(record(), now=INDUCTED + timedelta(days=1))
        assert info.status == InductionStatus.VALID
        assert info.days_remaining == 364
        assert info.expiry_date == "Mar 5, 2026"
        assert info.label == "364 days"

    def test_force_expired_overrides_dates(self):
        info = get_expiry_info(record(induction_valid=False), now=INDUCTED + timedelta(days=1))
        assert info.status == InductionStatus.EXPIRED
        assert info.label == "Expired"

    def test_29_days_left_is_expiring_soon(self):
        info = get_expiry_info(record(), now=EXPIRY - timedelta(days=29, hours=1))
        assert info.days_remaining == 29
        assert info.status == InductionStatus.EXPIRING_SOON

    def test_exactly_30_days_left_is_still_valid(self):
        info = get_expiry_info(record(), now=EXPIRY - timedelta(days=30))
        assert info.days_remaining == 30
        assert info.status == InductionStatus.VALID

    def test_last_day_is_expiring_soon(self):
        info = get_expiry_info(record(), now=EXPIRY - timedelta(hours=5))
        assert info.days_remaining == 0
        assert info.status == InductionStatus.EXPIRING_SOON

    def test_past_expiry_is_expired(self):
        info = get_expiry_info(record(), now=EXPIRY + timedelta(hours=1))
        assert info.status == InductionStatus.EXPIRED

    def test_days_go_negative_after_expiry(self):
        info = get_expiry_info(record(), now=EXPIRY + timedelta(days=3, hours=2))
        assert info.days_remaining == -3

    def test_naive_timestamp_treated_as_utc(self):
        naive = record(induction_timestamp=INDUCTED.replace(tzinfo=None))
        assert get_expiry_info(naive, now=INDUCTED + timedelta(days=1)).days_remaining == 364

    def test_custom_validity(self):
        info = get_expiry_info(record(), now=INDUCTED, validity_days=10, expiring_soon_days=30)
        assert info.status == InductionStatus.EXPIRING_SOON


def test_format_date():
    assert format_date(datetime(2026, 12, 25)) == "Dec 25, 2026"


class TestDedupe:
    def test_first_seen_wins_case_insensitive(self):
        records = [
            {"id": "new", "name": "Sam Fixer", "company": "Acme"},
            {"id": "old", "name": "  sam fixer ", "company": "ACME"},
            {"id": "other", "name": "Sam Fixer", "company": "Other Ltd"},
        ]
        assert [r["id"] for r in dedupe_inductees(records)] == ["new", "other"]

    def test_missing_fields_group_together(self):
        records = [{"id": "a"}, {"id": "b", "name": None, "company": ""}]
        assert [r["id"] for r in dedupe_inductees(records)] == ["a"]


def test_build_induction_rows():
    rows = build_induction_rows([record(id="v1"), {"id": "v2", "name": "No Induction"}],
                                now=INDUCTED + timedelta(days=1))

    assert rows[0]["id"] == "v1"
    assert rows[0]["induction_date"] == "Mar 5, 2025"
    assert rows[0]["status"] == "valid"
    assert rows[0]["days_remaining"] == 364
    assert rows[1]["status"] == "unknown"
    assert rows[1]["induction_date"] is None
