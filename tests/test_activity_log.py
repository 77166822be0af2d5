# tests/test_activity_log.py
"""Unit tests for activity log filtering and the dashboard summary."""

from datetime import datetime, timezone
from gatehouse.services.activity_log import (
    LogFilters,
    contact_person,
    entry_status,
    filter_log_entries,
    start_of_day,
    summarize_dashboard,
)

ENTRIES = [
    {"id": "1", "type": "visitor", "name": "Jo Bloggs", "company": "Acme", "visiting": "Ann Lee",
     "checked_out": False},
    {"id": "2", "type": "contractor", "name": "Sam Fixer", "company": "Sparks Ltd",
     "person_responsible": "Bob Smith", "checked_out": False},
    {"id": "3", "type": "visitor", "name": "Kim Park", "company": "acme holdings", "visiting": "Bob Smith",
     "checked_out": True},
]


def ids(entries):
    return [entry["id"] for entry in entries]


class TestFilters:
    def test_no_filters_returns_everything(self):
        assert ids(filter_log_entries(ENTRIES, LogFilters())) == ["1", "2", "3"]

    def test_all_means_no_constraint(self):
        assert ids(filter_log_entries(ENTRIES, LogFilters(type="all", status="All"))) == ["1", "2", "3"]

    def test_type(self):
        assert ids(filter_log_entries(ENTRIES, LogFilters(type="contractor"))) == ["2"]

    def test_name_and_company_are_case_insensitive_substrings(self):
        assert ids(filter_log_entries(ENTRIES, LogFilters(company="ACME"))) == ["1", "3"]
        assert ids(filter_log_entries(ENTRIES, LogFilters(name="park"))) == ["3"]

    def test_contact_uses_person_responsible_for_contractors(self):
        assert ids(filter_log_entries(ENTRIES, LogFilters(contact="bob"))) == ["2", "3"]

    def test_status(self):
        assert ids(filter_log_entries(ENTRIES, LogFilters(status="out"))) == ["3"]
        assert ids(filter_log_entries(ENTRIES, LogFilters(status="in"))) == ["1", "2"]

    def test_filters_combine(self):
        assert ids(filter_log_entries(ENTRIES, LogFilters(type="visitor", status="in"))) == ["1"]


def test_contact_person_and_status():
    assert contact_person(ENTRIES[0]) == "Ann Lee"
    assert contact_person(ENTRIES[1]) == "Bob Smith"
    assert entry_status(ENTRIES[2]) == "out"


def test_start_of_day():
    now = datetime(2026, 3, 5, 17, 45, 12, 999, tzinfo=timezone.utc)
    assert start_of_day(now) == datetime(2026, 3, 5, tzinfo=timezone.utc)


class TestDashboard:
    def test_summary(self):
        today = [
            {"id": str(i), "type": "visitor" if i % 2 else "contractor", "name": f"P{i}"}
            for i in range(7, 0, -1)
        ]
        on_site = [{"id": "7", "type": "visitor"}, {"id": "6", "type": "contractor"},
                   {"id": "4", "type": "contractor"}]

        summary = summarize_dashboard(today, on_site)

        assert summary.total_check_ins_today == 7
        assert summary.visitors_today == 4
        assert summary.contractors_on_site == 2
        assert summary.last_visitor["id"] == "7"
        assert ids(summary.recent_visitors) == ["7", "6", "5", "4", "3"]

    def test_empty_day(self):
        summary = summarize_dashboard([], [])
        assert summary.last_visitor is None
        assert summary.recent_visitors == []
        assert summary.visitors_today == 0
