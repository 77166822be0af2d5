# gatehouse/services/activity_log.py
"""Activity log filtering and the dashboard summary, computed over fetched entries."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Mapping, Optional

from gatehouse.services import collection_names as names

RECENT_VISITORS_LIMIT = 5


@dataclass
class LogFilters:
    type: str = ""
    name: str = ""
    company: str = ""
    contact: str = ""
    status: str = ""     # "in" | "out"

    def __post_init__(self):
        # "all" in any dropdown resets that filter
        for attr in ("type", "name", "company", "contact", "status"):
            value = (getattr(self, attr) or "").strip()
            setattr(self, attr, "" if value.lower() == "all" else value)


def contact_person(entry: Mapping) -> str:
    if entry.get("type") == names.CONTRACTOR_TYPE:
        return entry.get("person_responsible") or ""
    return entry.get("visiting") or ""


def entry_status(entry: Mapping) -> str:
    return "out" if entry.get("checked_out") else "in"


def _contains(value: Optional[str], needle: str) -> bool:
    return needle.lower() in (value or "").lower()


def filter_log_entries(entries: Iterable[Mapping], filters: LogFilters) -> list[Mapping]:
    return [
        entry for entry in entries
        if (not filters.type or entry.get("type") == filters.type)
        and (not filters.name or _contains(entry.get("name"), filters.name))
        and (not filters.company or _contains(entry.get("company"), filters.company))
        and (not filters.contact or _contains(contact_person(entry), filters.contact))
        and (not filters.status or entry_status(entry) == filters.status)
    ]


def start_of_day(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.now(timezone.utc)
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


@dataclass
class DashboardSummary:
    visitors_today: int = 0
    contractors_on_site: int = 0
    total_check_ins_today: int = 0
    last_visitor: Optional[Mapping] = None
    recent_visitors: list = field(default_factory=list)


def summarize_dashboard(entries_today: Iterable[Mapping], on_site: Iterable[Mapping]) -> DashboardSummary:
    """
    `entries_today`: every check-in since midnight, newest first.
    `on_site`: everyone not yet checked out.
    """
    today = list(entries_today)
    visitors = [e for e in today if e.get("type", names.VISITOR_TYPE) == names.VISITOR_TYPE]
    contractors = [e for e in on_site if e.get("type") == names.CONTRACTOR_TYPE]
    return DashboardSummary(
        visitors_today=len(visitors),
        contractors_on_site=len(contractors),
        total_check_ins_today=len(today),
        last_visitor=visitors[0] if visitors else None,
        recent_visitors=today[:RECENT_VISITORS_LIMIT],
    )
