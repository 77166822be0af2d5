# gatehouse/services/induction.py
"""
Induction expiry and the induction log.

An induction is valid for INDUCTION_VALIDITY_DAYS from its timestamp.
Status, first rule that applies:
  unknown        no induction timestamp on the record
  expired        induction_valid is False (force-expired), or now > expiry
  expiring-soon  0 <= days remaining < INDUCTION_EXPIRING_SOON_DAYS
  valid          otherwise
Days remaining count whole days to expiry, truncated toward zero, so they
go negative once a full day has passed since expiry.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Iterable, Mapping, Optional

from gatehouse.config import settings


class InductionStatus(str, Enum):
    VALID = "valid"
    EXPIRING_SOON = "expiring-soon"
    EXPIRED = "expired"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ExpiryInfo:
    status: InductionStatus
    expiry_date: Optional[str]
    days_remaining: Optional[int]

    @property
    def label(self) -> str:
        if self.status == InductionStatus.UNKNOWN:
            return "Unknown"
        if self.status == InductionStatus.EXPIRED:
            return "Expired"
        return f"{self.days_remaining} days"


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_date(value: datetime) -> str:
    """`Mar 5, 2026`"""
    return f"{value:%b} {value.day}, {value.year}"


def get_expiry_info(
    record: Mapping,
    now: Optional[datetime] = None,
    validity_days: int = settings.INDUCTION_VALIDITY_DAYS,
    expiring_soon_days: int = settings.INDUCTION_EXPIRING_SOON_DAYS,
) -> ExpiryInfo:
    inducted_at = record.get("induction_timestamp")
    if inducted_at is None:
        return ExpiryInfo(status=InductionStatus.UNKNOWN, expiry_date=None, days_remaining=None)

    now = _as_utc(now or datetime.now(timezone.utc))
    expiry = _as_utc(inducted_at) + timedelta(days=validity_days)
    days_remaining = int((expiry - now) / timedelta(days=1))

    if record.get("induction_valid") is False or now > expiry:
        status = InductionStatus.EXPIRED
    elif 0 <= days_remaining < expiring_soon_days:
        status = InductionStatus.EXPIRING_SOON
    else:
        status = InductionStatus.VALID

    return ExpiryInfo(status=status, expiry_date=format_date(expiry), days_remaining=days_remaining)


def inductee_key(record: Mapping) -> tuple[str, str]:
    name = (record.get("name") or "").strip().lower()
    company = (record.get("company") or "").strip().lower()
    return name, company


def dedupe_inductees(records: Iterable[Mapping]) -> list[Mapping]:
    """
    One record per case-insensitive (name, company) pair; the first one seen
    wins. Pass records sorted by induction timestamp, newest first, to keep
    each person's latest induction.
    """
    seen: set[tuple[str, str]] = set()
    unique = []
    for record in records:
        key = inductee_key(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def build_induction_rows(records: Iterable[Mapping], now: Optional[datetime] = None) -> list[dict]:
    now = now or datetime.now(timezone.utc)
    rows = []
    for record in records:
        info = get_expiry_info(record, now)
        inducted_at = record.get("induction_timestamp")
        rows.append({
            **record,
            "induction_date": format_date(_as_utc(inducted_at)) if inducted_at else None,
            "expiry_date": info.expiry_date,
            "days_remaining": info.days_remaining,
            "status": info.status.value,
            "label": info.label,
        })
    return rows
