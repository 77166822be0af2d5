# gatehouse/schemas/visitor_log.py
from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import Optional


class VisitorLogEntry(BaseModel):
    """One check-in record. Unlisted fields are passed through."""
    model_config = ConfigDict(extra="allow")

    id: str
    type: str = "visitor"
    name: Optional[str] = None
    company: Optional[str] = None
    visiting: Optional[str] = None
    person_responsible: Optional[str] = None
    vehicle_reg: Optional[str] = None
    photo_url: Optional[str] = None
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    checked_out: bool = False


class InductionRow(VisitorLogEntry):
    induction_timestamp: Optional[datetime] = None
    induction_valid: Optional[bool] = None
    induction_date: Optional[str] = None
    expiry_date: Optional[str] = None
    days_remaining: Optional[int] = None
    status: str              # valid | expiring-soon | expired | unknown
    label: str


class ClearLogsOut(BaseModel):
    status: str
    deleted: int


class DashboardOut(BaseModel):
    visitors_today: int
    contractors_on_site: int
    total_check_ins_today: int
    last_visitor: Optional[VisitorLogEntry] = None
    recent_visitors: list[VisitorLogEntry]
