# gatehouse/schemas/checkin.py
from pydantic import BaseModel
from typing import Optional


class CheckInFields(BaseModel):
    """Fields of either check-in form; send only what changed."""
    # visitor
    first_name: Optional[str] = None
    surname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    person_visiting: Optional[str] = None
    visit_type: Optional[str] = None     # office | site
    consent: Optional[bool] = None
    # contractor
    full_name: Optional[str] = None
    purpose: Optional[str] = None
    person_responsible: Optional[str] = None
    induction_complete: Optional[bool] = None
    rules_agreed: Optional[bool] = None
    # both
    company: Optional[str] = None
    vehicle_reg: Optional[str] = None
    photo_url: Optional[str] = None


class CheckInSessionOut(BaseModel):
    session_id: str
    kind: str                # visitor | contractor
    step: int
    total_steps: int
    title: str
    progress: int
    fields: dict
    missing_fields: list[str]
    can_advance: bool
    can_go_back: bool
    is_complete: bool
    record: Optional[dict] = None
