# gatehouse/services/checkin_wizard.py
"""
Multi-step check-in forms for visitors (4 steps) and contractors (5 steps).

Moves:
  next  only when the current step's required fields are filled in (text
        non-blank, checkboxes ticked). Leaving the second-to-last step hands
        the finished record to `persist` and then shows the badge step.
  back  one step at a time; not from step 1, not from the badge step
        (the record is already saved by then).
The badge step is terminal. Progress is step / total steps.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from gatehouse.services import collection_names as names
from gatehouse.services.errors import WizardError, WizardTransitionError

VISIT_TYPES = ("office", "site")


@dataclass(frozen=True)
class WizardStep:
    number: int
    title: str
    required: tuple = ()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_filled(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return bool(value.strip())
    return value is not None


class CheckInWizard:
    kind = ""
    steps: tuple = ()
    defaults: dict = {}

    def __init__(self, persist: Callable[[dict], Any], clock: Callable[[], datetime] = _utcnow):
        self._persist = persist
        self._clock = clock
        self.step = 1
        self.fields = dict(self.defaults)
        self.record: Optional[dict] = None

    @property
    def total_steps(self) -> int:
        return len(self.steps)

    @property
    def current(self) -> WizardStep:
        return self.steps[self.step - 1]

    @property
    def progress(self) -> int:
        return round(self.step / self.total_steps * 100)

    @property
    def is_complete(self) -> bool:
        return self.step == self.total_steps

    def update(self, **values) -> None:
        if self.is_complete:
            raise WizardError("Check-in already submitted.")
        unknown = set(values) - set(self.defaults)
        if unknown:
            raise WizardError(f"Unknown field(s): {', '.join(sorted(unknown))}")
        candidate = dict(self.fields)
        for key, value in values.items():
            if isinstance(self.defaults[key], bool):
                value = bool(value)
            elif value is None:
                value = self.defaults[key]
            candidate[key] = value
        self._validate(candidate)
        self.fields = candidate

    def missing_fields(self) -> list[str]:
        return [key for key in self.current.required if not _is_filled(self.fields.get(key))]

    def can_advance(self) -> bool:
        return not self.is_complete and not self.missing_fields()

    def can_go_back(self) -> bool:
        return 1 < self.step < self.total_steps

    def next(self) -> int:
        if self.is_complete:
            raise WizardTransitionError(self.step, "advance", "check-in is already complete")
        missing = self.missing_fields()
        if missing:
            raise WizardTransitionError(self.step, "advance", f"missing {', '.join(missing)}")

        if self.step == self.total_steps - 1:
            self.record = self.build_record(self._clock())
            self._persist(self.record)
        self.step += 1
        return self.step

    def back(self) -> int:
        if self.step == 1:
            raise WizardTransitionError(self.step, "go back", "already at the first step")
        if self.is_complete:
            raise WizardTransitionError(self.step, "go back", "check-in is already submitted")
        self.step -= 1
        return self.step

    def state(self) -> dict:
        return {
            "kind": self.kind,
            "step": self.step,
            "total_steps": self.total_steps,
            "title": self.current.title,
            "progress": self.progress,
            "fields": dict(self.fields),
            "missing_fields": self.missing_fields(),
            "can_advance": self.can_advance(),
            "can_go_back": self.can_go_back(),
            "is_complete": self.is_complete,
        }

    def build_record(self, now: datetime) -> dict:
        raise NotImplementedError

    def _validate(self, fields: dict) -> None:
        pass


class VisitorCheckInWizard(CheckInWizard):
    kind = names.VISITOR_TYPE
    steps = (
        WizardStep(1, "Visitor Details", ("first_name", "surname", "company", "person_visiting")),
        WizardStep(2, "Photo"),
        WizardStep(3, "Data Policy", ("consent",)),
        WizardStep(4, "Badge"),
    )
    defaults = {
        "first_name": "",
        "surname": "",
        "email": "",
        "phone": "",
        "company": "",
        "person_visiting": "",
        "visit_type": "office",
        "vehicle_reg": "",
        "photo_url": None,
        "consent": False,
    }

    def _validate(self, fields: dict) -> None:
        if fields["visit_type"] not in VISIT_TYPES:
            raise WizardError(f"visit_type must be one of {', '.join(VISIT_TYPES)}")

    def build_record(self, now: datetime) -> dict:
        f = self.fields
        first_name, surname = f["first_name"].strip(), f["surname"].strip()
        return {
            "type": names.VISITOR_TYPE,
            "first_name": first_name,
            "surname": surname,
            "name": f"{first_name} {surname}",
            "email": f["email"] or "",
            "phone": f["phone"] or "",
            "company": f["company"].strip(),
            "visiting": f["person_visiting"],
            "visit_type": f["visit_type"],
            "vehicle_reg": (f["vehicle_reg"] or "").strip().upper(),
            "photo_url": f["photo_url"],
            "consent_given": f["consent"],
            "check_in_time": now,
            "check_out_time": None,
            "checked_out": False,
        }


class ContractorCheckInWizard(CheckInWizard):
    kind = names.CONTRACTOR_TYPE
    steps = (
        WizardStep(1, "Contractor Details", ("full_name", "company", "purpose", "person_responsible")),
        WizardStep(2, "Site Induction", ("induction_complete",)),
        WizardStep(3, "Site Rules", ("rules_agreed",)),
        WizardStep(4, "Photo"),
        WizardStep(5, "Badge"),
    )
    defaults = {
        "full_name": "",
        "company": "",
        "purpose": "",
        "person_responsible": "",
        "vehicle_reg": "",
        "photo_url": None,
        "induction_complete": False,
        "rules_agreed": False,
    }

    def build_record(self, now: datetime) -> dict:
        f = self.fields
        return {
            "type": names.CONTRACTOR_TYPE,
            "name": f["full_name"].strip(),
            "company": f["company"].strip(),
            "purpose": f["purpose"],
            "person_responsible": f["person_responsible"],
            "vehicle_reg": (f["vehicle_reg"] or "").strip().upper(),
            "photo_url": f["photo_url"],
            "induction_complete": f["induction_complete"],
            "induction_timestamp": now if f["induction_complete"] else None,
            "induction_valid": True,
            "rules_agreed": f["rules_agreed"],
            "check_in_time": now,
            "check_out_time": None,
            "checked_out": False,
        }


WIZARDS = {
    VisitorCheckInWizard.kind: VisitorCheckInWizard,
    ContractorCheckInWizard.kind: ContractorCheckInWizard,
}
