# gatehouse/services/errors.py
"""Errors raised by the document store and the check-in wizards."""

from dataclasses import dataclass
from typing import Any, Optional


class StoreError(Exception):
    """Base class for document store failures."""


class PermissionDeniedError(StoreError):
    def __init__(self, path: str, operation: str, reason: str = "Missing or insufficient permissions."):
        super().__init__(f"{reason} ({operation} {path})")
        self.path = path
        self.operation = operation
        self.reason = reason


class DocumentNotFoundError(StoreError):
    def __init__(self, path: str):
        super().__init__(f"No document to update: {path}")
        self.path = path


class StoreUnavailableError(StoreError):
    """The storage engine underneath the store failed."""


@dataclass(frozen=True)
class PermissionErrorContext:
    """Payload of the `permission-error` event."""
    path: str
    operation: str                              # create | write | update | delete | get | list
    request_resource_data: Optional[Any] = None  # rejected payload, writes only

    def describe(self) -> str:
        return f"Permission denied: {self.operation} on /{self.path}"


class WizardError(Exception):
    pass


class WizardTransitionError(WizardError):
    def __init__(self, step: int, action: str, reason: str):
        super().__init__(f"Cannot {action} from step {step}: {reason}")
        self.step = step
        self.action = action
        self.reason = reason
