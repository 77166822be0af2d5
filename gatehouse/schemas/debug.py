# gatehouse/schemas/debug.py
from pydantic import BaseModel
from typing import Any, Optional


class PermissionTestLine(BaseModel):
    timestamp: str
    message: str
    status: str              # info | success | error


class LiveLogEntry(BaseModel):
    timestamp: str
    message: str
    data: Optional[Any] = None


class PermissionErrorEntry(BaseModel):
    timestamp: str
    path: str
    operation: str
    request_resource_data: Optional[Any] = None
