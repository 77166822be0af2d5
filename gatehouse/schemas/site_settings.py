# gatehouse/schemas/site_settings.py
from pydantic import BaseModel
from typing import Optional


class SettingsUpdate(BaseModel):
    site_name: Optional[str] = None
    badge_logo_url: Optional[str] = None
    email_notifications: Optional[bool] = None


class SettingsOut(BaseModel):
    site_name: str
    badge_logo_url: str
    email_notifications: bool
