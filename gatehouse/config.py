# gatehouse/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./gatehouse.db"

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 8080

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # X-API-Key holder acts as the service admin

    # ── Backend project identity ──────────────────────────────────────────
    PROJECT_API_KEY: Optional[str] = None
    AUTH_DOMAIN: Optional[str] = None
    PROJECT_ID: Optional[str] = None
    STORAGE_BUCKET: Optional[str] = None
    MESSAGING_SENDER_ID: Optional[str] = None
    APP_ID: Optional[str] = None

    @property
    def backend_config(self) -> dict:
        return {
            "api_key": self.PROJECT_API_KEY,
            "auth_domain": self.AUTH_DOMAIN,
            "project_id": self.PROJECT_ID,
            "storage_bucket": self.STORAGE_BUCKET,
            "messaging_sender_id": self.MESSAGING_SENDER_ID,
            "app_id": self.APP_ID,
        }

    # ── Inductions ────────────────────────────────────────────────────────
    INDUCTION_VALIDITY_DAYS: int = 365
    INDUCTION_EXPIRING_SOON_DAYS: int = 30    # strictly fewer days left → expiring

    # ── Directory ─────────────────────────────────────────────────────────
    USER_EMAIL_DOMAINS: list[str] = [
        "@spartanuk.co.uk",
        "@metinvestholding.com",
        "@metinvest-westerneurope.com",
    ]

    # ── Site defaults ─────────────────────────────────────────────────────
    SITE_NAME: str = "Main Site"
    DEFAULT_BADGE_LOGO_URL: str = ""

    # ── Debug buffers ─────────────────────────────────────────────────────
    LIVE_LOG_BUFFER_SIZE: int = 200

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
