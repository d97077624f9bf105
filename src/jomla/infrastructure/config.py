"""Runtime configuration loaded from the environment.

Every field can be set as ``JOMLA_<FIELD>`` or in a ``.env`` file in the
working directory. Business constants (tax rate, fees, code lifetimes)
live in the domain, not here.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_prefix="JOMLA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Storage
    data_dir: Path = Path("data")
    storage_dir: Optional[Path] = None  # defaults to <data_dir>/blobs
    storage_base_url: str = "http://localhost:8000/files"

    # Logging
    log_level: str = "INFO"

    # Auth tokens (signing key for ID, custom and storage-link tokens)
    token_secret: str = "change-me"
    token_issuer: str = "jomla"
    token_ttl_seconds: int = 3600

    # Orders
    pickup_location: str = "Main Store Location"

    # Twilio (SMS)
    twilio_account_sid: Optional[str] = None
    twilio_auth_token: Optional[str] = None
    twilio_phone_number: Optional[str] = None
    twilio_base_url: str = "https://api.twilio.com"

    # Push delivery
    push_endpoint: Optional[str] = None
    push_api_key: Optional[str] = None

    # Outbound HTTP resilience
    http_timeout: float = 10.0
    retry_max_attempts: int = 3
    retry_initial_delay: float = 0.5
    retry_max_delay: float = 5.0
    circuit_failure_threshold: int = 5
    circuit_reset_timeout: float = 60.0

    @property
    def blob_dir(self) -> Path:
        return self.storage_dir or self.data_dir / "blobs"

    @property
    def sms_configured(self) -> bool:
        return all([
            self.twilio_account_sid,
            self.twilio_auth_token,
            self.twilio_phone_number,
        ])


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
