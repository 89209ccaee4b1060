# This project was developed with assistance from AI tools.
"""Submitter client configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Env-driven settings for the partner-side client (``STAYVERIFY_`` prefix)."""

    model_config = SettingsConfigDict(env_prefix="STAYVERIFY_", extra="ignore")

    API_BASE_URL: str = "http://localhost:8000"
    WS_BASE_URL: str = "ws://localhost:8000"
    REQUEST_TIMEOUT: float = 30.0

    # -- Reconnect backoff --
    RECONNECT_BASE_DELAY: float = Field(default=1.0, description="First retry delay in seconds.")
    RECONNECT_MAX_DELAY: float = Field(default=5.0, description="Upper bound on any single retry delay.")
    RECONNECT_MAX_ATTEMPTS: int = Field(
        default=5,
        description="Consecutive failed attempts before the channel gives up.",
    )
