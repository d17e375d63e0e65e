"""Configuration management."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime settings pulled from ``BACKDROP_*`` environment variables."""

    model_config = SettingsConfigDict(env_prefix="BACKDROP_", env_file=".env", extra="ignore")

    # Logging
    log_level: str = Field(default="INFO", description="Log level")
    log_json: bool = Field(default=False, description="Render log lines as JSON")

    # Scheduling
    initial_update_timeout_ms: float = Field(
        default=100.0, ge=0, description="Timeout for the catch-up queued when an element is created"
    )
    resume_timeout_ms: float = Field(
        default=1.0, ge=0, description="Timeout for resumes after a timeout-forced idle slot"
    )
    frame_interval_ms: float = Field(default=1000 / 60, gt=0, description="Frame period of the asyncio frame scheduler")
    idle_budget_ms: float = Field(default=10.0, gt=0, description="Budget granted per asyncio idle slot")
    idle_delay_ms: float = Field(default=4.0, ge=0, description="Delay before an asyncio idle slot is offered")

    # Generation
    render_epsilon: float = Field(default=1e-4, gt=0, description="Tolerance of the prune consistency check")
    seed: Optional[str] = Field(default=None, description="Seed for the shared random source")


settings = Settings()
