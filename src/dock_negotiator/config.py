"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DOCKNEG_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Dock Appointment Negotiator API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root log level used by start_server.py.")
    tool_webhook_secret: Optional[str] = Field(
        default=None,
        description="Shared secret expected in the x-tool-secret header of voice tool calls.",
    )

    # Negotiation strategy probing
    probe_interval_minutes: int = Field(default=15, ge=1)
    probe_horizon_minutes: int = Field(default=360, ge=15)
    step_jump_threshold: float = Field(
        default=100.0,
        ge=0.0,
        description="Dollar increase between consecutive probes treated as a penalty step.",
    )
    acceptable_tolerance_minutes: int = Field(default=120, ge=0)
    reluctant_extension_minutes: int = Field(default=120, ge=0)
    reluctant_cost_weight: float = Field(default=0.5, ge=0.0, le=1.0)
    max_pushback_attempts: int = Field(default=2, ge=0)

    # Hours of service defaults
    default_dock_duration_minutes: int = Field(default=60, ge=0)
    default_detention_rate_per_hour: float = Field(default=50.0, ge=0.0)
    layover_daily_rate: float = Field(default=150.0, ge=0.0)
    reset_off_duty_minutes: int = Field(default=600, ge=0)
    break_threshold_minutes: int = Field(default=480, ge=0)

    # Call/session state kept by the HTTP layer
    session_ttl_seconds: int = Field(default=3600, ge=1)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


settings = Settings()
