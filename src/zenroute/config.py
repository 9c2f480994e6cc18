"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="ZENROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "ZenRoute Route Evaluation API"
    api_prefix: str = "/api"
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:8081",
            "http://127.0.0.1:8081",
            "http://localhost:19006",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Directions provider
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="Google Maps Directions API key. Without it every fetch falls back to demo routes.",
    )
    directions_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api/directions/json",
        description="Directions JSON endpoint.",
    )
    directions_timeout_seconds: float = Field(default=15.0, gt=0.0)
    directions_connect_timeout_seconds: float = Field(default=5.0, gt=0.0)

    # Response cache
    route_cache_ttl_seconds: float = Field(
        default=300.0,
        ge=0.0,
        description="Lifetime of a cached route evaluation.",
    )
    route_cache_key_prefix: str = Field(default="routes", min_length=1)
    route_session_limit: int = Field(
        default=1000,
        ge=1,
        description="Evaluator sessions kept in memory before the least recently used one is dropped.",
    )

    # Stress classification thresholds (durationInTraffic / duration)
    traffic_moderate_ratio: float = Field(default=1.2, gt=0.0)
    traffic_heavy_ratio: float = Field(default=1.5, gt=0.0)

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )
    route_history_table: str = "route_history"

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

    @model_validator(mode="after")
    def _check_traffic_thresholds(self) -> "Settings":
        if self.traffic_heavy_ratio < self.traffic_moderate_ratio:
            raise ValueError(
                f"traffic_heavy_ratio ({self.traffic_heavy_ratio}) must not be lower than "
                f"traffic_moderate_ratio ({self.traffic_moderate_ratio})"
            )
        return self


settings = Settings()
