"""Application configuration and settings management."""

from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="COURIER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Courier Maps API"
    api_prefix: str = "/api"
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Google Maps provider
    google_maps_api_key: Optional[str] = Field(
        default=None,
        description="Server-side key for Directions, Distance Matrix, Geocoding and Place Details.",
    )
    maps_base_url: str = Field(
        default="https://maps.googleapis.com/maps/api",
        description="Base URL of the Google Maps web services.",
    )
    region_qualifier: str = Field(
        default="Bolivia",
        description="Appended to free-text addresses before geocoding to reduce ambiguous matches.",
    )
    region_hints: tuple[str, ...] = Field(
        default=("bolivia",),
        description="Lower-case fragments that mark an address as already carrying a region.",
    )
    unresolvable_sentinels: tuple[str, ...] = Field(
        default=("cliente avisa",),
        description="Placeholder values staff type when the client will send the location later.",
    )

    # Timeouts and retry bounds
    request_timeout_seconds: float = Field(default=5.0, gt=0.0)
    connect_timeout_seconds: float = Field(default=3.0, gt=0.0)
    redirect_timeout_seconds: float = Field(default=3.0, gt=0.0)
    timeout_retries: int = Field(default=1, ge=0, le=1)
    redirect_hop_budget: int = Field(default=2, ge=1, le=2)
    max_calls_per_resolution: int = Field(default=6, ge=1)
    max_calls_per_route: int = Field(default=16, ge=1)

    # Result caches
    link_cache_ttl_seconds: float = Field(default=300.0, gt=0.0)
    link_cache_capacity: int = Field(default=100, ge=1)
    route_cache_ttl_seconds: float = Field(default=1800.0, gt=0.0)
    route_cache_capacity: int = Field(default=500, ge=1)

    @field_validator(
        "frontend_allowed_origins", "region_hints", "unresolvable_sentinels", mode="before"
    )
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            # Try JSON first
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            # Try comma-separated
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            # Single value
            if value.strip():
                return (value.strip(),)
        # Return empty tuple if value is None or empty
        return tuple()

    @field_validator("region_hints", "unresolvable_sentinels", mode="after")
    @classmethod
    def _lowercase(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(item.lower() for item in value)


settings = Settings()
