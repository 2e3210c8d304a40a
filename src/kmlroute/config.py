"""Application configuration and settings management."""

from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="KMLROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "KML Route Optimizer API"
    api_prefix: str = "/api"
    log_level: str = Field(default="INFO", description="Root log level applied at startup.")
    osrm_base_url: Optional[str] = Field(
        default="https://router.project-osrm.org",
        description="Base URL for the OSRM routing/matching service.",
    )
    osrm_profile: Literal["driving", "driving-hgv", "cycling", "foot"] = Field(
        default="driving",
        description="OSRM profile used for route and match requests.",
    )
    osrm_timeout_seconds: float = Field(default=30.0, gt=0.0)
    osrm_max_retries: int = Field(
        default=0,
        ge=0,
        description="Extra attempts per OSRM call. Keep 0 so a failed chunk is skipped at once; higher values retry with backoff.",
    )
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)
    max_coordinates_route: int = Field(default=25, ge=2, description="Coordinate cap for a single route call.")
    max_coordinates_match: int = Field(default=100, ge=2, description="Coordinate cap for a single match call.")

    simplify_min_distance_m: float = Field(default=5.0, ge=0.0)
    cleanup_min_distance_m: float = Field(default=25.0, ge=0.0)
    gap_warning_distance_m: float = Field(default=100_000.0, gt=0.0)
    reorder_gap_threshold_m: float = Field(default=50_000.0, gt=0.0)
    reorder_keep_order_distance_m: float = Field(default=25_000.0, gt=0.0)

    default_collection_radius_m: float = Field(default=20.0, ge=0.0)
    two_opt_max_iterations: int = Field(default=1000, ge=1)
    two_opt_sampling_threshold: int = Field(
        default=1000,
        ge=1,
        description="Above this many points the 2-opt loops sample every second index.",
    )
    average_speed_kmh: float = Field(default=50.0, gt=0.0)
    large_dataset_warning_points: int = Field(default=2000, ge=1)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
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
