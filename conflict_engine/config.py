"""
Configuration for the conflict engine.

Uses Pydantic Settings so every value can be overridden from the
environment or a .env file in the project root.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_TIME_SLOTS = [
    "09:00", "10:00", "11:00", "14:00", "15:00", "16:00", "18:00", "19:00",
]


class Settings(BaseSettings):
    """
    Engine settings loaded from environment variables.

    None of these are persisted by the engine; rule toggles live in the
    in-memory RuleRegistry instead.
    """

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level for the HTTP adapter"
    )

    # Detection
    travel_buffer_minutes: int = Field(
        default=20,
        ge=0,
        description="Minimum gap between events at different locations"
    )
    cost_threshold: float = Field(
        default=50.0,
        ge=0,
        description="Event cost above which a conflict's priority is raised"
    )

    # Reschedule suggestions
    reschedule_max_days_out: int = Field(
        default=7,
        ge=1,
        description="How many days after the event to search for free slots"
    )
    reschedule_max_suggestions: int = Field(
        default=5,
        ge=1,
        description="Maximum number of free slots returned"
    )
    reschedule_time_slots: list[str] = Field(
        default_factory=lambda: list(DEFAULT_TIME_SLOTS),
        description="Preferred start times (HH:MM) tried on each day"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("reschedule_time_slots")
    @classmethod
    def _check_time_slots(cls, value: list[str]) -> list[str]:
        for slot in value:
            hours, _, minutes = slot.partition(":")
            if not (hours.isdigit() and minutes.isdigit()
                    and int(hours) < 24 and int(minutes) < 60):
                raise ValueError(f"Invalid time slot {slot!r}, expected HH:MM")
        return value


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Example:
        >>> from conflict_engine.config import get_settings
        >>> get_settings().travel_buffer_minutes
        20
    """
    return Settings()
