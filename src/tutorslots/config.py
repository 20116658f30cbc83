"""Configuration for the slot booking engine."""

from __future__ import annotations

from pathlib import Path

import pytz
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.constants import (
    DEFAULT_AVAILABILITY_GRANULARITY_MINUTES,
    DEFAULT_AVAILABILITY_MIN_DURATION_SLOTS,
    DEFAULT_BOOKING_GRANULARITY_MINUTES,
    DEFAULT_MAX_BOOKINGS_PER_STUDENT_PER_DAY,
    DEFAULT_MIN_LEAD_HOURS,
    MINUTES_PER_DAY,
)
from .core.enums import SlotWorkflow, Weekday
from .schemas.booking import BookingConstraintSet

_WORKING_WEEK = [day for day in Weekday if day is not Weekday.SUNDAY]


class Settings(BaseSettings):
    """Runtime settings loaded from environment."""

    api_base_url: str = "http://localhost:5000/api"
    api_token: SecretStr = SecretStr("")
    request_timeout_seconds: float = 30.0
    token_file: Path | None = None

    timezone: str = "UTC"

    booking_granularity_minutes: int = DEFAULT_BOOKING_GRANULARITY_MINUTES
    availability_granularity_minutes: int = DEFAULT_AVAILABILITY_GRANULARITY_MINUTES
    availability_min_duration_slots: int = Field(
        default=DEFAULT_AVAILABILITY_MIN_DURATION_SLOTS, ge=1
    )

    min_lead_hours: float = Field(default=DEFAULT_MIN_LEAD_HOURS, ge=0)
    max_bookings_per_student_per_day: int = Field(
        default=DEFAULT_MAX_BOOKINGS_PER_STUDENT_PER_DAY, ge=1
    )
    allowed_weekdays: list[Weekday] = Field(default_factory=lambda: list(_WORKING_WEEK))

    model_config = SettingsConfigDict(env_prefix="TUTORSLOTS_", env_file=".env", extra="ignore")

    @field_validator("booking_granularity_minutes", "availability_granularity_minutes")
    @classmethod
    def validate_granularity(cls, v: int) -> int:
        if v <= 0 or MINUTES_PER_DAY % v != 0:
            raise ValueError(f"granularity must evenly divide {MINUTES_PER_DAY} minutes")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        try:
            pytz.timezone(v)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"unknown timezone: {v}") from exc
        return v

    def granularity_for(self, workflow: SlotWorkflow | str) -> int:
        if SlotWorkflow(workflow) is SlotWorkflow.AVAILABILITY_EDITING:
            return self.availability_granularity_minutes
        return self.booking_granularity_minutes

    def booking_constraints(self) -> BookingConstraintSet:
        return BookingConstraintSet(
            min_lead_hours=self.min_lead_hours,
            max_bookings_per_student_per_day=self.max_bookings_per_student_per_day,
            allowed_weekdays=frozenset(self.allowed_weekdays),
        )
