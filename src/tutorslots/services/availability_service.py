# src/tutorslots/services/availability_service.py
"""
Availability Service for tutors' weekly schedules.

Admins and tutors edit one window per weekday on the half-hour editing
grid. Windows must start on the grid and last at least the configured
number of grid steps.
"""

from datetime import time
from typing import List, Optional

from ..client import SessionStoreClient
from ..config import Settings
from ..core.enums import Weekday
from ..core.exceptions import (
    InvalidGranularityError,
    StoreNotFoundError,
    TutorNotFoundError,
    ValidationException,
)
from ..schemas.availability import DayWindow, TimeOfDay, WeeklyAvailability
from ..utils.time_utils import time_to_minutes, time_to_string
from .base import BaseService
from .time_grid import generate_slots, valid_end_times


class AvailabilityService(BaseService):
    """Reads and edits a tutor's weekly availability."""

    def __init__(self, client: SessionStoreClient, settings: Optional[Settings] = None):
        super().__init__(settings or client.settings)
        self.client = client

    @property
    def granularity(self) -> int:
        return self.settings.availability_granularity_minutes

    def start_options(self) -> List[TimeOfDay]:
        """Grid times a window may start at."""
        return generate_slots(self.granularity)

    def end_options(self, start: time) -> List[TimeOfDay]:
        """Grid times a window starting at ``start`` may end at."""
        return valid_end_times(start, self.settings.availability_min_duration_slots, self.granularity)

    def build_window(self, start: time, end: time) -> DayWindow:
        """Validate a start/end pair against the editing grid."""
        allowed_ends = {option.value for option in self.end_options(start)}
        if end not in allowed_ends:
            min_minutes = self.settings.availability_min_duration_slots * self.granularity
            if time_to_minutes(end) % self.granularity != 0:
                raise InvalidGranularityError(
                    self.granularity,
                    reason=f"{time_to_string(end)} is not on the {self.granularity}-minute grid",
                )
            raise ValidationException(
                f"End time must be at least {min_minutes} minutes after start time",
                code="WINDOW_TOO_SHORT",
                details={"start": time_to_string(start), "end": time_to_string(end)},
            )
        return DayWindow(start=start, end=end)

    @BaseService.measure_operation("get_weekly_availability")
    async def get_weekly_availability(self, tutor_id: str) -> WeeklyAvailability:
        try:
            result = await self.client.get_availability(tutor_id)
        except StoreNotFoundError as exc:
            raise TutorNotFoundError(tutor_id) from exc
        return result.availability

    @BaseService.measure_operation("set_day")
    async def set_day(self, tutor_id: str, weekday: Weekday, start: time, end: time) -> WeeklyAvailability:
        """Replace one weekday's window, keeping the rest of the week."""
        window = self.build_window(start, end)
        current = await self.get_weekly_availability(tutor_id)
        updated = current.with_day(weekday, window)
        await self._save(tutor_id, updated)
        self.logger.info(
            "Availability for %s on %s set to %s-%s",
            tutor_id,
            Weekday(weekday).value,
            time_to_string(start),
            time_to_string(end),
        )
        return updated

    @BaseService.measure_operation("clear_day")
    async def clear_day(self, tutor_id: str, weekday: Weekday) -> None:
        try:
            await self.client.delete_availability_day(tutor_id, weekday)
        except StoreNotFoundError as exc:
            raise TutorNotFoundError(tutor_id) from exc
        self.logger.info("Availability for %s on %s cleared", tutor_id, Weekday(weekday).value)

    @BaseService.measure_operation("replace_weekly_availability")
    async def replace_weekly_availability(
        self, tutor_id: str, availability: WeeklyAvailability
    ) -> WeeklyAvailability:
        for window in availability.days().values():
            self.build_window(window.start, window.end)
        await self._save(tutor_id, availability)
        return availability

    async def _save(self, tutor_id: str, availability: WeeklyAvailability) -> None:
        try:
            await self.client.put_availability(tutor_id, availability)
        except StoreNotFoundError as exc:
            raise TutorNotFoundError(tutor_id) from exc
