"""Platform-wide constants."""

MINUTES_PER_DAY = 24 * 60

# Defaults for the two grids; deployments override them through settings.
DEFAULT_BOOKING_GRANULARITY_MINUTES = 60
DEFAULT_AVAILABILITY_GRANULARITY_MINUTES = 30
DEFAULT_AVAILABILITY_MIN_DURATION_SLOTS = 2

DEFAULT_MIN_LEAD_HOURS = 12
DEFAULT_MAX_BOOKINGS_PER_STUDENT_PER_DAY = 1

SLOT_REQUEST_DURATION_MINUTES = 120
