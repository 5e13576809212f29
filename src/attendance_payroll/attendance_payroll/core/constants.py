"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
Runtime values are overridable from the settings modules under ``config/``.
"""

from datetime import time

DEFAULT_LATE_THRESHOLD_MINUTES = 15
DEFAULT_OVERTIME_THRESHOLD_MINUTES = 30
DEFAULT_WORKING_HOURS_PER_DAY = 8.0
DEFAULT_HALF_DAY_MINUTES = 240
DEFAULT_WEEKLY_OFF_DAYS = frozenset({6})  # date.weekday(): Sunday

DEFAULT_OFFICE_RADIUS_METERS = 100.0
EARTH_RADIUS_METERS = 6371000.0
GPS_HIGH_CONFIDENCE_METERS = 20.0
GPS_MEDIUM_CONFIDENCE_METERS = 100.0

AUTO_CHECKOUT_GRACE_HOURS = 2
EMERGENCY_CUTOFF_TIME = time(23, 55)
AUTO_CHECKOUT_JOB = "auto_checkout"
DEFAULT_SWEEP_INTERVAL_SECONDS = 300
DEFAULT_POLICY_CACHE_SECONDS = 300

DEFAULT_EPF_RATE = 0.12
DEFAULT_EPF_CEILING = 1800
DEFAULT_EPF_WAGE_CEILING = 15000
DEFAULT_ESI_RATE = 0.0075
DEFAULT_ESI_THRESHOLD = 21000
DEFAULT_TDS_RATE = 0.0
DEFAULT_TDS_ANNUAL_THRESHOLD = 250000
DEFAULT_STANDARD_WORKING_HOURS = 8.0
DEFAULT_OVERTIME_RATE = 1.5

PRESENT_STATUSES = ("present", "late", "half_day")
PAID_LEAVE_STATUSES = ("leave",)
