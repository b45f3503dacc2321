"""Constants and defaults.

Note: defaults mirror the organization settings screen.
"""

DEFAULT_WORK_START = "09:00:00"
DEFAULT_WORK_END = "18:00:00"
DEFAULT_GRACE_MINUTES = 15
DEFAULT_LATE_THRESHOLD_MINUTES = 30
DEFAULT_HALF_DAY_CUTOFF = "14:00:00"
DEFAULT_WORKING_DAYS = (1, 2, 3, 4, 5, 6)
DEFAULT_ALLOWED_RADIUS_METERS = 100

MAX_WEEK_INDEX = 5
DEFAULT_REPORT_WORKERS = 4
DEFAULT_LIST_LIMIT = 200

CORRECTION_SOURCE = "timeslip"
