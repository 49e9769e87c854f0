"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

EARTH_RADIUS_METERS = 6_371_000

DEFAULT_CAMPUS_LATITUDE = 5.6037
DEFAULT_CAMPUS_LONGITUDE = -0.1870
DEFAULT_CAMPUS_RADIUS_METERS = 300.0

DEFAULT_VIRTUAL_GRACE_BEFORE_MINUTES = 15
DEFAULT_VIRTUAL_GRACE_AFTER_MINUTES = 15
DEFAULT_VIRTUAL_MIN_DURATION_RATIO = 0.75

MIN_RISK_SCORE = 0
MAX_RISK_SCORE = 10

DEFAULT_LIST_LIMIT = 200
