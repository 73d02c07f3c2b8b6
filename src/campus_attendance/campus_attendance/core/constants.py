"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_QR_EXPIRY_MINUTES = 30
MAX_QR_EXPIRY_MINUTES = 240
DEFAULT_LATE_AFTER_MINUTES = 15
DEFAULT_GEOFENCE_RADIUS_M = 50.0
DEFAULT_SHORTAGE_THRESHOLD = 75
DEFAULT_HISTORY_LIMIT = 200

EARTH_RADIUS_M = 6371e3

# Shown in logs instead of the full token value.
TOKEN_LOG_PREFIX_LEN = 8

# Column widths in schema.sql
MAX_SUBJECT_LENGTH = 150
MAX_TEXT_LENGTH = 255
