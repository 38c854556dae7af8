"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_LOCATION = "default"
DEFAULT_DEPARTMENT = "general"

MIN_RETENTION_YEARS = 4

DEFAULT_CHECKIN_LEAD_MINUTES = 30
DEFAULT_CHECKOUT_LEAD_MINUTES = 15
DEFAULT_POLL_INTERVAL_MINUTES = 5
MIN_POLL_INTERVAL_MINUTES = 1

# How late a tick may still dispatch a reminder after its scheduled instant.
REMINDER_WINDOW_MINUTES = 5

DEFAULT_SMTP_PORT = 587
DEFAULT_SEND_TIMEOUT_SECONDS = 10.0

DEFAULT_GEO_QUERY_LIMIT = 300
MIN_GEO_QUERY_LIMIT = 50
MAX_GEO_QUERY_LIMIT = 1000
