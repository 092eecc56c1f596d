"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_PAGE = 1
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

JWT_ALGORITHM = "HS256"
DEFAULT_JWT_EXPIRES_DAYS = 7

MIN_PASSWORD_LENGTH = 6
DEFAULT_LANGUAGE_CODE = "en"

DEFAULT_OFFICE_CAPACITY = 50
OVERTIME_THRESHOLD_HOURS = 8

SERVICE_CARD_PREFIX = "SC"
SERVICE_CARD_VALIDITY_YEARS = 1

CANCELLATION_PREFIX = "Cancellation reason: "
