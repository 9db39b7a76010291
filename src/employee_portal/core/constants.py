"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SKIP = 0
DEFAULT_TAKE = 10
MAX_TAKE = 100
DEFAULT_SORT_BY = "createdAt"
SORTABLE_FIELDS = ("name", "age", "class", "createdAt", "updatedAt")

OTP_LENGTH = 6
DEFAULT_OTP_TTL_MINUTES = 10
DEFAULT_TOKEN_DAYS = 7

DEFAULT_MAX_QUERY_DEPTH = 7
DEFAULT_SLOW_OPERATION_MS = 1000
