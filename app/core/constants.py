"""
Constants
Centralised storage for the bug-record vocabulary and field limits.
"""
SEVERITIES = ("low", "medium", "high", "critical")
PRIORITIES = ("low", "medium", "high", "critical")
STATUSES = ("open", "in-progress", "resolved")

DEFAULT_SEVERITY = "medium"
DEFAULT_PRIORITY = "medium"
DEFAULT_STATUS = "open"

TITLE_MIN_LENGTH = 5
TITLE_MAX_LENGTH = 100
DESCRIPTION_MIN_LENGTH = 10
DESCRIPTION_MAX_LENGTH = 1000

MAX_TAGS = 5
TAG_MIN_LENGTH = 2

# Debug sink buffer sizes
MAX_LOG_ENTRIES = 100
MAX_ERROR_ENTRIES = 50
MAX_NETWORK_ENTRIES = 50
