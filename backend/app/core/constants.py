"""
Shared constants
"""

EMIRATES = [
    "Abu Dhabi",
    "Dubai",
    "Sharjah",
    "Ajman",
    "Umm Al Quwain",
    "Ras Al Khaimah",
    "Fujairah",
]

# Police stations and jails also file under these.
FACILITY_EMIRATES = EMIRATES + ["Al Ain", "Others"]

ALLOWED_FILE_TYPES = [
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
]

CASE_NUMBER_PREFIX = "CASE"
INVOICE_PREFIX = "INV"
CLIENT_NUMBER_PREFIX = "CL"

OTP_LENGTH = 6
OTP_EXPIRY_SECONDS = 600
OTP_MAX_ATTEMPTS = 5

TWO_FACTOR_MAX_ATTEMPTS = 5
TWO_FACTOR_LOCK_MINUTES = 15

PASSWORD_RESET_REQUEST_HOURS = 24
MIN_PASSWORD_LENGTH = 6
# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72

DEFAULT_CASE_PAGE_SIZE = 20
DEFAULT_USER_PAGE_SIZE = 50

# Matches nothing; used when a scoped user has no emirates assigned.
NO_EMIRATE_SENTINEL = "__NONE__"
