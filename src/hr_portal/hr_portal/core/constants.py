"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_SESSION_DAYS = 7
DEFAULT_HISTORY_DAYS = 30

# Office geofence
OFFICE_LATITUDE = 19.05973973209058
OFFICE_LONGITUDE = 73.11899471349244
GEOFENCE_RADIUS_METERS = 200
EARTH_RADIUS_METERS = 6371e3

# Leave / LOP
DEFAULT_LEAVE_BALANCE = 25
LOP_DAY_DIVISOR = 30
MAX_REGULARIZATION_REQUESTS = 3
NO_REASON_PROVIDED = "No reason provided"

# Employees
DEFAULT_WORK_LOCATION = "Hyderabad"
DEFAULT_ADDRESS = "Not Provided"
TEMP_PASSWORD = "temp123"
MIN_PASSWORD_LENGTH = 6

# Payroll defaults when no payroll config row is stored
DEFAULT_TAX_MIN_INCOME = 50000
DEFAULT_TAX_PERCENTAGE = 5

# Uploads
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
RECEIPT_CONTENT_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "application/pdf"})
RECEIPT_EXTENSIONS = frozenset({".jpeg", ".jpg", ".png", ".pdf"})
PHOTO_CONTENT_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"})

RECENT_COMPLETED_TRIPS = 20
