import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "hr_portal_test"),
}

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

SESSION_DAYS = 1

OFFICE_LOCATION = {"lat": 19.05973973209058, "lng": 73.11899471349244}
GEOFENCE_RADIUS_METERS = 200.0

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "/tmp/hr_portal_test_uploads")
MAX_UPLOAD_BYTES = 5 * 1024 * 1024

SMTP_HOST = "localhost"
SMTP_PORT = 25
SMTP_EMAIL = ""
SMTP_PASSWORD = ""
MAIL_FROM_NAME = "HR Portal"
NOTIFICATIONS_ENABLED = False
