import os

SECRET_KEY = "test-secret"

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "campus_attendance_test"),
}

DEBUG = False
TESTING = True

LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

# If enabled, app will apply database/schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))

# Campus geofence anchor and radius
CAMPUS_LATITUDE = float(os.getenv("CAMPUS_LATITUDE", "5.6037"))
CAMPUS_LONGITUDE = float(os.getenv("CAMPUS_LONGITUDE", "-0.1870"))
CAMPUS_RADIUS_METERS = float(os.getenv("CAMPUS_RADIUS_METERS", "300"))

# Virtual session checks
VIRTUAL_GRACE_BEFORE_MINUTES = int(os.getenv("VIRTUAL_GRACE_BEFORE_MINUTES", "15"))
VIRTUAL_GRACE_AFTER_MINUTES = int(os.getenv("VIRTUAL_GRACE_AFTER_MINUTES", "15"))
VIRTUAL_MIN_DURATION_RATIO = float(os.getenv("VIRTUAL_MIN_DURATION_RATIO", "0.75"))
# Comma separated, e.g. "zoom.us,meet.google.com,teams.microsoft.com"; empty allows any host
VIRTUAL_ALLOWED_MEETING_HOSTS = os.getenv("VIRTUAL_ALLOWED_MEETING_HOSTS", "")
