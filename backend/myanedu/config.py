"""
Runtime configuration read from environment variables.

Every setting has a development default so the API boots against a local
SQLite file without any environment set up. Values are read once at import.
"""

import os

# Database: PostgreSQL in production, SQLite fallback for local development
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./myanedu.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Access window granted when a payment is verified
ACCESS_PERIOD_DAYS = int(os.getenv("ACCESS_PERIOD_DAYS", "30"))

# Expiry given to a freshly created enrollment before any payment is verified
ENROLLMENT_GRACE_DAYS = int(os.getenv("ENROLLMENT_GRACE_DAYS", "30"))

# Media host (receipts, lesson videos, profile images)
MEDIA_UPLOAD_URL = os.getenv("MEDIA_UPLOAD_URL", "")
MEDIA_API_KEY = os.getenv("MEDIA_API_KEY", "")
MEDIA_UPLOAD_PRESET = os.getenv("MEDIA_UPLOAD_PRESET", "")
MEDIA_FOLDER = os.getenv("MEDIA_FOLDER", "myanedu_lessons")
MEDIA_TIMEOUT_SECONDS = float(os.getenv("MEDIA_TIMEOUT_SECONDS", "60"))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

NOTIFICATION_LIST_LIMIT = 20
