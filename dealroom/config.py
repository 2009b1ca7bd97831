import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./dealroom.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Frontend base URL, used to build links carried in notification context
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")

# Slots without an explicit timezone are stored with this IANA identifier
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "UTC")

# Offer rules
NON_ECONOMIC_NOTE_MIN_LENGTH = int(os.getenv("NON_ECONOMIC_NOTE_MIN_LENGTH", "20"))

# Default agenda seeded for a resource that has no availability yet
DEFAULT_AVAILABILITY_BUSINESS_DAYS = int(os.getenv("DEFAULT_AVAILABILITY_BUSINESS_DAYS", "7"))
# Comma separated HH:MM-HH:MM windows
DEFAULT_AVAILABILITY_WINDOWS = os.getenv(
    "DEFAULT_AVAILABILITY_WINDOWS", "10:00-11:00,15:00-16:00"
)
DEFAULT_AVAILABILITY_NOTE = os.getenv("DEFAULT_AVAILABILITY_NOTE", "Generated automatically")

# Reasons recorded when a party rejects or cancels without giving one
DEFAULT_REJECTION_REASON = os.getenv("DEFAULT_REJECTION_REASON", "No reason provided")
DEFAULT_CANCELLATION_REASON = os.getenv("DEFAULT_CANCELLATION_REASON", "No reason provided")
