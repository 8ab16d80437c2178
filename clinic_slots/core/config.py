# clinic_slots/core/config.py
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(dotenv_path=env_path)


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./clinic_slots.db")
DB_ECHO = _env_bool("DB_ECHO")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Optimistic-lock retries for a single slot/schedule/block write
SLOT_BOOKING_MAX_RETRIES = int(os.getenv("SLOT_BOOKING_MAX_RETRIES", "3"))

# Configuration used when a staff member has no active slot configuration
DEFAULT_SLOT_DURATION_MINUTES = int(os.getenv("DEFAULT_SLOT_DURATION_MINUTES", "30"))
DEFAULT_BUFFER_TIME_MINUTES = int(os.getenv("DEFAULT_BUFFER_TIME_MINUTES", "0"))
DEFAULT_MAX_PATIENTS_PER_SLOT = int(os.getenv("DEFAULT_MAX_PATIENTS_PER_SLOT", "1"))
DEFAULT_ADVANCE_BOOKING_DAYS = int(os.getenv("DEFAULT_ADVANCE_BOOKING_DAYS", "30"))
