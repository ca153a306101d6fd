import logging
import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATA_DIR = os.getenv("VENUE_BOOKING_DATA_DIR", "data")
LOG_LEVEL = os.getenv("VENUE_BOOKING_LOG_LEVEL", "INFO").upper()

# Listing endpoints
DEFAULT_PAGE_SIZE = int(os.getenv("VENUE_BOOKING_PAGE_SIZE", "10"))
MAX_PAGE_SIZE = 100

# Seconds an insert waits for another request holding the same venue
LOCK_TIMEOUT_SECONDS = float(os.getenv("VENUE_BOOKING_LOCK_TIMEOUT", "10"))

HOST = os.getenv("VENUE_BOOKING_HOST", "127.0.0.1")
PORT = int(os.getenv("VENUE_BOOKING_PORT", "5000"))


def configure_logging(level: str | None = None) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(level or LOG_LEVEL)
    if root_logger.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s"))
    root_logger.addHandler(handler)
