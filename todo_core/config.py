import os
from datetime import timedelta
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# How long a login stays valid
SESSION_DURATION = timedelta(hours=int(os.getenv("TODO_SESSION_HOURS", 24)))

# Reminder windows
DUE_SOON_DAYS = 7
STALE_AFTER_DAYS = 7

# Passwords shorter than this are rejected at registration
MIN_PASSWORD_LENGTH = 6

ALGORITHM = "HS256"

DEFAULT_DATA_DIR = Path.home() / ".todo_cli"


def get_data_dir() -> Path:
    """Directory holding users, todos, session and the markdown export."""
    return Path(os.getenv("TODO_DATA_DIR", str(DEFAULT_DATA_DIR))).expanduser()
