"""
Settings Module

Import engine configuration, read once from the environment (and an optional
.env file at the project root).
"""

import os
from pathlib import Path
from dotenv import load_dotenv


BASE_DIR = Path(__file__).resolve().parent.parent

load_dotenv(BASE_DIR / ".env")


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# --- Entity defaults ---
DEFAULT_CATEGORY = os.getenv("DEFAULT_CATEGORY", "General")
DEFAULT_MIN_STOCK = int(os.getenv("DEFAULT_MIN_STOCK", "5"))

# --- Diagnostics ---
# Only the first few rejected rows are logged so large malformed files
# do not flood the log.
REJECTED_ROW_LOG_LIMIT = int(os.getenv("REJECTED_ROW_LOG_LIMIT", "3"))

# --- Persistence ---
FETCH_SALES_LIMIT = int(os.getenv("FETCH_SALES_LIMIT", "1000"))

# --- Logging ---
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_TO_FILE = _env_flag("LOG_TO_FILE")
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")
