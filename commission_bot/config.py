"""
Configuration module for Commission Calculator Bot
Loads environment variables and provides typed constants
"""

import os
from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _get_int(name: str, default: str) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        raise RuntimeError(f"{name} must be an integer")


def _get_float(name: str, default: str) -> float:
    try:
        return float(os.getenv(name, default))
    except ValueError:
        raise RuntimeError(f"{name} must be a number")


def _get_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


# Bot configuration
BOT_TOKEN: str = os.getenv("BOT_TOKEN", "")

# Google Sheets configuration
SPREADSHEET_ID: str = os.getenv("SPREADSHEET_ID", "")
GSPREAD_CREDENTIALS: str = os.getenv("GSPREAD_CREDENTIALS", "credentials.json")

# Restore and save calculator state between restarts.
# When off, stored state for a chat is cleared on /start.
PERSISTENCE_ENABLED: bool = _get_bool("PERSISTENCE_ENABLED", "false")

# Calculator defaults
DEFAULT_OUTLET_TARGET: float = _get_float("DEFAULT_OUTLET_TARGET", "1000000")
CURRENCY: str = os.getenv("CURRENCY", "SAR")
THOUSANDS_SEPARATOR: str = os.getenv("THOUSANDS_SEPARATOR", ",")
CSV_FILENAME: str = os.getenv("CSV_FILENAME", "commission_calculator.csv")

# Upper bound for the employee count of one chat
MAX_EMPLOYEES: int = _get_int("MAX_EMPLOYEES", "200")
if MAX_EMPLOYEES <= 0:
    raise RuntimeError("MAX_EMPLOYEES must be greater than zero")

# Bot settings
REPLY_TIMEOUT: int = _get_int("REPLY_TIMEOUT", "10")


def validate() -> None:
    """Check settings required to start the bot"""
    if not BOT_TOKEN:
        raise RuntimeError("BOT_TOKEN is required in environment variables")
    if PERSISTENCE_ENABLED and not SPREADSHEET_ID:
        raise RuntimeError("SPREADSHEET_ID is required when PERSISTENCE_ENABLED is on")
