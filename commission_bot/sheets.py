"""
Google Sheets integration module
Key-value cache of calculator state per chat
"""

import time
import logging
import threading
import gspread
from typing import Optional, Dict, Any, List
from google.oauth2.service_account import Credentials
from gspread.exceptions import APIError

from commission_bot.config import GSPREAD_CREDENTIALS, SPREADSHEET_ID

logger = logging.getLogger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
]

META_COLUMNS = ["chat_id", "outlet_target", "outlet_achievement_percent", "suggest_count"]
ROW_COLUMNS = ["chat_id", "position", "id", "name", "sales", "target"]

# Global variables for caching
_spreadsheet: Optional[gspread.Spreadsheet] = None
_gc: Optional[gspread.Client] = None

# Deletes address rows by absolute number, so read-delete-append
# sequences from different handler threads must not interleave
_write_lock = threading.Lock()


def _get_client() -> gspread.Client:
    """Get authenticated gspread client with caching"""
    global _gc
    if _gc is None:
        credentials = Credentials.from_service_account_file(GSPREAD_CREDENTIALS, scopes=SCOPES)
        _gc = gspread.authorize(credentials)
    return _gc


def sh() -> gspread.Spreadsheet:
    """Get spreadsheet instance with caching"""
    global _spreadsheet
    if _spreadsheet is None:
        client = _get_client()
        _spreadsheet = client.open_by_key(SPREADSHEET_ID)
    return _spreadsheet


def meta_ws() -> gspread.Worksheet:
    """Get Meta worksheet"""
    return sh().worksheet("Meta")


def rows_ws() -> gspread.Worksheet:
    """Get Rows worksheet"""
    return sh().worksheet("Rows")


def is_configured() -> bool:
    return bool(SPREADSHEET_ID)


def _retry_api_call(func, max_retries: int = 3, backoff_factor: float = 1.0):
    """Retry API call with exponential backoff"""
    for attempt in range(max_retries):
        try:
            return func()
        except APIError as e:
            if e.response.status_code == 429 and attempt < max_retries - 1:
                wait_time = backoff_factor * (2 ** attempt)
                logger.warning(f"Sheets rate limit hit, retrying in {wait_time}s")
                time.sleep(wait_time)
                continue
            raise
    return None


def _chat_row_numbers(records: List[Dict[str, Any]], chat_id: int) -> List[int]:
    """Sheet row numbers (header is row 1) belonging to a chat"""
    return [i for i, record in enumerate(records, start=2) if str(record.get("chat_id")) == str(chat_id)]


def _delete_chat_rows(ws: gspread.Worksheet, chat_id: int) -> None:
    # Bottom-up so earlier row numbers stay valid, caller holds _write_lock
    for row_number in reversed(_chat_row_numbers(ws.get_all_records(), chat_id)):
        ws.delete_rows(row_number)


def load_meta(chat_id: int) -> Optional[Dict[str, Any]]:
    """Get stored outlet metadata for a chat"""
    def _get():
        for record in meta_ws().get_all_records():
            if str(record.get("chat_id")) == str(chat_id):
                return record
        return None

    return _retry_api_call(_get)


def save_meta(chat_id: int, meta: Dict[str, Any]) -> None:
    """Replace stored outlet metadata for a chat"""
    def _save():
        with _write_lock:
            ws = meta_ws()
            _delete_chat_rows(ws, chat_id)
            ws.append_row([
                chat_id,
                meta.get("outlet_target", 0),
                meta.get("outlet_achievement_percent", 0),
                meta.get("suggest_count", 0),
            ])

    _retry_api_call(_save)


def load_rows(chat_id: int) -> List[Dict[str, Any]]:
    """Get stored employee rows for a chat, ordered by position"""
    def _get():
        records = [r for r in rows_ws().get_all_records() if str(r.get("chat_id")) == str(chat_id)]
        records.sort(key=lambda r: int(r.get("position", 0) or 0))
        return records

    return _retry_api_call(_get) or []


def save_rows(chat_id: int, rows: List[Dict[str, Any]]) -> None:
    """Replace stored employee rows for a chat"""
    def _save():
        with _write_lock:
            ws = rows_ws()
            _delete_chat_rows(ws, chat_id)
            if rows:
                ws.append_rows([
                    [chat_id, position, row["id"], row["name"], row["sales"], row["target"]]
                    for position, row in enumerate(rows, start=1)
                ])

    _retry_api_call(_save)


def clear_chat(chat_id: int) -> None:
    """Remove every stored record of a chat"""
    def _clear():
        with _write_lock:
            _delete_chat_rows(meta_ws(), chat_id)
            _delete_chat_rows(rows_ws(), chat_id)

    _retry_api_call(_clear)
