"""
Per-chat calculator sessions
Outlet inputs, employee rows and the pending input prompt of each chat
"""

import logging
from typing import Dict, Any, List, Optional
from dataclasses import dataclass, field, asdict

from commission_bot import config, sheets
from commission_bot.services import commission, roster
from commission_bot.services.roster import EmployeeRow
from commission_bot.utils.validators import parse_number

logger = logging.getLogger(__name__)


class RosterFullError(ValueError):
    """Employee count would exceed MAX_EMPLOYEES"""


@dataclass
class CalculatorState:
    """Calculator state of one chat"""
    outlet_target: float = field(default_factory=lambda: config.DEFAULT_OUTLET_TARGET)
    outlet_achievement_percent: float = 0.0
    suggest_count: int = 0
    rows: List[EmployeeRow] = field(default_factory=list)
    input_state: Optional[str] = None
    input_data: Dict[str, Any] = field(default_factory=dict)

    @property
    def outlet_tier(self) -> commission.Tier:
        return commission.tier((self.outlet_achievement_percent or 0) / 100)

    def totals(self) -> commission.Totals:
        return commission.aggregate(self.rows, self.outlet_tier)

    def suggested_target(self) -> int:
        """Equal per-employee target, 0 while no employee count is set"""
        if self.suggest_count > 0:
            return commission.equal_target(self.outlet_target, self.suggest_count)
        return 0

    def meta(self) -> Dict[str, Any]:
        return {
            "outlet_target": self.outlet_target,
            "outlet_achievement_percent": self.outlet_achievement_percent,
            "suggest_count": self.suggest_count,
        }


class SessionStore:
    """In-process calculator sessions with optional Sheets persistence"""

    def __init__(self, persistence_enabled: bool = None):
        if persistence_enabled is None:
            persistence_enabled = config.PERSISTENCE_ENABLED
        self.persistence_enabled = persistence_enabled
        self._sessions: Dict[int, CalculatorState] = {}

    def get(self, chat_id: int) -> CalculatorState:
        """Get chat state, restoring it from storage on first access"""
        if chat_id not in self._sessions:
            self._sessions[chat_id] = self._restore(chat_id) if self.persistence_enabled else CalculatorState()
        return self._sessions[chat_id]

    def start(self, chat_id: int) -> CalculatorState:
        """
        Open the calculator for a chat

        With persistence on the stored state is kept, otherwise the chat
        starts empty and anything stored earlier is wiped.
        """
        if self.persistence_enabled:
            state = self.get(chat_id)
            self.clear_input(chat_id)
            return state

        self._sessions[chat_id] = CalculatorState()
        if sheets.is_configured():
            try:
                sheets.clear_chat(chat_id)
                logger.info(f"Cleared stored state for chat {chat_id}")
            except Exception as e:
                logger.error(f"Failed to clear stored state for chat {chat_id}: {e}")
        return self._sessions[chat_id]

    # Outlet inputs

    def set_outlet_target(self, chat_id: int, value: float) -> CalculatorState:
        state = self.get(chat_id)
        state.outlet_target = value
        logger.info(f"Chat {chat_id} outlet target: {value}")
        self._save(chat_id, meta=True)
        return state

    def set_achievement(self, chat_id: int, percent: float) -> CalculatorState:
        state = self.get(chat_id)
        state.outlet_achievement_percent = percent
        logger.info(f"Chat {chat_id} outlet achievement: {percent}% ({state.outlet_tier.name})")
        self._save(chat_id, meta=True)
        return state

    def set_employee_count(self, chat_id: int, count: int) -> CalculatorState:
        """
        Set the employee count and resize the roster to match

        Raises:
            RosterFullError: if count is above MAX_EMPLOYEES
        """
        if count > config.MAX_EMPLOYEES:
            raise RosterFullError(f"At most {config.MAX_EMPLOYEES} employees are supported")
        state = self.get(chat_id)
        state.suggest_count = count
        state.rows = roster.resize_rows(state.rows, count)
        logger.info(f"Chat {chat_id} employee count: {count}")
        self._save(chat_id, meta=True, rows=True)
        return state

    # Roster

    def add_employee(self, chat_id: int) -> EmployeeRow:
        """
        Append a default employee

        Raises:
            RosterFullError: if the roster already has MAX_EMPLOYEES rows
        """
        state = self.get(chat_id)
        if len(state.rows) >= config.MAX_EMPLOYEES:
            raise RosterFullError(f"At most {config.MAX_EMPLOYEES} employees are supported")
        state.rows = roster.add_row(state.rows, state.suggested_target())
        self._save(chat_id, rows=True)
        return state.rows[-1]

    def remove_employee(self, chat_id: int, row_id: str) -> CalculatorState:
        state = self.get(chat_id)
        state.rows = roster.remove_row(state.rows, row_id)
        self._save(chat_id, rows=True)
        return state

    def edit_employee(self, chat_id: int, row_id: str, field_name: str, value) -> CalculatorState:
        state = self.get(chat_id)
        state.rows = roster.update_row(state.rows, row_id, field_name, value)
        logger.debug(f"Chat {chat_id} row {row_id}: {field_name}={value}")
        self._save(chat_id, rows=True)
        return state

    def distribute(self, chat_id: int) -> int:
        """
        Give every employee the equal target

        Raises:
            DistributionError: if no employee count is set
        """
        state = self.get(chat_id)
        per_employee = commission.equal_target(state.outlet_target, state.suggest_count)
        state.rows = roster.distribute_equally(state.rows, per_employee)
        logger.info(f"Chat {chat_id} distributed {per_employee} per employee")
        self._save(chat_id, rows=True)
        return per_employee

    # Pending input prompt

    def set_input(self, chat_id: int, input_state: str, **data):
        state = self.get(chat_id)
        state.input_state = input_state
        state.input_data = dict(data)
        logger.info(f"Set input state for chat {chat_id}: {input_state}")

    def get_input(self, chat_id: int) -> Optional[str]:
        return self.get(chat_id).input_state

    def get_input_data(self, chat_id: int, key: str = None) -> Any:
        data = self.get(chat_id).input_data
        if key is None:
            return data.copy()
        return data.get(key)

    def clear_input(self, chat_id: int):
        state = self.get(chat_id)
        state.input_state = None
        state.input_data.clear()

    # Storage

    def _restore(self, chat_id: int) -> CalculatorState:
        state = CalculatorState()
        try:
            meta = sheets.load_meta(chat_id)
            if meta:
                state.outlet_target = parse_number(str(meta.get("outlet_target", "")))
                state.outlet_achievement_percent = parse_number(str(meta.get("outlet_achievement_percent", "")))
                state.suggest_count = min(int(parse_number(str(meta.get("suggest_count", "")))), config.MAX_EMPLOYEES)
            state.rows = [
                EmployeeRow(
                    id=str(record.get("id")),
                    name=str(record.get("name", "")),
                    sales=parse_number(str(record.get("sales", ""))),
                    target=parse_number(str(record.get("target", ""))),
                )
                for record in sheets.load_rows(chat_id)[:config.MAX_EMPLOYEES]
            ]
            logger.info(f"Restored chat {chat_id}: {len(state.rows)} rows")
        except Exception as e:
            logger.error(f"Failed to restore chat {chat_id}: {e}")
        return state

    def _save(self, chat_id: int, meta: bool = False, rows: bool = False):
        if not self.persistence_enabled:
            return
        state = self._sessions[chat_id]
        try:
            if meta:
                sheets.save_meta(chat_id, state.meta())
            if rows:
                sheets.save_rows(chat_id, [asdict(row) for row in state.rows])
        except Exception as e:
            logger.error(f"Failed to save chat {chat_id}: {e}")


# Global session store
sessions = SessionStore()


# Pending input states
class States:
    """Prompts waiting for a text reply"""

    OUTLET_TARGET = "outlet_target"
    OUTLET_ACHIEVEMENT = "outlet_achievement"
    EMPLOYEE_COUNT = "employee_count"

    ROW_NAME = "row_name"
    ROW_SALES = "row_sales"
    ROW_TARGET = "row_target"
