"""
Calculator handler module
Handles outlet inputs, the employee table, equal distribution and CSV export
"""

from html import escape
from telebot import TeleBot
from telebot.types import Message, InlineKeyboardMarkup, InlineKeyboardButton, CallbackQuery
import logging

from commission_bot.config import CSV_FILENAME, CURRENCY, MAX_EMPLOYEES
from commission_bot.handlers.start import show_panel
from commission_bot.services import commission, roster
from commission_bot.services.commission import DistributionError
from commission_bot.services.export import csv_document
from commission_bot.session import sessions, States, CalculatorState, RosterFullError
from commission_bot.utils.formatting import fmt_money, fmt_percent
from commission_bot.utils.messages import send_or_edit
from commission_bot.utils.validators import parse_number, parse_count

logger = logging.getLogger(__name__)


# Bot instance
bot: TeleBot = None

# Employee table paging, keeps a page under Telegram message and keyboard limits
ROWS_PER_PAGE = 20
NAME_DISPLAY_LIMIT = 32

PROMPTS = {
    States.OUTLET_TARGET: f"🎯 Enter the outlet target ({CURRENCY}):",
    States.OUTLET_ACHIEVEMENT: "📈 Enter outlet achievement in percent (88 means 88%):",
    States.EMPLOYEE_COUNT: "👥 Enter the number of employees:",
    States.ROW_NAME: "✏️ Enter the employee name:",
    States.ROW_SALES: f"💰 Enter the employee sales ({CURRENCY}):",
    States.ROW_TARGET: f"🎯 Enter the employee target ({CURRENCY}):",
}

ROW_FIELD_STATES = {
    "name": States.ROW_NAME,
    "sales": States.ROW_SALES,
    "target": States.ROW_TARGET,
}


def init_bot(bot_instance: TeleBot):
    """Initialize bot instance"""
    global bot
    bot = bot_instance
    register_handlers()


def register_handlers():
    """Register all handlers for this module"""
    bot.message_handler(commands=['rows'])(handle_rows)
    bot.message_handler(commands=['export'])(handle_export)
    bot.message_handler(commands=['cancel'])(handle_cancel)

    bot.callback_query_handler(func=lambda call: call.data == 'set_target')(start_outlet_target)
    bot.callback_query_handler(func=lambda call: call.data == 'set_achievement')(start_achievement)
    bot.callback_query_handler(func=lambda call: call.data == 'set_count')(start_employee_count)
    bot.callback_query_handler(func=lambda call: call.data == 'distribute')(handle_distribute)
    bot.callback_query_handler(func=lambda call: call.data == 'add_employee')(handle_add_employee)
    bot.callback_query_handler(func=lambda call: call.data == 'show_rows')(handle_show_rows)
    bot.callback_query_handler(func=lambda call: call.data.startswith('rows_page:'))(handle_rows_page)
    bot.callback_query_handler(func=lambda call: call.data == 'export_csv')(handle_export_callback)
    bot.callback_query_handler(func=lambda call: call.data.startswith('row:'))(handle_row)
    bot.callback_query_handler(func=lambda call: call.data.startswith('row_edit:'))(start_row_edit)
    bot.callback_query_handler(func=lambda call: call.data.startswith('row_del:'))(handle_row_delete)

    # Text replies only while a prompt is pending
    bot.message_handler(func=lambda message: _is_input_state(message), content_types=['text'])(handle_text_message)


def _is_input_state(message) -> bool:
    """Check whether the chat is waiting for a text reply"""
    return sessions.get_input(message.chat.id) in PROMPTS


def handle_cancel(message: Message):
    """Handle /cancel command - drop the pending prompt"""
    input_state = sessions.get_input(message.chat.id)

    if input_state:
        sessions.clear_input(message.chat.id)
        bot.reply_to(message, "❌ Input canceled")
        logger.info(f"Chat {message.chat.id} canceled input: {input_state}")
    else:
        bot.reply_to(message, "Nothing to cancel")


# Outlet inputs

def _prompt(call: CallbackQuery, input_state: str, **data):
    bot.answer_callback_query(call.id)
    sessions.set_input(call.message.chat.id, input_state, **data)
    bot.send_message(call.message.chat.id, PROMPTS[input_state])


def start_outlet_target(call: CallbackQuery):
    _prompt(call, States.OUTLET_TARGET)


def start_achievement(call: CallbackQuery):
    _prompt(call, States.OUTLET_ACHIEVEMENT)


def start_employee_count(call: CallbackQuery):
    _prompt(call, States.EMPLOYEE_COUNT)


def handle_text_message(message: Message):
    """Route a text reply to the pending prompt"""
    input_state = sessions.get_input(message.chat.id)

    if input_state == States.OUTLET_TARGET:
        process_outlet_target(message)
    elif input_state == States.OUTLET_ACHIEVEMENT:
        process_achievement(message)
    elif input_state == States.EMPLOYEE_COUNT:
        process_employee_count(message)
    elif input_state in (States.ROW_NAME, States.ROW_SALES, States.ROW_TARGET):
        process_row_field(message, input_state)


def process_outlet_target(message: Message):
    chat_id = message.chat.id
    sessions.set_outlet_target(chat_id, parse_number(message.text))
    sessions.clear_input(chat_id)
    show_panel(chat_id)


def process_achievement(message: Message):
    chat_id = message.chat.id
    sessions.set_achievement(chat_id, parse_number(message.text))
    sessions.clear_input(chat_id)
    show_panel(chat_id)


def process_employee_count(message: Message):
    chat_id = message.chat.id
    try:
        sessions.set_employee_count(chat_id, parse_count(message.text))
    except RosterFullError:
        bot.reply_to(message, f"❌ At most {MAX_EMPLOYEES} employees. {PROMPTS[States.EMPLOYEE_COUNT]}")
        return
    sessions.clear_input(chat_id)
    show_panel(chat_id)


# Roster actions

def handle_distribute(call: CallbackQuery):
    """Give every employee the equal share of the outlet target"""
    chat_id = call.message.chat.id

    try:
        per_employee = sessions.distribute(chat_id)
    except DistributionError:
        bot.answer_callback_query(call.id, "⚠️ Please enter the number of employees first.", show_alert=True)
        return

    bot.answer_callback_query(call.id, f"✅ {fmt_money(per_employee)} per employee")
    show_panel(chat_id, call.message.message_id)


def handle_add_employee(call: CallbackQuery):
    chat_id = call.message.chat.id
    try:
        row = sessions.add_employee(chat_id)
    except RosterFullError:
        bot.answer_callback_query(call.id, f"⚠️ At most {MAX_EMPLOYEES} employees.", show_alert=True)
        return
    bot.answer_callback_query(call.id, f"➕ {row.name} added")
    show_rows(chat_id, page=page_count(sessions.get(chat_id)) - 1)


def handle_rows(message: Message):
    """Handle /rows command"""
    show_rows(message.chat.id)


def handle_show_rows(call: CallbackQuery):
    bot.answer_callback_query(call.id)
    show_rows(call.message.chat.id, call.message.message_id)


def handle_rows_page(call: CallbackQuery):
    """Handle ◀️/▶️ buttons of the employee table"""
    bot.answer_callback_query(call.id)
    page = int(call.data.split(':', 1)[1])
    show_rows(call.message.chat.id, call.message.message_id, page)


# Employee table

def page_count(state: CalculatorState) -> int:
    return max(1, -(-len(state.rows) // ROWS_PER_PAGE))


def page_of(position: int) -> int:
    """Zero-based table page holding a 1-based row position"""
    return (position - 1) // ROWS_PER_PAGE


def _clamp_page(state: CalculatorState, page: int) -> int:
    return max(0, min(page, page_count(state) - 1))


def _short_name(name: str) -> str:
    if len(name) <= NAME_DISPLAY_LIMIT:
        return name
    return name[:NAME_DISPLAY_LIMIT - 1] + "…"


def render_rows(state: CalculatorState, page: int = 0) -> str:
    """One page of the employee table as message text"""
    if state.suggest_count <= 0 or not state.rows:
        return "👥 Enter the <b>number of employees</b> first to see the table and distribute targets."

    page = _clamp_page(state, page)
    pages = page_count(state)
    start = page * ROWS_PER_PAGE
    totals = state.totals()
    entries = list(zip(state.rows, totals.rows))[start:start + ROWS_PER_PAGE]

    text = "📋 <b>Employees</b>"
    if pages > 1:
        text += f" (page {page + 1}/{pages})"
    text += "\n\n"
    for position, (row, result) in enumerate(entries, start=start + 1):
        text += f"{position}. {escape(_short_name(row.name))}\n"
        text += f"   💰 Sales: {fmt_money(row.sales)} | 🎯 Target: {fmt_money(row.target)}\n"
        text += f"   📈 {fmt_percent(result.achievement, 1)} | Rate: {fmt_percent(result.rate)}"
        text += f" | 💵 {fmt_money(result.commission)}\n\n"
    return text.rstrip()


def rows_keyboard(state: CalculatorState, page: int = 0) -> InlineKeyboardMarkup:
    keyboard = InlineKeyboardMarkup(row_width=2)
    if state.suggest_count > 0:
        page = _clamp_page(state, page)
        start = page * ROWS_PER_PAGE
        for position, row in enumerate(state.rows[start:start + ROWS_PER_PAGE], start=start + 1):
            keyboard.add(InlineKeyboardButton(f"{position}. {_short_name(row.name)}", callback_data=f"row:{row.id}"))

        navigation = []
        if page > 0:
            navigation.append(InlineKeyboardButton("◀️", callback_data=f"rows_page:{page - 1}"))
        if page < page_count(state) - 1:
            navigation.append(InlineKeyboardButton("▶️", callback_data=f"rows_page:{page + 1}"))
        if navigation:
            keyboard.row(*navigation)
    keyboard.add(
        InlineKeyboardButton("➕ Add employee", callback_data="add_employee"),
        InlineKeyboardButton("⬅️ Back", callback_data="panel")
    )
    return keyboard


def show_rows(chat_id: int, message_id: int = None, page: int = 0):
    """Send a page of the employee table, or edit it in place"""
    state = sessions.get(chat_id)
    send_or_edit(bot, chat_id, render_rows(state, page), rows_keyboard(state, page), message_id)


# Employee card

def render_row(state: CalculatorState, position: int, row: roster.EmployeeRow) -> str:
    result = commission.calc_row(row.sales, row.target, state.outlet_tier)
    return f"""👤 <b>{position}. {escape(row.name)}</b>

— Sales: {fmt_money(row.sales)} {CURRENCY}
— Target: {fmt_money(row.target)} {CURRENCY}
— Personal achievement: {fmt_percent(result.achievement, 1)}
— Commission rate: {fmt_percent(result.rate)}
— New commission: {fmt_money(result.commission)} {CURRENCY}"""


def row_keyboard(row_id: str, page: int = 0) -> InlineKeyboardMarkup:
    keyboard = InlineKeyboardMarkup(row_width=3)
    keyboard.add(
        InlineKeyboardButton("✏️ Name", callback_data=f"row_edit:name:{row_id}"),
        InlineKeyboardButton("💰 Sales", callback_data=f"row_edit:sales:{row_id}"),
        InlineKeyboardButton("🎯 Target", callback_data=f"row_edit:target:{row_id}")
    )
    keyboard.add(
        InlineKeyboardButton("🗑 Delete", callback_data=f"row_del:{row_id}"),
        InlineKeyboardButton("⬅️ Back", callback_data=f"rows_page:{page}")
    )
    return keyboard


def show_row(chat_id: int, row_id: str, message_id: int = None) -> bool:
    """Show one employee card, False if the row no longer exists"""
    state = sessions.get(chat_id)
    position, row = roster.find_row(state.rows, row_id)
    if row is None:
        return False

    send_or_edit(bot, chat_id, render_row(state, position, row), row_keyboard(row_id, page_of(position)), message_id)
    return True


def handle_row(call: CallbackQuery):
    row_id = call.data.split(':', 1)[1]
    if not show_row(call.message.chat.id, row_id, call.message.message_id):
        bot.answer_callback_query(call.id, "❌ Employee not found")
        return
    bot.answer_callback_query(call.id)


def start_row_edit(call: CallbackQuery):
    _, field_name, row_id = call.data.split(':', 2)
    _prompt(call, ROW_FIELD_STATES[field_name], row_id=row_id, field=field_name)


def process_row_field(message: Message, input_state: str):
    """Apply a reply to the employee field being edited"""
    chat_id = message.chat.id
    row_id = sessions.get_input_data(chat_id, 'row_id')
    field_name = sessions.get_input_data(chat_id, 'field')

    if input_state == States.ROW_NAME:
        value = message.text.strip()
        if not value:
            bot.reply_to(message, "❌ Name cannot be empty. Enter the employee name:")
            return
    else:
        value = parse_number(message.text)

    sessions.edit_employee(chat_id, row_id, field_name, value)
    sessions.clear_input(chat_id)

    if not show_row(chat_id, row_id):
        bot.reply_to(message, "❌ Employee not found")


def handle_row_delete(call: CallbackQuery):
    chat_id = call.message.chat.id
    row_id = call.data.split(':', 1)[1]
    position, _ = roster.find_row(sessions.get(chat_id).rows, row_id)
    sessions.remove_employee(chat_id, row_id)
    bot.answer_callback_query(call.id, "🗑 Employee deleted")
    show_rows(chat_id, call.message.message_id, page_of(position) if position else 0)


# Export

def send_export(chat_id: int):
    """Send the employee table as a CSV document"""
    state = sessions.get(chat_id)
    try:
        bot.send_document(
            chat_id,
            csv_document(state.rows, CSV_FILENAME),
            caption="📄 Employee targets export"
        )
        logger.info(f"Exported {len(state.rows)} rows for chat {chat_id}")
    except Exception as e:
        logger.error(f"Error exporting CSV for chat {chat_id}: {e}")
        bot.send_message(chat_id, "❌ Export failed")


def handle_export(message: Message):
    """Handle /export command"""
    send_export(message.chat.id)


def handle_export_callback(call: CallbackQuery):
    bot.answer_callback_query(call.id)
    send_export(call.message.chat.id)
