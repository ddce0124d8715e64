"""
Start handler module
Handles /start and /help and renders the calculator panel
"""

from telebot import TeleBot
from telebot.types import Message, InlineKeyboardMarkup, InlineKeyboardButton, CallbackQuery
import logging

from commission_bot.config import CURRENCY
from commission_bot.session import sessions, CalculatorState
from commission_bot.utils.formatting import fmt_money, fmt_percent
from commission_bot.utils.messages import send_or_edit

logger = logging.getLogger(__name__)


# Get bot instance from main module
bot: TeleBot = None

HELP_TEXT = """ℹ️ <b>How commission is calculated</b>

Outlet commission depends on outlet achievement:
— 100% and above: 2%
— 90% and above: 1%
— 80% and above: 0.5%
— below 80%: 0%

At 2% or 0.5% the new rule applies: employee rate = personal achievement × outlet commission.
At 1% (or 0) the old rule applies: employee commission = outlet commission × sales."""


def init_bot(bot_instance: TeleBot):
    """Initialize bot instance"""
    global bot
    bot = bot_instance
    register_handlers()


def register_handlers():
    """Register all handlers for this module"""
    bot.message_handler(commands=['start'])(handle_start)
    bot.message_handler(commands=['help'])(handle_help)
    bot.callback_query_handler(func=lambda call: call.data == 'panel')(handle_panel)


def handle_start(message: Message):
    """Handle /start command"""
    sessions.start(message.chat.id)
    logger.info(f"Calculator opened in chat {message.chat.id}")
    show_panel(message.chat.id)


def handle_help(message: Message):
    """Handle /help command"""
    bot.reply_to(message, HELP_TEXT)


def handle_panel(call: CallbackQuery):
    """Handle back-to-panel button"""
    bot.answer_callback_query(call.id)
    show_panel(call.message.chat.id, call.message.message_id)


def _target_status(difference: float) -> str:
    if difference == 0:
        return "🟢"
    return "🟡" if difference > 0 else "🔴"


def render_panel(state: CalculatorState) -> str:
    """Outlet inputs and roster totals as message text"""
    totals = state.totals()
    difference = totals.target_difference(state.outlet_target)
    suggested = fmt_money(state.suggested_target()) if state.suggest_count > 0 else "—"

    return f"""🧮 <b>Target & Commission Calculator</b>

<b>Outlet</b>
— Target: {fmt_money(state.outlet_target)} {CURRENCY}
— Achievement: {state.outlet_achievement_percent:g}%
— Outlet commission: {fmt_percent(state.outlet_tier.rate)}
— Employees: {state.suggest_count}
— Equal target per employee: {suggested}

{_target_status(difference)} Employee targets: {fmt_money(totals.total_targets)} (difference: {fmt_money(difference)})

<b>Totals</b>
— Total sales: {fmt_money(totals.total_sales)} {CURRENCY}
— Total employee targets: {fmt_money(totals.total_targets)} {CURRENCY}
— Average achievement: {fmt_percent(totals.avg_achievement, 1)}
— Average commission rate: {fmt_percent(totals.avg_rate)}
— Total new commission: {fmt_money(totals.total_commission)} {CURRENCY}"""


def panel_keyboard() -> InlineKeyboardMarkup:
    keyboard = InlineKeyboardMarkup(row_width=2)
    keyboard.add(
        InlineKeyboardButton("🎯 Outlet target", callback_data="set_target"),
        InlineKeyboardButton("📈 Achievement %", callback_data="set_achievement"),
        InlineKeyboardButton("👥 Employees", callback_data="set_count"),
        InlineKeyboardButton("⚖️ Equal targets", callback_data="distribute"),
        InlineKeyboardButton("➕ Add employee", callback_data="add_employee"),
        InlineKeyboardButton("📋 Employee table", callback_data="show_rows"),
        InlineKeyboardButton("📄 Export CSV", callback_data="export_csv")
    )
    return keyboard


def show_panel(chat_id: int, message_id: int = None):
    """Send the calculator panel, or edit it in place"""
    text = render_panel(sessions.get(chat_id))
    send_or_edit(bot, chat_id, text, panel_keyboard(), message_id)
