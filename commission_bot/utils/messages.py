"""
Telegram message helpers
"""

import logging
from telebot import TeleBot

logger = logging.getLogger(__name__)

# Telegram limits
MAX_MESSAGE_LENGTH = 4096
MAX_KEYBOARD_BUTTONS = 100


def send_or_edit(bot: TeleBot, chat_id: int, text: str, reply_markup=None, message_id: int = None) -> bool:
    """
    Send a new message, or edit an existing one in place

    Telegram refuses an edit that leaves the message unchanged, which
    happens on repeated button presses, so that case is only logged.

    Returns:
        True if the chat shows the text
    """
    try:
        if message_id is not None:
            bot.edit_message_text(text, chat_id, message_id, reply_markup=reply_markup)
        else:
            bot.send_message(chat_id, text, reply_markup=reply_markup)
        return True
    except Exception as e:
        if "message is not modified" in str(getattr(e, "description", e)):
            logger.debug(f"Message {message_id} in chat {chat_id} unchanged")
            return True
        logger.error(f"Failed to update message in chat {chat_id}: {e}")
        return False
