#!/usr/bin/env python3
"""
Commission Calculator Bot - Main Entry Point
"""

import logging
from telebot import TeleBot

from commission_bot import config


# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def main():
    """Initialize and start the bot"""
    config.validate()

    bot = TeleBot(config.BOT_TOKEN, parse_mode="HTML")

    # Import and initialize handlers
    from commission_bot.handlers import start, calculator

    # Order matters: commands before the pending-input text handler
    start.init_bot(bot)
    calculator.init_bot(bot)

    logger.info(f"Bot started successfully (persistence {'on' if config.PERSISTENCE_ENABLED else 'off'})")

    # Start polling
    try:
        bot.infinity_polling(timeout=config.REPLY_TIMEOUT)
    except KeyboardInterrupt:
        logger.info("Bot stopped by user")
    except Exception as e:
        logger.error(f"Bot error: {e}")
        raise


if __name__ == "__main__":
    main()
