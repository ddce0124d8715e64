"""
Unit tests for Telegram message helpers
"""

import unittest
from unittest.mock import Mock, patch
from telebot.apihelper import ApiTelegramException

from commission_bot.handlers.start import show_panel
from commission_bot.session import CalculatorState
from commission_bot.utils.messages import send_or_edit


def _telegram_error(description):
    return ApiTelegramException(
        "editMessageText",
        Mock(status_code=400),
        {"ok": False, "error_code": 400, "description": description}
    )


class TestSendOrEdit(unittest.TestCase):
    """Test cases for sending and editing messages"""

    def setUp(self):
        self.bot = Mock()

    def test_sends_new_message(self):
        self.assertTrue(send_or_edit(self.bot, 1, "hi"))

        self.bot.send_message.assert_called_once_with(1, "hi", reply_markup=None)
        self.bot.edit_message_text.assert_not_called()

    def test_edits_existing_message(self):
        keyboard = Mock()

        self.assertTrue(send_or_edit(self.bot, 1, "hi", keyboard, message_id=5))

        self.bot.edit_message_text.assert_called_once_with("hi", 1, 5, reply_markup=keyboard)

    def test_unchanged_message_is_not_an_error(self):
        self.bot.edit_message_text.side_effect = _telegram_error(
            "Bad Request: message is not modified: specified new message content and reply markup "
            "are exactly the same as a current content and reply markup of the message"
        )

        with self.assertLogs('commission_bot.utils.messages', level='DEBUG') as logs:
            self.assertTrue(send_or_edit(self.bot, 1, "hi", message_id=5))

        self.assertFalse([r for r in logs.records if r.levelname == 'ERROR'])

    def test_other_errors_are_logged(self):
        self.bot.edit_message_text.side_effect = _telegram_error("Bad Request: message to edit not found")

        with self.assertLogs('commission_bot.utils.messages', level='ERROR'):
            self.assertFalse(send_or_edit(self.bot, 1, "hi", message_id=5))

    def test_send_failure_is_logged(self):
        self.bot.send_message.side_effect = Exception("network")

        with self.assertLogs('commission_bot.utils.messages', level='ERROR'):
            self.assertFalse(send_or_edit(self.bot, 1, "hi"))


class TestRepeatedPanelPress(unittest.TestCase):
    """Pressing a button that redraws the same panel twice"""

    @patch('commission_bot.handlers.start.bot')
    @patch('commission_bot.handlers.start.sessions')
    def test_show_panel_survives_unchanged_edit(self, mock_sessions, mock_bot):
        mock_sessions.get.return_value = CalculatorState()
        mock_bot.edit_message_text.side_effect = _telegram_error("Bad Request: message is not modified")

        show_panel(12345, message_id=77)
        show_panel(12345, message_id=77)

        self.assertEqual(mock_bot.edit_message_text.call_count, 2)
        mock_bot.send_message.assert_not_called()


if __name__ == '__main__':
    unittest.main()
