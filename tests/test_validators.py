import unittest
from unittest.mock import MagicMock

from gmail_relay.utils.config import Config
from gmail_relay.utils.validators import check_default_credentials


class TestValidators(unittest.TestCase):
    def setUp(self):
        self.config = MagicMock(spec=Config)
        self.config.telegram = MagicMock(bot_token="987654:real", channel_id="@news", chat_id="")
        self.config.translation = MagicMock(gemini_api_key="real-key")

    def test_no_defaults_clean(self):
        self.assertEqual(check_default_credentials(self.config), [])

    def test_default_bot_token(self):
        self.config.telegram.bot_token = "your-telegram-bot-token"
        errors = check_default_credentials(self.config)
        self.assertIn("Telegram bot token is still the example placeholder", errors)

    def test_default_api_key(self):
        self.config.translation.gemini_api_key = "your-gemini-api-key"
        errors = check_default_credentials(self.config)
        self.assertIn("Gemini API key is still the example placeholder", errors)

    def test_default_destinations(self):
        self.config.telegram.channel_id = "@your_channel"
        self.config.telegram.chat_id = "your-chat-id"
        errors = check_default_credentials(self.config)
        self.assertEqual(len(errors), 2)

    def test_empty_chat_id_is_not_placeholder(self):
        self.config.telegram.chat_id = ""
        self.assertEqual(check_default_credentials(self.config), [])


if __name__ == '__main__':
    unittest.main()
