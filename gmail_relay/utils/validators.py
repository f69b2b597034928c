from typing import List

from gmail_relay.utils.config import Config


# Placeholder values shipped in config.yaml.example
DEFAULT_BOT_TOKENS = ["your-telegram-bot-token", "123456:ABC-DEF"]
DEFAULT_API_KEYS = ["your-gemini-api-key"]
DEFAULT_DESTINATIONS = ["@your_channel", "your-chat-id"]


def check_default_credentials(config: Config) -> List[str]:
    """
    Check if the configuration still uses example placeholder values.
    Returns a list of error messages.
    """
    errors = []

    if config.telegram.bot_token in DEFAULT_BOT_TOKENS:
        errors.append("Telegram bot token is still the example placeholder")

    if config.translation.gemini_api_key in DEFAULT_API_KEYS:
        errors.append("Gemini API key is still the example placeholder")

    if config.telegram.channel_id in DEFAULT_DESTINATIONS:
        errors.append(f"Telegram channel_id uses the example value: {config.telegram.channel_id}")

    if config.telegram.chat_id in DEFAULT_DESTINATIONS:
        errors.append(f"Telegram chat_id uses the example value: {config.telegram.chat_id}")

    return errors
