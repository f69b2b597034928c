"""
Notifier Module
Formats relayed messages and delivers them through the Telegram Bot API
"""

import logging
from typing import List, Tuple

import requests

from ..utils.errors import NotifyError, RemoteError
from ..utils.sanitization import escape_markdown


TELEGRAM_API_BASE = "https://api.telegram.org"

# Telegram rejects sendMessage text longer than this
MAX_MESSAGE_LENGTH = 4096

TRUNCATION_MARKER = "\n\n…"

MAX_SUBJECT_LENGTH = 512


class MessagingAPI:
    """Messaging capability used by the Notifier"""

    def send_message(self, chat_id: str, text: str, parse_mode: str = "Markdown") -> None:
        """
        Deliver text to one destination.

        Raises:
            RemoteError: If the destination did not accept the message
        """
        raise NotImplementedError


class TelegramBotAPI(MessagingAPI):
    """MessagingAPI backed by the Telegram Bot HTTP API"""

    def __init__(self, bot_token: str, timeout: float = 10.0, base_url: str = TELEGRAM_API_BASE):
        self.bot_token = bot_token
        self.timeout = timeout
        self.base_url = base_url.rstrip("/")
        self.logger = logging.getLogger("TelegramBotAPI")

    def send_message(self, chat_id: str, text: str, parse_mode: str = "Markdown") -> None:
        url = f"{self.base_url}/bot{self.bot_token}/sendMessage"
        payload = {"chat_id": chat_id, "text": text, "parse_mode": parse_mode}

        try:
            response = requests.post(
                url,
                json=payload,
                headers={'Content-Type': 'application/json'},
                timeout=self.timeout
            )
        except requests.RequestException as e:
            # The exception text embeds the URL, which carries the bot token
            raise RemoteError(
                f"Telegram request to {chat_id} failed: {type(e).__name__}"
            ) from e

        if response.status_code != 200:
            raise RemoteError(
                f"Telegram returned HTTP {response.status_code} for {chat_id}: "
                f"{response.text[:200]}",
                status_code=response.status_code,
            )


def _bold_title(subject: str) -> str:
    """
    Render the subject as the message's bold heading.

    Telegram reads everything inside a bold entity literally up to the next
    '*', so backslash escapes would show up as text. Asterisks are dropped
    instead and whitespace is collapsed to keep the heading on one line.
    """
    title = " ".join((subject or "").replace("*", "").split())[:MAX_SUBJECT_LENGTH]
    return f"*{title or '(no subject)'}*"


def format_notification(
    subject: str,
    translated_body: str,
    sender: str,
    date: str,
    original_body: str = "",
) -> str:
    """
    Compose the Markdown notification text.

    Only the bold markers around the subject are markup. Every other
    user-derived value is escaped, and the result never exceeds Telegram's
    message length limit.
    """
    text = (
        f"{_bold_title(subject)}\n\n"
        f"📅 {escape_markdown(date)}\n"
        f"📧 From: {escape_markdown(sender)}\n\n"
    )

    if original_body:
        text += f"🌐 Translation:\n{escape_markdown(translated_body)}\n\n"
        text += f"📄 Original:\n{escape_markdown(original_body)}"
    else:
        text += escape_markdown(translated_body)

    if len(text) > MAX_MESSAGE_LENGTH:
        cut = text[:MAX_MESSAGE_LENGTH - len(TRUNCATION_MARKER)]
        # Don't leave a dangling escape character at the cut
        text = cut.rstrip("\\") + TRUNCATION_MARKER

    return text


class Notifier:
    """Delivers notifications to the primary destination with a fallback"""

    def __init__(self, api: MessagingAPI, channel_id: str = "", chat_id: str = ""):
        """
        Initialize notifier

        Args:
            api: Messaging capability (Telegram in production)
            channel_id: Primary destination
            chat_id: Secondary destination, used when the primary fails or
                is not configured
        """
        self.api = api
        self.channel_id = channel_id
        self.chat_id = chat_id
        self.logger = logging.getLogger("Notifier")

    def destinations(self) -> List[Tuple[str, str]]:
        """Configured destinations in delivery order"""
        result = []
        if self.channel_id:
            result.append(("channel", self.channel_id))
        if self.chat_id:
            result.append(("chat", self.chat_id))
        return result

    def notify(
        self,
        subject: str,
        translated_body: str,
        sender: str,
        date: str,
        original_body: str = "",
    ) -> str:
        """
        Send one notification

        Returns:
            The destination id that accepted the message

        Raises:
            NotifyError: If no destination is configured or all of them failed
        """
        destinations = self.destinations()
        if not destinations:
            raise NotifyError("Neither telegram.channel_id nor telegram.chat_id is configured")

        text = format_notification(subject, translated_body, sender, date, original_body)

        errors = []
        for kind, destination in destinations:
            try:
                self.api.send_message(destination, text, parse_mode="Markdown")
            except RemoteError as e:
                status = f" (HTTP {e.status_code})" if e.status_code else ""
                self.logger.warning(f"Delivery to {kind} {destination} failed{status}: {e}")
                errors.append(f"{kind}: {e}")
                continue

            self.logger.info(f"Notification sent to {kind} {destination}")
            return destination

        raise NotifyError("All destinations failed: " + "; ".join(errors))
