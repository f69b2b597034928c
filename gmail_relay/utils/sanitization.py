"""
Sanitization Utility Module
Makes user-derived text safe for log lines and for Telegram Markdown.
"""

import re
import unicodedata

_ANSI_ESCAPE = re.compile(r'\x1B(?:[@-Z\\-_]|\[[0-?]*[ -/]*[@-~])')

# Characters with meaning in Telegram's legacy "Markdown" parse mode
_MARKDOWN_SPECIALS = re.compile(r'([_*`\[])')


def sanitize_for_logging(text: str, max_length: int = 255) -> str:
    """
    Sanitize text for safe logging to prevent log injection (CRLF) and
    terminal manipulation.

    Args:
        text: The input string to sanitize.
        max_length: Maximum allowed length (truncates if longer).

    Returns:
        Sanitized string safe for logging.
    """
    if not text:
        return ""

    text = unicodedata.normalize('NFKC', text)
    text = text.replace('\n', '\\n').replace('\r', '\\r')
    text = _ANSI_ESCAPE.sub('', text)
    text = "".join(ch for ch in text if ch == '\t' or ord(ch) >= 32)

    if len(text) > max_length:
        text = text[:max_length] + "..."

    return text


def escape_markdown(text: str) -> str:
    """
    Escape text for Telegram's legacy Markdown mode.

    Subjects and bodies come straight from email senders; an unbalanced
    ``*`` or ``_`` would otherwise make Telegram reject the whole message.
    """
    if not text:
        return ""
    return _MARKDOWN_SPECIALS.sub(r'\\\1', text)
