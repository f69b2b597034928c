"""
Message Filter Module
Decides whether a parsed message should be relayed

Each non-empty criterion (senders, subject keywords, content keywords) must
be satisfied; within a criterion any single entry is enough. An empty
criterion imposes no constraint, so an empty FilterConfig matches every
message. All comparisons are case-insensitive substring checks.
"""

from typing import Iterable

from ..utils.config import FilterConfig
from .email_data import EmailData


def _contains_any(haystack: str, needles: Iterable[str]) -> bool:
    haystack = haystack.lower()
    return any(needle.lower() in haystack for needle in needles)


def matches(message: EmailData, filter_config: FilterConfig) -> bool:
    """
    Return True when the message satisfies every configured criterion.

    Sender patterns are matched against the raw From header, so "@example.com"
    matches "Jane <jane@example.com>" without any address parsing.
    """
    if filter_config.senders and not _contains_any(message.sender, filter_config.senders):
        return False

    if filter_config.subject_keywords and not _contains_any(
        message.subject, filter_config.subject_keywords
    ):
        return False

    if filter_config.content_keywords and not _contains_any(
        message.body_text, filter_config.content_keywords
    ):
        return False

    return True
