"""
Email Data Model
Contains the EmailData dataclass for a parsed mailbox message
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class EmailData:
    """
    Container for parsed email data

    Headers are kept exactly as the provider returned them: the sender is
    the raw From value and the date is the raw Date value, neither parsed
    nor normalized. body_text is already decoded from the transfer encoding.
    """
    message_id: str
    subject: str
    body_text: str
    sender: str
    date: str
