"""
Error Taxonomy
Exceptions raised across the relay, grouped by originating component
"""

from typing import Optional


class RelayError(Exception):
    """Base class for all relay errors"""


class ConfigurationError(RelayError):
    """Configuration file missing, unreadable or invalid (fatal at startup)"""


class AuthError(RelayError):
    """Interactive authorization failed or the token cache could not be used"""


class RemoteError(RelayError):
    """A call to the mailbox, messaging or generation backend failed"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(RelayError):
    """A provider message could not be turned into EmailData"""


class TranslationError(RelayError):
    """Empty input text or a failed generation call"""


class NotifyError(RelayError):
    """Every configured destination failed, or none is configured"""
