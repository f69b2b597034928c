"""
Configuration Management Module
Loads the YAML configuration file, applies environment overrides and
validates the result
"""

import os
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import yaml
from dotenv import load_dotenv

from gmail_relay.utils.errors import ConfigurationError


DEFAULT_CONFIG_FILE = "config.yaml"
DEFAULT_MODEL_NAME = "gemini-2.0-flash"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"

_DURATION_UNITS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}
_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)')


def parse_duration(value: str) -> float:
    """
    Parse a duration string such as "90s", "5m" or "1h30m" into seconds.

    Follows the usual Go duration grammar: an optional sign followed by one
    or more decimal numbers, each with a unit suffix. A bare "0" is allowed;
    any other number needs a unit.

    Raises:
        ValueError: If the string is not a valid duration
    """
    text = str(value).strip()
    if not text:
        raise ValueError("empty duration")

    sign = 1.0
    if text[0] in "+-":
        sign = -1.0 if text[0] == "-" else 1.0
        text = text[1:]

    if text == "0":
        return 0.0

    total = 0.0
    pos = 0
    while pos < len(text):
        match = _DURATION_PART.match(text, pos)
        if not match:
            raise ValueError(f"invalid duration {value!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()

    if pos == 0:
        raise ValueError(f"invalid duration {value!r}")

    return sign * total


@dataclass(frozen=True)
class FilterConfig:
    """Client-side match criteria; an empty tuple imposes no constraint"""
    senders: Tuple[str, ...] = ()
    subject_keywords: Tuple[str, ...] = ()
    content_keywords: Tuple[str, ...] = ()


@dataclass(frozen=True)
class GmailConfig:
    """Mailbox access and polling settings"""
    credentials_file: str
    token_file: str
    poll_interval: float
    forwarded_label: str
    only_unread: bool = False
    query_senders: bool = False
    oauth_port: int = 8080
    user_id: str = "me"
    filter: FilterConfig = field(default_factory=FilterConfig)


@dataclass(frozen=True)
class TelegramConfig:
    """Bot credentials and destinations (channel first, chat as fallback)"""
    bot_token: str
    channel_id: str = ""
    chat_id: str = ""
    include_original: bool = False
    timeout: float = 10.0


@dataclass(frozen=True)
class TranslationConfig:
    """Gemini translation settings"""
    gemini_api_key: str
    target_language: str
    model_name: str = DEFAULT_MODEL_NAME
    prompt_template: Optional[str] = None
    api_base: str = DEFAULT_API_BASE
    timeout: float = 60.0


@dataclass(frozen=True)
class SystemConfig:
    """Logging settings"""
    log_level: str = "INFO"
    log_file: str = "logs/gmail_relay.log"
    log_format: str = "text"


class Config:
    """Main configuration class"""

    def __init__(self, config_file: str = DEFAULT_CONFIG_FILE, env_file: str = ".env"):
        """
        Initialize configuration from a YAML file

        Args:
            config_file: Path to the YAML configuration file
            env_file: Optional dotenv file whose values override secrets

        Raises:
            ConfigurationError: If the file cannot be read or parsed, or a
                value (such as the poll interval) is malformed
        """
        self.config_file = config_file
        load_dotenv(env_file)

        raw = self._read_file(config_file)

        self.gmail = self._load_gmail_config(self._section(raw, "gmail"))
        self.telegram = self._load_telegram_config(self._section(raw, "telegram"))
        self.translation = self._load_translation_config(self._section(raw, "translation"))
        self.system = self._load_system_config(self._section(raw, "system"))

    @staticmethod
    def _read_file(path: str) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file '{path}': {e}") from e
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Cannot parse configuration file '{path}': {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigurationError(f"Configuration file '{path}' must contain a mapping")
        return data

    @staticmethod
    def _section(raw: Dict[str, Any], name: str) -> Dict[str, Any]:
        section = raw.get(name) or {}
        if not isinstance(section, dict):
            raise ConfigurationError(f"Section '{name}' must be a mapping")
        return section

    def _load_gmail_config(self, section: Dict[str, Any]) -> GmailConfig:
        """Load mailbox configuration"""
        raw_interval = section.get("poll_interval", "5m")
        try:
            poll_interval = parse_duration(raw_interval)
        except ValueError as e:
            raise ConfigurationError(f"Invalid poll interval: {e}") from e
        if poll_interval <= 0:
            raise ConfigurationError(f"Poll interval must be positive, got {raw_interval!r}")

        filter_section = section.get("filter") or {}
        if not isinstance(filter_section, dict):
            raise ConfigurationError("Section 'gmail.filter' must be a mapping")

        return GmailConfig(
            credentials_file=str(section.get("credentials_file") or "credentials.json"),
            token_file=str(section.get("token_file") or "token.json"),
            poll_interval=poll_interval,
            forwarded_label=str(section.get("forwarded_label") or "Forwarded").strip(),
            only_unread=self._get_bool(section, "only_unread", False),
            query_senders=self._get_bool(section, "query_senders", False),
            oauth_port=self._get_int(section, "oauth_port", 8080),
            user_id=str(section.get("user_id") or "me"),
            filter=FilterConfig(
                senders=self._parse_list(filter_section.get("from")),
                subject_keywords=self._parse_list(filter_section.get("subject_keywords")),
                content_keywords=self._parse_list(filter_section.get("content_keywords")),
            ),
        )

    def _load_telegram_config(self, section: Dict[str, Any]) -> TelegramConfig:
        """Load Telegram configuration"""
        return TelegramConfig(
            bot_token=os.getenv("TELEGRAM_BOT_TOKEN") or str(section.get("bot_token") or ""),
            channel_id=str(section.get("channel_id") or ""),
            chat_id=str(section.get("chat_id") or ""),
            include_original=self._get_bool(section, "include_original", False),
            timeout=self._get_float(section, "timeout", 10.0),
        )

    def _load_translation_config(self, section: Dict[str, Any]) -> TranslationConfig:
        """Load translation configuration"""
        return TranslationConfig(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or str(section.get("gemini_api_key") or ""),
            target_language=str(section.get("target_language") or ""),
            model_name=str(section.get("model_name") or DEFAULT_MODEL_NAME),
            prompt_template=section.get("prompt_template") or None,
            api_base=str(section.get("api_base") or DEFAULT_API_BASE),
            timeout=self._get_float(section, "timeout", 60.0),
        )

    def _load_system_config(self, section: Dict[str, Any]) -> SystemConfig:
        """Load logging configuration"""
        return SystemConfig(
            log_level=os.getenv("GMAIL_RELAY_LOG_LEVEL") or str(section.get("log_level") or "INFO"),
            log_file=str(section.get("log_file") if section.get("log_file") is not None
                         else "logs/gmail_relay.log"),
            log_format=str(section.get("log_format") or "text").lower(),
        )

    @staticmethod
    def _parse_list(value: Any) -> Tuple[str, ...]:
        """Normalize a YAML list (or a comma separated string) into a tuple"""
        if not value:
            return ()
        if isinstance(value, str):
            value = value.split(",")
        if not isinstance(value, list):
            raise ConfigurationError(f"Expected a list, got {type(value).__name__}")
        items: List[str] = [str(item).strip() for item in value if item is not None]
        return tuple(item for item in items if item)

    @staticmethod
    def _get_bool(section: Dict[str, Any], key: str, default: bool = False) -> bool:
        value = section.get(key, default)
        if isinstance(value, bool):
            return value
        return str(value).lower() in ('true', '1', 'yes', 'on')

    @staticmethod
    def _get_int(section: Dict[str, Any], key: str, default: int) -> int:
        try:
            return int(section.get(key, default))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"'{key}' must be an integer") from e

    @staticmethod
    def _get_float(section: Dict[str, Any], key: str, default: float) -> float:
        try:
            return float(section.get(key, default))
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"'{key}' must be a number") from e

    def validate(self) -> bool:
        """
        Validate configuration

        Returns:
            True if configuration is valid

        Raises:
            ConfigurationError: If configuration is invalid
        """
        self.validate_gmail()

        if not self.telegram.bot_token:
            raise ConfigurationError("telegram.bot_token is required")

        if not self.translation.gemini_api_key:
            raise ConfigurationError("translation.gemini_api_key is required")

        if not self.translation.target_language:
            raise ConfigurationError("translation.target_language is required")

        if self.telegram.timeout <= 0 or self.translation.timeout <= 0:
            raise ConfigurationError("Request timeouts must be > 0")

        if self.system.log_format not in ("text", "json"):
            raise ConfigurationError("system.log_format must be 'text' or 'json'")

        return True

    def validate_gmail(self) -> bool:
        """
        Validate only the settings Gmail authorization needs

        Raises:
            ConfigurationError: If a Gmail setting is invalid
        """
        if not self.gmail.credentials_file or not self.gmail.token_file:
            raise ConfigurationError("gmail.credentials_file and gmail.token_file are required")

        if not self.gmail.forwarded_label:
            raise ConfigurationError("gmail.forwarded_label must not be empty")

        if not 0 <= self.gmail.oauth_port <= 65535:
            raise ConfigurationError("gmail.oauth_port must be between 0 and 65535")

        return True
