"""
Tests for configuration loading, environment overrides and validation
"""

import os
import textwrap
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

import pytest

from gmail_relay.utils.config import Config, parse_duration
from gmail_relay.utils.errors import ConfigurationError


FULL_CONFIG = """
gmail:
  credentials_file: secrets/credentials.json
  token_file: secrets/token.json
  poll_interval: 1m30s
  forwarded_label: Relayed
  only_unread: true
  filter:
    from:
      - "@example.com"
      - boss@corp.test
    subject_keywords: invoice, report
telegram:
  bot_token: 987654:real-token
  channel_id: "@news"
  chat_id: "42"
  include_original: "yes"
translation:
  gemini_api_key: real-key
  target_language: Russian
  prompt_template: "To {target_language}: {text}"
system:
  log_level: debug
  log_format: JSON
"""


@pytest.mark.parametrize("value, seconds", [
    ("5m", 300.0),
    ("45s", 45.0),
    ("1h30m", 5400.0),
    ("1m30s", 90.0),
    ("500ms", 0.5),
    ("1.5h", 5400.0),
    ("0", 0.0),
    ("-2s", -2.0),
    ("250us", 0.00025),
])
def test_parse_duration(value, seconds):
    assert parse_duration(value) == pytest.approx(seconds)


@pytest.mark.parametrize("value", ["", "5", "m", "5 m", "5d", "1h-30m", "abc"])
def test_parse_duration_rejects_invalid(value):
    with pytest.raises(ValueError):
        parse_duration(value)


class ConfigTestCase(unittest.TestCase):
    """Writes config files to a temporary directory with a clean environment"""

    def setUp(self):
        self._tmp = TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.env_file = str(self.tmp / "missing.env")
        patcher = patch.dict(os.environ, {}, clear=True)
        patcher.start()
        self.addCleanup(patcher.stop)
        self.addCleanup(self._tmp.cleanup)

    def write(self, content: str, name: str = "config.yaml") -> str:
        path = self.tmp / name
        path.write_text(textwrap.dedent(content), encoding="utf-8")
        return str(path)

    def load(self, content: str) -> Config:
        return Config(self.write(content), env_file=self.env_file)


class TestConfigLoading(ConfigTestCase):

    def test_full_config(self):
        config = self.load(FULL_CONFIG)

        self.assertEqual(config.gmail.credentials_file, "secrets/credentials.json")
        self.assertEqual(config.gmail.token_file, "secrets/token.json")
        self.assertEqual(config.gmail.poll_interval, 90.0)
        self.assertEqual(config.gmail.forwarded_label, "Relayed")
        self.assertTrue(config.gmail.only_unread)
        self.assertFalse(config.gmail.query_senders)
        self.assertEqual(config.gmail.filter.senders, ("@example.com", "boss@corp.test"))
        self.assertEqual(config.gmail.filter.subject_keywords, ("invoice", "report"))
        self.assertEqual(config.gmail.filter.content_keywords, ())

        self.assertEqual(config.telegram.bot_token, "987654:real-token")
        self.assertEqual(config.telegram.channel_id, "@news")
        self.assertEqual(config.telegram.chat_id, "42")
        self.assertTrue(config.telegram.include_original)

        self.assertEqual(config.translation.target_language, "Russian")
        self.assertEqual(config.translation.model_name, "gemini-2.0-flash")
        self.assertEqual(config.translation.prompt_template, "To {target_language}: {text}")

        self.assertEqual(config.system.log_level, "debug")
        self.assertEqual(config.system.log_format, "json")
        self.assertTrue(config.validate())

    def test_defaults(self):
        config = self.load("gmail: {}\n")

        self.assertEqual(config.gmail.credentials_file, "credentials.json")
        self.assertEqual(config.gmail.token_file, "token.json")
        self.assertEqual(config.gmail.poll_interval, 300.0)
        self.assertEqual(config.gmail.forwarded_label, "Forwarded")
        self.assertEqual(config.gmail.oauth_port, 8080)
        self.assertIsNone(config.translation.prompt_template)
        self.assertEqual(config.system.log_level, "INFO")
        self.assertEqual(config.telegram.timeout, 10.0)

    def test_empty_file(self):
        config = self.load("")
        self.assertEqual(config.gmail.forwarded_label, "Forwarded")

    def test_environment_overrides(self):
        os.environ["TELEGRAM_BOT_TOKEN"] = "env-token"
        os.environ["GEMINI_API_KEY"] = "env-key"
        os.environ["GMAIL_RELAY_LOG_LEVEL"] = "WARNING"

        config = self.load(FULL_CONFIG)

        self.assertEqual(config.telegram.bot_token, "env-token")
        self.assertEqual(config.translation.gemini_api_key, "env-key")
        self.assertEqual(config.system.log_level, "WARNING")

    def test_dotenv_file(self):
        env_file = self.write("GEMINI_API_KEY=dotenv-key\n", name=".env")
        config = Config(self.write(FULL_CONFIG), env_file=env_file)
        self.assertEqual(config.translation.gemini_api_key, "dotenv-key")


class TestConfigErrors(ConfigTestCase):

    def test_missing_file(self):
        with self.assertRaises(ConfigurationError):
            Config(str(self.tmp / "nope.yaml"), env_file=self.env_file)

    def test_malformed_yaml(self):
        with self.assertRaises(ConfigurationError):
            self.load("gmail: [unclosed\n")

    def test_top_level_not_mapping(self):
        with self.assertRaises(ConfigurationError):
            self.load("- a\n- b\n")

    def test_section_not_mapping(self):
        with self.assertRaises(ConfigurationError):
            self.load("telegram: just-a-string\n")

    def test_invalid_poll_interval(self):
        with self.assertRaises(ConfigurationError):
            self.load("gmail:\n  poll_interval: soon\n")

    def test_non_positive_poll_interval(self):
        with self.assertRaises(ConfigurationError):
            self.load("gmail:\n  poll_interval: 0s\n")

    def test_invalid_port(self):
        with self.assertRaises(ConfigurationError):
            self.load("gmail:\n  oauth_port: http\n")


class TestConfigValidation(ConfigTestCase):

    def test_missing_bot_token(self):
        config = self.load(FULL_CONFIG.replace("bot_token: 987654:real-token", "bot_token: ''"))
        with self.assertRaisesRegex(ConfigurationError, "bot_token"):
            config.validate()

    def test_missing_api_key(self):
        config = self.load(FULL_CONFIG.replace("gemini_api_key: real-key", "gemini_api_key: ''"))
        with self.assertRaisesRegex(ConfigurationError, "gemini_api_key"):
            config.validate()

    def test_missing_target_language(self):
        config = self.load(FULL_CONFIG.replace("target_language: Russian", "target_language: ''"))
        with self.assertRaisesRegex(ConfigurationError, "target_language"):
            config.validate()

    def test_invalid_log_format(self):
        config = self.load(FULL_CONFIG.replace("log_format: JSON", "log_format: xml"))
        with self.assertRaises(ConfigurationError):
            config.validate()

    def test_port_out_of_range(self):
        config = self.load(FULL_CONFIG.replace("only_unread: true", "oauth_port: 70000"))
        with self.assertRaises(ConfigurationError):
            config.validate()

    def test_gmail_only_validation_ignores_other_sections(self):
        config = self.load("gmail:\n  credentials_file: credentials.json\n")

        self.assertTrue(config.validate_gmail())
        with self.assertRaises(ConfigurationError):
            config.validate()

    def test_gmail_only_validation_checks_port(self):
        config = self.load("gmail:\n  oauth_port: -1\n")
        with self.assertRaises(ConfigurationError):
            config.validate_gmail()


if __name__ == '__main__':
    unittest.main()
