"""
Tests for log sanitization and Telegram Markdown escaping
"""

import unittest

from gmail_relay.utils.sanitization import escape_markdown, sanitize_for_logging


class TestSanitizeForLogging(unittest.TestCase):

    def test_basic_sanitization(self):
        self.assertEqual(sanitize_for_logging("Hello World"), "Hello World")
        self.assertEqual(sanitize_for_logging(""), "")
        self.assertEqual(sanitize_for_logging(None), "")

    def test_newline_sanitization(self):
        """Subjects with CRLF must not forge extra log lines"""
        self.assertEqual(
            sanitize_for_logging("Subject\r\n2024-01-01 - GmailClient - INFO - forged"),
            "Subject\\r\\n2024-01-01 - GmailClient - INFO - forged"
        )

    def test_control_character_sanitization(self):
        self.assertEqual(sanitize_for_logging("Ding\x07"), "Ding")
        self.assertEqual(sanitize_for_logging("\x1b[31mRed\x1b[0m"), "Red")
        self.assertEqual(sanitize_for_logging("tab\tkept"), "tab\tkept")

    def test_unicode_normalization(self):
        self.assertEqual(sanitize_for_logging("ﬁle"), "file")

    def test_truncation(self):
        sanitized = sanitize_for_logging("This is a long subject line", max_length=10)
        self.assertEqual(sanitized, "This is a ...")

    def test_expansion_counts_towards_limit(self):
        self.assertEqual(sanitize_for_logging("\n" * 100, max_length=10), "\\n" * 5 + "...")


class TestEscapeMarkdown(unittest.TestCase):

    def test_special_characters(self):
        self.assertEqual(escape_markdown("*bold*"), "\\*bold\\*")
        self.assertEqual(escape_markdown("snake_case"), "snake\\_case")
        self.assertEqual(escape_markdown("`code`"), "\\`code\\`")
        self.assertEqual(escape_markdown("[link](url)"), "\\[link](url)")

    def test_plain_text_unchanged(self):
        self.assertEqual(escape_markdown("Hello, мир! 50% off (today)"), "Hello, мир! 50% off (today)")

    def test_empty(self):
        self.assertEqual(escape_markdown(""), "")
        self.assertEqual(escape_markdown(None), "")


if __name__ == '__main__':
    unittest.main()
