#!/usr/bin/env python3
"""
Gmail to Telegram Relay
Main orchestrator: poll the mailbox, translate matching messages, deliver
them to Telegram and label them as processed
"""

import sys
import time
import logging
import threading
from pathlib import Path
from typing import List, Optional

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from gmail_relay.utils.config import Config
from gmail_relay.utils.errors import NotifyError, RelayError, RemoteError, TranslationError
from gmail_relay.utils.metrics import RelayMetrics
from gmail_relay.utils.sanitization import sanitize_for_logging
from gmail_relay.modules.email_data import EmailData
from gmail_relay.modules.email_ingestion import GmailClient
from gmail_relay.modules.gmail_auth import get_credentials
from gmail_relay.modules.gmail_connection import GmailApiService
from gmail_relay.modules.notifier import Notifier, TelegramBotAPI
from gmail_relay.modules.translator import GeminiBackend, Translator


# Stage names used for failure metrics
_STAGES = {
    TranslationError: "translate",
    NotifyError: "notify",
    RemoteError: "mark",
}


def _stage_of(error: Exception) -> str:
    for error_type, stage in _STAGES.items():
        if isinstance(error, error_type):
            return stage
    return "unexpected"


class RelayPipeline:
    """Main pipeline orchestrator"""

    def __init__(
        self,
        config: Config,
        mailbox: GmailClient,
        translator: Translator,
        notifier: Notifier,
        metrics: Optional[RelayMetrics] = None,
    ):
        """
        Initialize pipeline

        Args:
            config: Loaded and validated configuration
            mailbox: Mailbox client that lists and labels messages
            translator: Translator for message bodies
            notifier: Telegram notifier
            metrics: Metrics collector; a fresh one is created if None
        """
        self.config = config
        self.mailbox = mailbox
        self.translator = translator
        self.notifier = notifier
        self.metrics = metrics or RelayMetrics()

        self.logger = logging.getLogger("RelayPipeline")
        self.stop_event = threading.Event()
        self.iteration = 0

    @classmethod
    def from_config(cls, config: Config, interactive: bool = False) -> "RelayPipeline":
        """
        Build the production pipeline.

        Resolves the processed label up front so a mailbox that cannot be
        reached fails at startup rather than on the first tick.

        Raises:
            AuthError: If no usable OAuth credentials are available
            RemoteError: If the processed label cannot be resolved
        """
        logger = logging.getLogger("RelayPipeline")

        logger.info("Initializing Gmail client")
        credentials = get_credentials(config.gmail, interactive=interactive)
        service = GmailApiService(credentials, user_id=config.gmail.user_id)
        mailbox = GmailClient(
            service,
            config.gmail.forwarded_label,
            only_unread=config.gmail.only_unread,
            query_senders=config.gmail.query_senders,
        )
        label_id = mailbox.ensure_processed_label_exists()
        logger.info(f"Processed label '{config.gmail.forwarded_label}' has id {label_id}")

        logger.info(f"Initializing translator (model {config.translation.model_name})")
        translator = Translator(
            GeminiBackend(
                config.translation.gemini_api_key,
                api_base=config.translation.api_base,
                timeout=config.translation.timeout,
            ),
            config.translation.target_language,
            prompt_template=config.translation.prompt_template,
            model_name=config.translation.model_name,
        )

        logger.info("Initializing Telegram notifier")
        notifier = Notifier(
            TelegramBotAPI(config.telegram.bot_token, timeout=config.telegram.timeout),
            channel_id=config.telegram.channel_id,
            chat_id=config.telegram.chat_id,
        )

        return cls(config, mailbox, translator, notifier)

    def process_message(self, message: EmailData) -> None:
        """
        Translate, deliver and label one message.

        The processed label is applied only after delivery succeeded, so a
        failure anywhere leaves the message to be retried next cycle.

        Raises:
            TranslationError: If translation fails
            NotifyError: If delivery fails
            RemoteError: If labelling the message fails
        """
        self.logger.info(f"Processing message: {sanitize_for_logging(message.subject, 80)}")

        translated = self.translator.translate(message.body_text)

        original = message.body_text if self.config.telegram.include_original else ""
        self.notifier.notify(
            message.subject,
            translated,
            message.sender,
            message.date,
            original_body=original,
        )

        self.mailbox.mark_processed(message.message_id)

    def process_batch(self, messages: List[EmailData]) -> int:
        """
        Process messages in order; a failing message never stops the batch

        Returns:
            Number of messages relayed
        """
        relayed = 0
        total = len(messages)

        for index, message in enumerate(messages, 1):
            started = time.perf_counter()
            try:
                self.process_message(message)
            except RelayError as e:
                stage = _stage_of(e)
                self.metrics.record_failure(stage)
                self.logger.error(
                    f"Message {message.message_id} failed at {stage} stage: {e}"
                )
                continue
            except Exception as e:
                self.metrics.record_failure("unexpected")
                self.logger.error(
                    f"Unexpected error processing message {message.message_id}: {e}",
                    exc_info=True
                )
                continue

            elapsed_ms = (time.perf_counter() - started) * 1000
            self.metrics.record_relayed(elapsed_ms)
            relayed += 1
            self.logger.info(
                f"Message {index}/{total} ({message.message_id}) relayed successfully",
                extra={"extra_fields": {
                    "message_id": message.message_id,
                    "elapsed_ms": round(elapsed_ms, 1),
                }}
            )

        return relayed

    def run_cycle(self) -> bool:
        """
        Run one poll cycle

        Returns:
            False if listing failed and the cycle was aborted
        """
        self.iteration += 1
        self.logger.info(f"=== Poll Cycle {self.iteration} ===")

        try:
            messages = self.mailbox.fetch_new_matching(self.config.gmail.filter)
        except RemoteError as e:
            self.metrics.record_failure("listing")
            self.logger.error(f"Error listing new messages: {e}")
            return False

        self.metrics.record_cycle(len(messages))

        if not messages:
            self.logger.info("No new messages to relay")
        else:
            self.logger.info(f"Relaying {len(messages)} messages")
            self.process_batch(messages)

        self.logger.debug(f"Metrics: {self.metrics.get_summary()}")
        return True

    def run(self, stop_event: Optional[threading.Event] = None) -> None:
        """
        Poll until a stop is requested.

        One cycle runs immediately, then cycles follow on a fixed-rate
        schedule. If a batch overruns one or more ticks, those ticks collapse
        into a single immediate cycle and the schedule keeps its phase. Stop
        requests are checked between cycles only.
        """
        if stop_event is not None:
            self.stop_event = stop_event
        interval = self.config.gmail.poll_interval

        self.logger.info("Starting Gmail to Telegram relay")
        self.run_cycle()

        deadline = time.monotonic() + interval
        while not self.stop_event.is_set():
            delay = max(0.0, deadline - time.monotonic())
            if delay > 0:
                self.logger.info(f"Next poll in {delay:.0f} seconds")
            if self.stop_event.wait(delay):
                break

            self.run_cycle()

            now = time.monotonic()
            deadline += interval
            if deadline <= now:
                deadline += ((now - deadline) // interval) * interval

        self.logger.info("Relay stopped")

    def stop(self) -> None:
        """Request a graceful stop after the current cycle"""
        self.logger.info("Stopping Gmail to Telegram relay")
        self.stop_event.set()


def main():
    """Main entry point"""
    from gmail_relay.app_runner import AppRunner
    AppRunner(sys.argv[1:]).run()


if __name__ == "__main__":
    main()
