"""
Email Ingestion Module
Lists unprocessed messages, re-checks them against the filter and keeps the
processed label bookkeeping

Filtering happens in two layers: a cheap server-side search query (processed
label, read state, senders) shrinks the candidate set, then the full filter
predicate runs locally because Gmail search cannot express keyword-in-body
matching the way the filter does.
"""

import logging
from typing import List, Optional

from .email_data import EmailData
from .email_parser import parse_message
from .gmail_connection import MailboxService
from .message_filter import matches
from ..utils.config import FilterConfig
from ..utils.errors import ParseError, RemoteError
from ..utils.sanitization import sanitize_for_logging


def _quote(value: str) -> str:
    """Quote a search term for Gmail's query language"""
    return '"' + value.replace('"', '') + '"'


class GmailClient:
    """Mailbox client bound to one processed label"""

    def __init__(
        self,
        service: MailboxService,
        processed_label: str,
        only_unread: bool = False,
        query_senders: bool = False,
    ):
        """
        Initialize mailbox client

        Args:
            service: Mailbox capability (Gmail API in production)
            processed_label: Name of the label marking relayed messages
            only_unread: Restrict the search to unread messages
            query_senders: Also restrict the search to the filter's senders
        """
        self.service = service
        self.processed_label = processed_label
        self.only_unread = only_unread
        self.query_senders = query_senders
        self.label_id: Optional[str] = None
        self.logger = logging.getLogger("GmailClient")

    def ensure_processed_label_exists(self) -> str:
        """
        Resolve the processed label id, creating the label if it is missing.

        Safe to call repeatedly: the label is looked up by exact name first,
        so it is never created twice.

        Returns:
            Label id

        Raises:
            RemoteError: If listing or creating labels fails
        """
        for label in self.service.list_labels():
            if label.get("name") == self.processed_label:
                self.label_id = label["id"]
                return self.label_id

        self.logger.info(f"Creating label '{self.processed_label}'")
        created = self.service.create_label(self.processed_label)
        self.label_id = created["id"]
        return self.label_id

    def build_query(self, filter_config: FilterConfig) -> str:
        """Build the Gmail search query that excludes processed messages"""
        terms = [f"-label:{_quote(self.processed_label)}"]

        if self.only_unread:
            terms.append("is:unread")

        if self.query_senders and filter_config.senders:
            senders = " OR ".join(f"from:{_quote(s)}" for s in filter_config.senders)
            terms.append(f"({senders})")

        return " ".join(terms)

    def fetch_new_matching(self, filter_config: FilterConfig) -> List[EmailData]:
        """
        Return unprocessed messages that pass the filter, in listing order.

        A message that cannot be fetched or parsed is logged and skipped.

        Raises:
            RemoteError: If resolving the label or listing messages fails
        """
        self.ensure_processed_label_exists()

        query = self.build_query(filter_config)
        self.logger.debug(f"Searching with query: {query}")
        message_ids = self.service.list_message_ids(query)

        if not message_ids:
            self.logger.debug("No unprocessed messages")
            return []

        self.logger.info(f"Found {len(message_ids)} unprocessed messages")

        result: List[EmailData] = []
        for message_id in message_ids:
            try:
                message = parse_message(self.service.get_message(message_id))
            except (RemoteError, ParseError) as e:
                self.logger.error(f"Skipping message {message_id}: {e}")
                continue

            if not matches(message, filter_config):
                self.logger.debug(
                    f"Message {message_id} does not match filter: "
                    f"{sanitize_for_logging(message.subject, 80)}"
                )
                continue

            result.append(message)

        self.logger.info(f"{len(result)} of {len(message_ids)} messages match the filter")
        return result

    def mark_processed(self, message_id: str) -> None:
        """
        Apply the processed label to a message

        Raises:
            RemoteError: If the modify call fails
        """
        if self.label_id is None:
            self.ensure_processed_label_exists()
        self.service.add_label(message_id, self.label_id)
        self.logger.debug(f"Message {message_id} labelled '{self.processed_label}'")
