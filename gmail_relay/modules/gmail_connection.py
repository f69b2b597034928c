"""
Gmail Connection Module
The mailbox capability used by the relay and its Gmail API implementation
"""

import logging
from typing import Any, Dict, List, Optional

from google.auth.exceptions import GoogleAuthError
from googleapiclient.discovery import build
from googleapiclient.errors import Error as GoogleApiError
from httplib2 import HttpLib2Error

from ..utils.errors import RemoteError


# Exceptions a Gmail API call can raise: HTTP status errors, credential
# refresh failures and transport problems
_TRANSPORT_ERRORS = (GoogleApiError, GoogleAuthError, HttpLib2Error, OSError)


class MailboxService:
    """
    Operations the relay needs from a mailbox.

    Every method raises RemoteError when the backend call fails.
    """

    def list_labels(self) -> List[Dict[str, Any]]:
        """Return all labels as dicts with at least "id" and "name"."""
        raise NotImplementedError

    def create_label(self, name: str) -> Dict[str, Any]:
        """Create a user label and return it."""
        raise NotImplementedError

    def list_message_ids(self, query: str) -> List[str]:
        """Return ids of messages matching a search query, in listing order."""
        raise NotImplementedError

    def get_message(self, message_id: str) -> Dict[str, Any]:
        """Return the full message resource."""
        raise NotImplementedError

    def add_label(self, message_id: str, label_id: str) -> None:
        raise NotImplementedError


class GmailApiService(MailboxService):
    """MailboxService backed by the Gmail REST API (google-api-python-client)"""

    def __init__(self, credentials, user_id: str = "me", service=None):
        """
        Args:
            credentials: google.oauth2 credentials with the gmail.modify scope
            user_id: Mailbox owner, "me" for the authorized account
            service: Prebuilt API resource (tests); built from credentials if None
        """
        self.user_id = user_id
        self.logger = logging.getLogger("GmailApiService")
        self._service = service or build(
            "gmail", "v1", credentials=credentials, cache_discovery=False
        )

    def _execute(self, request, action: str):
        try:
            return request.execute()
        except _TRANSPORT_ERRORS as e:
            status = getattr(getattr(e, "resp", None), "status", None)
            raise RemoteError(f"Gmail API {action} failed: {e}", status_code=status) from e

    def list_labels(self) -> List[Dict[str, Any]]:
        request = self._service.users().labels().list(userId=self.user_id)
        response = self._execute(request, "labels.list")
        return response.get("labels", [])

    def create_label(self, name: str) -> Dict[str, Any]:
        body = {
            "name": name,
            "labelListVisibility": "labelShow",
            "messageListVisibility": "show",
        }
        request = self._service.users().labels().create(userId=self.user_id, body=body)
        return self._execute(request, "labels.create")

    def list_message_ids(self, query: str) -> List[str]:
        message_ids: List[str] = []
        page_token: Optional[str] = None

        while True:
            params = {"userId": self.user_id, "q": query}
            if page_token:
                params["pageToken"] = page_token

            request = self._service.users().messages().list(**params)
            response = self._execute(request, "messages.list")

            for ref in response.get("messages") or []:
                if ref.get("id"):
                    message_ids.append(ref["id"])

            page_token = response.get("nextPageToken")
            if not page_token:
                break

        self.logger.debug(f"Query {query!r} listed {len(message_ids)} messages")
        return message_ids

    def get_message(self, message_id: str) -> Dict[str, Any]:
        request = self._service.users().messages().get(
            userId=self.user_id, id=message_id, format="full"
        )
        return self._execute(request, "messages.get")

    def add_label(self, message_id: str, label_id: str) -> None:
        request = self._service.users().messages().modify(
            userId=self.user_id, id=message_id, body={"addLabelIds": [label_id]}
        )
        self._execute(request, "messages.modify")
