"""
Email Parser Module
Turns a Gmail API message resource into an EmailData object

The input is the dict returned by users.messages.get(format="full"):

    {"id": "...", "payload": {"mimeType": "...",
                              "headers": [{"name": ..., "value": ...}],
                              "body": {"data": "<base64url>"},
                              "parts": [<payload>, ...]}}

Body selection:
  1. A non-empty inline payload.body.data is decoded and used as is.
  2. Otherwise the part tree is walked depth-first for the first text/plain
     part; text/html is only accepted when no text/plain part exists.
  3. A selected part with empty data yields an empty body (not an error).
  4. No payload, or no candidate part at all, raises ParseError.
"""

import base64
import binascii
import logging
from typing import Any, Dict, Iterator, List, Optional

from .email_data import EmailData
from ..utils.errors import ParseError


logger = logging.getLogger(__name__)

WANTED_HEADERS = ("Subject", "From", "Date")

# Preferred first; later entries are fallbacks
CANDIDATE_MIME_TYPES = ("text/plain", "text/html")


def decode_body_data(data: str) -> str:
    """
    Decode a Gmail body payload.

    Gmail uses URL-safe base64 and often strips the padding. The standard
    alphabet is accepted too. Anything else is rejected rather than silently
    dropped.

    Raises:
        ParseError: If data is not valid base64
    """
    if not data:
        return ""

    padded = data.strip() + "=" * (-len(data.strip()) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as e:
        raise ParseError(f"invalid base64 body data: {e}") from e

    return raw.decode("utf-8", errors="replace")


def _extract_headers(payload: Dict[str, Any]) -> Dict[str, str]:
    """Pick Subject/From/Date by exact (case-sensitive) name; first one wins"""
    found: Dict[str, str] = {}
    for header in payload.get("headers") or []:
        name = header.get("name")
        if name in WANTED_HEADERS and name not in found:
            found[name] = header.get("value") or ""
    return {name: found.get(name, "") for name in WANTED_HEADERS}


def _walk_parts(part: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    """Yield the part and all nested sub-parts in document order"""
    yield part
    for child in part.get("parts") or []:
        if child:
            yield from _walk_parts(child)


def _find_candidate(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    parts: List[Dict[str, Any]] = list(_walk_parts(payload))
    for mime_type in CANDIDATE_MIME_TYPES:
        for part in parts:
            if part.get("mimeType") == mime_type:
                return part
    return None


def _extract_body(payload: Dict[str, Any], message_id: str) -> str:
    inline = (payload.get("body") or {}).get("data")
    if inline:
        return decode_body_data(inline)

    candidate = _find_candidate(payload)
    if candidate is None:
        raise ParseError(f"message {message_id} has no text/plain or text/html content")

    logger.debug("Message %s: using %s part", message_id, candidate.get("mimeType"))
    return decode_body_data((candidate.get("body") or {}).get("data") or "")


def parse_message(raw_message: Dict[str, Any]) -> EmailData:
    """
    Parse a Gmail API message resource

    Args:
        raw_message: Message resource as returned by the Gmail API

    Returns:
        EmailData

    Raises:
        ParseError: If the payload is missing, has no content-bearing part,
            or carries invalid base64
    """
    if not raw_message:
        raise ParseError("empty message resource")

    message_id = raw_message.get("id") or ""
    payload = raw_message.get("payload")
    if not payload:
        raise ParseError(f"message {message_id} has no payload")

    headers = _extract_headers(payload)
    body_text = _extract_body(payload, message_id)

    return EmailData(
        message_id=message_id,
        subject=headers["Subject"],
        body_text=body_text,
        sender=headers["From"],
        date=headers["Date"],
    )
