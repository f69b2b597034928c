"""
Gmail Authorization Module
OAuth token cache handling and the one-time interactive authorization flow
"""

import logging
import os
from pathlib import Path
from typing import Optional

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from ..utils.config import GmailConfig
from ..utils.errors import AuthError


SCOPES = ["https://www.googleapis.com/auth/gmail.modify"]

logger = logging.getLogger("GmailAuth")


def load_token(token_file: str) -> Optional[Credentials]:
    """Read cached credentials; None when the cache does not exist"""
    if not Path(token_file).exists():
        return None
    try:
        return Credentials.from_authorized_user_file(token_file, SCOPES)
    except (OSError, ValueError) as e:
        raise AuthError(f"Token cache '{token_file}' is unreadable: {e}") from e


def save_token(credentials: Credentials, token_file: str) -> None:
    """Write credentials to the token cache, readable only by the owner"""
    path = Path(token_file)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(credentials.to_json())
    except OSError as e:
        raise AuthError(f"Unable to cache OAuth token in '{token_file}': {e}") from e
    logger.info(f"OAuth token saved to {token_file}")


def authorize_interactive(config: GmailConfig) -> Credentials:
    """
    Run the browser consent flow and persist the resulting token.

    A temporary local web server receives the redirect on
    http://localhost:<oauth_port>/ and is shut down once the code arrives.

    Raises:
        AuthError: If the client secrets are unusable, the flow fails or the
            token cannot be written
    """
    if not Path(config.credentials_file).exists():
        raise AuthError(f"OAuth client secrets file '{config.credentials_file}' not found")

    try:
        flow = InstalledAppFlow.from_client_secrets_file(config.credentials_file, SCOPES)
        credentials = flow.run_local_server(
            port=config.oauth_port,
            access_type="offline",
            prompt="consent",
            authorization_prompt_message="Open this link in your browser to authorize Gmail access:\n{url}",
            success_message="Authorization successful! You can close this window.",
        )
    except Exception as e:
        # oauthlib, socket and client-secret errors all surface here
        raise AuthError(f"Interactive authorization failed: {e}") from e

    save_token(credentials, config.token_file)
    return credentials


def get_credentials(config: GmailConfig, interactive: bool = False) -> Credentials:
    """
    Return valid credentials, refreshing or re-authorizing as needed.

    Args:
        config: Gmail configuration with the credential and token paths
        interactive: Allow falling back to the browser flow when no usable
            token is cached

    Raises:
        AuthError: If no valid credentials can be obtained
    """
    credentials = load_token(config.token_file)

    if credentials and credentials.valid:
        return credentials

    if credentials and credentials.expired and credentials.refresh_token:
        logger.info("Refreshing expired OAuth token")
        try:
            credentials.refresh(Request())
        except GoogleAuthError as e:
            if not interactive:
                raise AuthError(f"OAuth token refresh failed: {e}") from e
            logger.warning(f"OAuth token refresh failed ({e}); re-authorizing")
        else:
            save_token(credentials, config.token_file)
            return credentials

    if not interactive:
        raise AuthError(
            f"No usable OAuth token in '{config.token_file}'. "
            "Run with --generate-token to authorize."
        )

    return authorize_interactive(config)
