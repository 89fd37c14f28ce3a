import logging
import os
from typing import Any, Dict, Iterator, List, Optional

import httplib2
from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .errors import CredentialError, RemoteError

logger = logging.getLogger(__name__)

# Gmail caps batchModify / batchDelete at this many ids per request
MAX_BATCH_IDS = 1000


class GmailClient:
    """Gmail API client exposing the search / fetch / batch-mutate calls a run needs"""

    # Gmail API scopes needed for reading, relabelling and deleting emails
    SCOPES = [
        'https://mail.google.com/'  # batchDelete is refused under gmail.modify
    ]

    MAX_BATCH_IDS = MAX_BATCH_IDS

    def __init__(self, credentials_json_path: str = "credentials.json", token_path: str = "token.json",
                 page_size: int = 100, service=None):
        """
        Initialize Gmail OAuth2 client

        Args:
            credentials_json_path: Path to the credentials.json file from Google Cloud Console
            token_path: Where the authorized-user token is cached between runs
            page_size: Number of message ids to request per list call (1-500, default 100)
            service: An already-built Gmail service; skips the OAuth flow when given
        """
        self.credentials_path = credentials_json_path
        self.token_path = token_path
        self.page_size = min(max(page_size, 1), 500)  # Clamp between 1 and 500
        self.service = service

    @property
    def connected(self) -> bool:
        return self.service is not None

    def _load_cached_credentials(self) -> Optional[Credentials]:
        if not os.path.exists(self.token_path):
            return None
        try:
            return Credentials.from_authorized_user_file(self.token_path, self.SCOPES)
        except (ValueError, OSError) as e:
            logger.warning("Ignoring unreadable token cache %s: %s", self.token_path, e)
            return None

    def _save_credentials(self, creds: Credentials) -> None:
        logger.info("Saving credential file to: %s", self.token_path)
        try:
            fd = os.open(self.token_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as token:
                token.write(creds.to_json())
        except OSError as e:
            raise CredentialError(f"Unable to cache oauth token: {e}") from e

    def _get_credentials(self) -> Credentials:
        """Get OAuth2 credentials for Gmail API"""
        creds = self._load_cached_credentials()

        if creds and creds.valid:
            return creds

        # If no valid credentials, get new ones
        if creds and creds.expired and creds.refresh_token:
            try:
                logger.info("Refreshing access token")
                creds.refresh(Request())
            except GoogleAuthError as e:
                logger.warning("Token refresh failed, re-authorizing: %s", e)
                creds = None
        else:
            creds = None

        if creds is None:
            if not os.path.exists(self.credentials_path):
                raise CredentialError(f"Unable to read client secret file: {self.credentials_path}")
            try:
                flow = InstalledAppFlow.from_client_secrets_file(self.credentials_path, self.SCOPES)
            except ValueError as e:
                raise CredentialError(f"Unable to parse client secret file to config: {e}") from e
            try:
                creds = flow.run_local_server(port=0)
            except Exception as e:
                raise CredentialError(f"Unable to retrieve token from web: {e}") from e

        # Save credentials for next run
        self._save_credentials(creds)
        return creds

    def connect(self) -> "GmailClient":
        """Establish connection to Gmail API"""
        if self.connected:
            return self
        creds = self._get_credentials()
        try:
            self.service = build('gmail', 'v1', credentials=creds, cache_discovery=False)
        except (HttpError, OSError) as e:
            raise CredentialError(f"Unable to retrieve Gmail client: {e}") from e
        return self

    def disconnect(self) -> None:
        """Close the Gmail API connection"""
        self.service = None

    def _execute(self, request, action: str):
        try:
            return request.execute()
        except HttpError as error:
            raise RemoteError(f"{action} failed: {error}", status=error.resp.status) from error
        except (OSError, httplib2.HttpLib2Error, GoogleAuthError) as error:
            raise RemoteError(f"{action} failed: {error}") from error

    def search(self, user: str, query: str) -> Iterator[str]:
        """
        Yield ids of messages matching ``query``, in the order Gmail returns them

        Pages are requested lazily, so a caller that stops iterating early
        does not pay for the pages it never reads.
        """
        if not self.connected:
            self.connect()

        page_token = None
        while True:
            results = self._execute(
                self.service.users().messages().list(
                    userId=user,
                    q=query,
                    pageToken=page_token,
                    maxResults=self.page_size
                ),
                f"Search {query!r}"
            )

            for msg in results.get('messages', []):
                yield msg['id']

            # Check if there are more pages
            page_token = results.get('nextPageToken')
            if not page_token:
                break

    def fetch_metadata(self, user: str, msg_id: str) -> Dict[str, Any]:
        """Fetch one message in metadata format (headers, labels, sizes, no body)"""
        if not self.connected:
            self.connect()

        return self._execute(
            self.service.users().messages().get(userId=user, id=msg_id, format='metadata'),
            f"Fetch of message {msg_id}"
        )

    def batch_remove_label(self, user: str, ids: List[str], label: str) -> None:
        """Remove ``label`` from every message in ``ids`` with one batchModify call"""
        if not self.connected:
            self.connect()
        if len(ids) > self.MAX_BATCH_IDS:
            raise ValueError(f"batchModify accepts at most {self.MAX_BATCH_IDS} ids, got {len(ids)}")

        self._execute(
            self.service.users().messages().batchModify(
                userId=user,
                body={'ids': list(ids), 'removeLabelIds': [label]}
            ),
            f"Removing label {label} from {len(ids)} messages"
        )

    def batch_delete(self, user: str, ids: List[str]) -> None:
        """Permanently delete every message in ``ids`` with one batchDelete call"""
        if not self.connected:
            self.connect()
        if len(ids) > self.MAX_BATCH_IDS:
            raise ValueError(f"batchDelete accepts at most {self.MAX_BATCH_IDS} ids, got {len(ids)}")

        self._execute(
            self.service.users().messages().batchDelete(userId=user, body={'ids': list(ids)}),
            f"Deleting {len(ids)} messages"
        )

    def __enter__(self):
        """Context manager entry"""
        return self.connect()

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.disconnect()
