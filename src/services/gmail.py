"""
Gmail mailbox adapter.

Implements the mailbox capability on top of the Gmail REST API
(google-api-python-client). Threads with a starred message are fetched in
full, including attachment payloads, so the domain works on plain data
models; the rest are only fetched in minimal form.
"""

import base64
import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from domain.models import Attachment, Label, Message, Thread

logger = logging.getLogger(__name__)

SCOPES = ['https://www.googleapis.com/auth/gmail.modify']

STARRED_LABEL_ID = 'STARRED'
USER_ID = 'me'


def load_credentials(token_json: str) -> Credentials:
    """
    Load OAuth credentials from an authorized-user token.

    Args:
        token_json: Token JSON as written by the OAuth installed-app flow

    Returns:
        Valid credentials (refreshed if the access token expired)

    Raises:
        ValueError: If the token is malformed or cannot be refreshed
    """
    if not token_json:
        raise ValueError("Gmail token cannot be empty")

    try:
        info = json.loads(token_json)
    except json.JSONDecodeError as e:
        raise ValueError(f"Gmail token is not valid JSON: {e}")

    creds = Credentials.from_authorized_user_info(info, SCOPES)

    if not creds.valid:
        if creds.expired and creds.refresh_token:
            logger.info("Refreshing expired Gmail access token")
            creds.refresh(Request())
        else:
            raise ValueError("Gmail token is invalid and has no refresh token")

    return creds


def build_gmail_service(credentials: Credentials):
    """Build an authenticated Gmail API client."""
    return build('gmail', 'v1', credentials=credentials, cache_discovery=False)


class GmailMailbox:
    """
    Mailbox backed by the Gmail API.

    Gmail pages threads with opaque tokens rather than offsets, so the
    token for the next offset is remembered after every page. Offsets must
    therefore be requested in order, starting at 0.

    Args:
        service: Gmail API client from build_gmail_service()
    """

    def __init__(self, service):
        self.service = service
        self._page_tokens: Dict[Tuple[str, int], str] = {}

    def list_labels(self) -> List[Label]:
        response = self.service.users().labels().list(userId=USER_ID).execute()

        labels = [
            Label(name=item['name'], label_id=item['id'])
            for item in response.get('labels', [])
            if item.get('type') == 'user'
        ]
        logger.info(f"Found {len(labels)} user label(s)")

        return labels

    def get_threads(self, label: Label, offset: int, count: int) -> List[Thread]:
        page_token = None
        if offset > 0:
            page_token = self._page_tokens.get((label.label_id, offset))
            if page_token is None:
                return []

        response = self.service.users().threads().list(
            userId=USER_ID,
            labelIds=[label.label_id],
            maxResults=count,
            pageToken=page_token
        ).execute()

        next_token = response.get('nextPageToken')
        if next_token:
            self._page_tokens[(label.label_id, offset + count)] = next_token

        return [self._fetch_thread(item['id']) for item in response.get('threads', [])]

    def unstar(self, message: Message) -> None:
        self.service.users().messages().modify(
            userId=USER_ID,
            id=message.message_id,
            body={'removeLabelIds': [STARRED_LABEL_ID]}
        ).execute()

    def _fetch_thread(self, thread_id: str) -> Thread:
        """
        Fetch a thread, loading headers and parts only when it is starred.

        The minimal format carries labelIds and internalDate, which is all
        the scanner needs to discard threads without starred messages.
        """
        data = self._get_thread(thread_id, 'minimal')

        starred = any(
            STARRED_LABEL_ID in m.get('labelIds', [])
            for m in data.get('messages', [])
        )
        if starred:
            data = self._get_thread(thread_id, 'full')

        messages = [self._to_message(m) for m in data.get('messages', [])]
        return Thread(thread_id=thread_id, messages=messages)

    def _get_thread(self, thread_id: str, thread_format: str) -> Dict[str, Any]:
        return self.service.users().threads().get(
            userId=USER_ID,
            id=thread_id,
            format=thread_format
        ).execute()

    def _to_message(self, data: Dict[str, Any]) -> Message:
        """
        Convert a Gmail message resource into a Message.

        Attachment payloads are only downloaded for starred messages; the
        others are never processed.
        """
        message_id = data['id']
        starred = STARRED_LABEL_ID in data.get('labelIds', [])
        payload = data.get('payload', {})

        headers = {
            h.get('name', '').lower(): h.get('value', '')
            for h in payload.get('headers', [])
        }

        received_at = datetime.fromtimestamp(
            int(data.get('internalDate', '0')) / 1000,
            tz=timezone.utc
        )

        attachments = []
        if starred:
            attachments = [
                self._to_attachment(message_id, part)
                for part in _iter_parts(payload)
                if part.get('filename')
            ]

        return Message(
            message_id=message_id,
            sender=headers.get('from', ''),
            received_at=received_at,
            attachments=attachments,
            starred=starred
        )

    def _to_attachment(self, message_id: str, part: Dict[str, Any]) -> Attachment:
        body = part.get('body', {})
        data = body.get('data')

        if not data and body.get('attachmentId'):
            response = self.service.users().messages().attachments().get(
                userId=USER_ID,
                messageId=message_id,
                id=body['attachmentId']
            ).execute()
            data = response.get('data')

        return Attachment(
            name=part['filename'],
            content=_decode_data(data),
            content_type=part.get('mimeType', 'application/octet-stream')
        )


def _iter_parts(part: Dict[str, Any]) -> Iterable[Dict[str, Any]]:
    """Recursively yield all leaf MIME parts."""
    children = part.get('parts')
    if children:
        for child in children:
            yield from _iter_parts(child)
    elif part:
        yield part


def _decode_data(data: Optional[str]) -> bytes:
    if not data:
        return b''
    # Gmail may omit base64 padding
    padding = '=' * (-len(data) % 4)
    return base64.urlsafe_b64decode(data + padding)
