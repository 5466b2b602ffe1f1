"""Gmail provider: the Gmail REST API as a mail backend.

Gmail labels play the role of folders. Message ids are Gmail message
ids, valid across labels, so the folder argument of message operations
is only used for listing.
"""

import base64
import logging
from contextlib import contextmanager

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from postier.auth import gmail as gmail_auth
from postier.backend.capability import Capability
from postier.backend.provider import Provider
from postier.config import Account
from postier.errors import ProviderError
from postier.mail import Envelopes, Folder, Folders, Message, parse_envelope
from postier.secret import SecretStore, default_store

logger = logging.getLogger(__name__)

# Flags stored as Gmail labels. "seen" is the absence of UNREAD.
FLAG_LABELS = {
    "flagged": "STARRED",
    "draft": "DRAFT",
}

ENVELOPE_HEADERS = ["Subject", "From", "Date"]


@contextmanager
def _gmail_errors(action: str):
    """Translate Gmail API errors into ProviderError."""
    try:
        yield
    except HttpError as e:
        raise ProviderError(f"Gmail API error while trying to {action}: {e}") from e


class GmailClient:
    """Client for Gmail API operations.

    Provides methods for labels, message listing and message content.
    Handles pagination automatically for list operations.

    Example:
        client = GmailClient(creds)
        labels = client.list_labels()
        messages = client.list_messages("INBOX", max_results=50)
    """

    def __init__(self, credentials: Credentials):
        """Initialize Gmail client with credentials.

        Args:
            credentials: Google OAuth credentials object.
        """
        self._credentials = credentials
        # The service is the main entry point for all Gmail API calls
        self._service = build("gmail", "v1", credentials=credentials)

    def list_labels(self) -> list[dict]:
        """List all labels in the user's mailbox.

        Returns:
            List of label dicts with keys: id, name, type.
            System labels have type='system', user labels have type='user'.
        """
        result = self._service.users().labels().list(userId="me").execute()
        labels = result.get("labels", [])

        return [
            {
                "id": label["id"],
                "name": label["name"],
                "type": label.get("type", "user"),
            }
            for label in labels
        ]

    def create_label(self, name: str) -> dict:
        """Create a user label and return its id and name."""
        result = (
            self._service.users()
            .labels()
            .create(userId="me", body={"name": name})
            .execute()
        )
        return {"id": result["id"], "name": result["name"]}

    def delete_label(self, label_id: str) -> None:
        self._service.users().labels().delete(userId="me", id=label_id).execute()

    def list_messages(
        self,
        label_id: str | None = None,
        query: str | None = None,
        max_results: int = 100,
    ) -> list[str]:
        """List message IDs matching the given criteria.

        Handles pagination automatically to fetch up to max_results messages.

        Args:
            label_id: Filter by label ID (e.g., "INBOX", "SENT").
            query: Gmail search query (e.g., "after:2024/01/01").
            max_results: Maximum number of message IDs to return.

        Returns:
            List of message ID strings.
        """
        message_ids = []
        page_token = None

        while len(message_ids) < max_results:
            # API max per page is 500
            page_size = min(max_results - len(message_ids), 500)

            params = {
                "userId": "me",
                "maxResults": page_size,
            }
            if label_id:
                params["labelIds"] = [label_id]
            if query:
                params["q"] = query
            if page_token:
                params["pageToken"] = page_token

            result = self._service.users().messages().list(**params).execute()

            for msg in result.get("messages", []):
                message_ids.append(msg["id"])
                if len(message_ids) >= max_results:
                    break

            page_token = result.get("nextPageToken")
            if not page_token:
                break

        return message_ids

    def get_message(self, message_id: str) -> dict:
        """Get a single message with full content.

        Fetches the message in RAW format (base64url-encoded RFC 2822)
        and decodes it to bytes.

        Returns:
            Dict with keys:
            - id: Message ID
            - labelIds: List of label IDs applied to this message
            - raw: Decoded message bytes (RFC 2822 format)
        """
        result = (
            self._service.users()
            .messages()
            .get(userId="me", id=message_id, format="raw")
            .execute()
        )

        # Gmail uses URL-safe base64 encoding
        raw_bytes = base64.urlsafe_b64decode(result.get("raw", ""))

        return {
            "id": result["id"],
            "labelIds": result.get("labelIds", []),
            "raw": raw_bytes,
        }

    def get_message_headers(self, message_id: str) -> dict:
        """Get the envelope headers and labels of a message.

        Returns:
            Dict with keys: id, labelIds, headers (name -> value).
        """
        result = (
            self._service.users()
            .messages()
            .get(
                userId="me",
                id=message_id,
                format="metadata",
                metadataHeaders=ENVELOPE_HEADERS,
            )
            .execute()
        )

        headers = {
            header["name"]: header["value"]
            for header in result.get("payload", {}).get("headers", [])
        }

        return {
            "id": result["id"],
            "labelIds": result.get("labelIds", []),
            "headers": headers,
        }

    def modify_labels(
        self,
        message_ids: list[str],
        add: list[str] | None = None,
        remove: list[str] | None = None,
    ) -> None:
        body = {
            "ids": message_ids,
            "addLabelIds": add or [],
            "removeLabelIds": remove or [],
        }
        self._service.users().messages().batchModify(userId="me", body=body).execute()

    def trash_message(self, message_id: str) -> None:
        self._service.users().messages().trash(userId="me", id=message_id).execute()


def labels_to_flags(label_ids: list[str]) -> set[str]:
    """Convert Gmail labels to flag names."""
    flags = {flag for flag, label in FLAG_LABELS.items() if label in label_ids}
    if "UNREAD" not in label_ids:
        flags.add("seen")
    return flags


def flags_to_labels(flags: set[str]) -> tuple[list[str], list[str]]:
    """Labels to add and labels to remove to set `flags`.

    Returns (add, remove): adding "seen" means removing UNREAD.
    """
    add = sorted(FLAG_LABELS[flag] for flag in flags if flag in FLAG_LABELS)
    remove = ["UNREAD"] if "seen" in flags else []
    return add, remove


class GmailProvider(Provider):
    """Gmail labels as folders, Gmail messages as messages."""

    kind = "gmail"
    capabilities = frozenset(
        {
            Capability.add_folder,
            Capability.list_folders,
            Capability.delete_folder,
            Capability.list_envelopes,
            Capability.get_messages,
            Capability.peek_messages,
            Capability.delete_messages,
            Capability.add_flags,
            Capability.remove_flags,
        }
    )

    def __init__(self, account: Account, store: SecretStore | None = None):
        super().__init__(account)
        self._store = store or default_store()
        self._client: GmailClient | None = None

    @property
    def client(self) -> GmailClient:
        """Gmail client, authenticated on first access."""
        if self._client is None:
            creds = gmail_auth.get_credentials(self.account, self._store)
            if creds is None:
                raise ProviderError(
                    f"Not authenticated with Gmail for account '{self.account.name}'. "
                    f"Run 'postier account configure --account {self.account.name}'"
                )
            logger.debug("connecting to Gmail for %s", self.account.name)
            self._client = GmailClient(creds)
        return self._client

    def _label_id(self, folder: str) -> str:
        """Label id for a folder name. System labels use their name as id."""
        with _gmail_errors("list labels"):
            labels = self.client.list_labels()
        for label in labels:
            if label["name"] == folder or label["id"] == folder:
                return label["id"]
        raise ProviderError(f"Folder {folder} not found")

    # Folders

    def add_folder(self, folder: str) -> None:
        with _gmail_errors(f"create folder {folder}"):
            self.client.create_label(folder)

    def list_folders(self) -> Folders:
        with _gmail_errors("list folders"):
            labels = self.client.list_labels()
        return Folders(
            Folder(name=label["name"], delim="/", desc=label["type"]) for label in labels
        )

    def delete_folder(self, folder: str) -> None:
        label_id = self._label_id(folder)
        with _gmail_errors(f"delete folder {folder}"):
            self.client.delete_label(label_id)

    # Envelopes

    def list_envelopes(self, folder: str, page_size: int = 0, page: int = 0) -> Envelopes:
        label_id = self._label_id(folder)
        max_results = (page + 1) * page_size if page_size else self.account.max_messages

        with _gmail_errors(f"list envelopes of {folder}"):
            ids = self.client.list_messages(label_id=label_id, max_results=max_results)
            if page_size:
                ids = ids[page * page_size :]

            envelopes = Envelopes()
            for message_id in ids:
                data = self.client.get_message_headers(message_id)
                header_bytes = "".join(
                    f"{name}: {value}\r\n" for name, value in data["headers"].items()
                ).encode("utf-8")
                envelopes.append(
                    parse_envelope(
                        message_id, header_bytes, labels_to_flags(data["labelIds"])
                    )
                )

        return envelopes

    # Messages

    def get_messages(self, folder: str, ids: list[str]) -> list[Message]:
        messages = []
        with _gmail_errors("fetch messages"):
            for message_id in ids:
                data = self.client.get_message(message_id)
                messages.append(Message(id=data["id"], raw=data["raw"]))
        return messages

    # A raw fetch leaves UNREAD in place
    peek_messages = get_messages

    def delete_messages(self, folder: str, ids: list[str]) -> None:
        """Move messages to the Gmail trash."""
        with _gmail_errors("delete messages"):
            for message_id in ids:
                self.client.trash_message(message_id)

    # Flags

    def add_flags(self, folder: str, ids: list[str], flags: set[str]) -> None:
        add, remove = flags_to_labels(flags)
        with _gmail_errors("add flags"):
            self.client.modify_labels(ids, add=add, remove=remove)

    def remove_flags(self, folder: str, ids: list[str], flags: set[str]) -> None:
        # Removing a flag is the mirror image of adding it
        add, remove = flags_to_labels(flags)
        with _gmail_errors("remove flags"):
            self.client.modify_labels(ids, add=remove, remove=add)
