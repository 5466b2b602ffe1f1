"""Notmuch provider: envelope search via the notmuch CLI.

Wraps the notmuch command-line tool to search emails stored in Maildir
format. We use subprocess instead of Python bindings for easier
installation and maintenance.
"""

import json
import logging
import shutil
import subprocess
from email.utils import parsedate_to_datetime

from postier.backend.capability import Capability
from postier.backend.provider import Provider
from postier.config import Account
from postier.errors import ConfigError, ProviderError
from postier.mail import Envelope, Envelopes

logger = logging.getLogger(__name__)

# notmuch tags mapped to flag names. "seen" is the absence of "unread".
TAG_FLAGS = {
    "flagged": "flagged",
    "replied": "answered",
    "draft": "draft",
    "deleted": "deleted",
}


class NotmuchError(ProviderError):
    """Error from notmuch command."""

    pass


class NotmuchNotFoundError(NotmuchError):
    """notmuch binary not found."""

    pass


class NotmuchDatabaseError(NotmuchError):
    """notmuch database not initialized."""

    pass


def check_notmuch_available() -> None:
    """Check if notmuch is installed and database exists.

    Raises:
        NotmuchNotFoundError: If notmuch binary is not found.
        NotmuchDatabaseError: If notmuch database is not initialized.
    """
    if not shutil.which("notmuch"):
        raise NotmuchNotFoundError("notmuch not found. Install with: apt install notmuch")

    # notmuch count fails when there is no database
    result = subprocess.run(
        ["notmuch", "count", "*"],
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        stderr = result.stderr.lower()
        if "database" in stderr or "no mail" in stderr:
            raise NotmuchDatabaseError("Run 'notmuch new' to index your mail")


def _run_notmuch(args: list[str]) -> str:
    result = subprocess.run(["notmuch", *args], capture_output=True, text=True)
    if result.returncode != 0:
        raise NotmuchError(result.stderr.strip() or f"notmuch {args[0]} failed")
    return result.stdout


def tags_to_flags(tags: list[str]) -> set[str]:
    flags = {flag for tag, flag in TAG_FLAGS.items() if tag in tags}
    if "unread" not in tags:
        flags.add("seen")
    return flags


class NotmuchProvider(Provider):
    """Envelope search over the notmuch index of the account's mail_dir."""

    kind = "notmuch"
    capabilities = frozenset({Capability.search_envelopes})

    def __init__(self, account: Account):
        super().__init__(account)
        if account.mail_dir is None:
            raise ConfigError(f"Account '{account.name}' has no mail_dir configured")
        self.mail_dir = account.mail_dir
        self._checked = False

    def scoped_query(self, folder: str | None, query: str) -> str:
        """Restrict a query to this account's Maildir (and folder).

        mail_dir might be ~/Maildir/personal; path:personal/** matches
        messages under that directory tree.
        """
        root = self.mail_dir.name
        scope = f"folder:{root}/{folder}" if folder else f"path:{root}/**"
        return f"{scope} AND ({query})" if query else scope

    def search_envelopes(
        self, folder: str | None, query: str, page_size: int = 0, page: int = 0
    ) -> Envelopes:
        if not self._checked:
            check_notmuch_available()
            self._checked = True

        args = ["search", "--format=json", "--output=messages"]
        if page_size:
            args += [f"--limit={page_size}", f"--offset={page * page_size}"]
        args.append(self.scoped_query(folder, query))

        output = _run_notmuch(args)
        try:
            message_ids = json.loads(output) if output.strip() else []
        except json.JSONDecodeError as e:
            raise NotmuchError(f"Failed to parse notmuch output: {e}") from e

        envelopes = Envelopes()
        for message_id in message_ids:
            envelope = self._get_envelope(message_id)
            if envelope is not None:
                envelopes.append(envelope)
        return envelopes

    def _get_envelope(self, message_id: str) -> Envelope | None:
        """Headers and tags of one message.

        Uses: notmuch show --format=json --body=false id:<message_id>
        """
        try:
            output = _run_notmuch(
                ["show", "--format=json", "--body=false", f"id:{message_id}"]
            )
            data = json.loads(output)
        except (NotmuchError, json.JSONDecodeError) as e:
            # Skip messages we can't read
            logger.warning("skipping unreadable message %s: %s", message_id, e)
            return None

        return _parse_message_json(data)


def _parse_message_json(data: list) -> Envelope | None:
    """Parse notmuch show JSON output into an Envelope.

    notmuch show returns a nested structure:
    [
      [
        [
          {"id": ..., "headers": {...}, "tags": [...], ...},
          []  # replies
        ]
      ]
    ]
    """
    # Structure: list of threads -> list of messages -> (message, replies)
    if not data or not data[0] or not data[0][0]:
        return None

    message = data[0][0][0]
    headers = message.get("headers", {})

    try:
        date = parsedate_to_datetime(headers.get("Date", ""))
    except (ValueError, TypeError):
        date = None

    return Envelope(
        id=message.get("id", ""),
        subject=headers.get("Subject", ""),
        from_addr=headers.get("From", ""),
        date=date,
        flags=tags_to_flags(message.get("tags", [])),
    )
