"""Download of message attachments.

Fetches messages from the account (through the sync cache when one is
enabled), extracts every attachment and writes it to the account's
downloads directory.

Any failure (fetch, MIME parsing, file write) ends the command; files
already written stay on disk.
"""

import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass

from postier.backend import CONTEXT, Capability, Provider, resolve_backend
from postier.config import Account
from postier.errors import AttachmentWriteError
from postier.mail import Attachment
from postier.printer import Printer

logger = logging.getLogger(__name__)

REQUIRED_CAPABILITIES = frozenset({Capability.get_messages})

# Messages come from the sync cache when the account has one
CAPABILITY_OVERRIDES = {Capability.get_messages: CONTEXT}


@dataclass
class DownloadReport:
    """Counters of one download run."""

    messages_with_attachments: int = 0
    attachments_downloaded: int = 0

    def summary(self) -> str:
        if self.attachments_downloaded == 0:
            return "No attachment found!"
        if self.attachments_downloaded == 1:
            return "Downloaded 1 attachment!"
        return (
            f"Downloaded {self.attachments_downloaded} attachment(s) "
            f"from {self.messages_with_attachments} messages(s)!"
        )


def attachment_filename(attachment: Attachment) -> str:
    """Declared filename, or a fresh random one when the part has none."""
    return attachment.filename or str(uuid.uuid4())


def download_attachments(
    printer: Printer,
    account: Account,
    ids: list[str],
    folder: str | None = None,
    registry: Mapping[str, type[Provider]] | None = None,
) -> DownloadReport:
    """Download every attachment of the given messages.

    Args:
        printer: Receives progress lines and the final summary.
        account: Account to read from; also gives the downloads directory.
        ids: Message ids, fetched in this order.
        folder: Folder of the messages (default: the account's default folder).
        registry: Provider classes, for tests (default: registered providers).

    Returns:
        The counters behind the summary line.

    Raises:
        CapabilityUnsupported: If no backend of the account can fetch messages.
        MessageParseError: If a message has a broken MIME structure.
        AttachmentWriteError: If a file cannot be written.
    """
    logger.info("downloading attachments of %d message(s)", len(ids))
    folder = folder or account.default_folder

    backend = resolve_backend(
        account, REQUIRED_CAPABILITIES, CAPABILITY_OVERRIDES, registry=registry
    )
    with backend:
        messages = backend.get_messages(folder, ids)

    report = DownloadReport()

    for message in messages:
        attachments = message.attachments()

        if not attachments:
            printer.log(f"No attachment found for message {message.id}!")
            continue

        report.messages_with_attachments += 1
        printer.log(f"{len(attachments)} attachment(s) found for message {message.id}!")

        for attachment in attachments:
            filename = attachment_filename(attachment)
            try:
                filepath = account.get_download_file_path(filename)
            except (OSError, ValueError) as e:
                raise AttachmentWriteError(account.downloads_dir / filename, e) from e

            printer.log(f"Downloading {str(filepath)!r}…")
            try:
                filepath.write_bytes(attachment.body)
            except (OSError, ValueError) as e:
                raise AttachmentWriteError(filepath, e) from e
            report.attachments_downloaded += 1

    printer.out(report.summary())
    return report
