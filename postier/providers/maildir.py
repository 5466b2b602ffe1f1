"""Maildir provider: a local Maildir tree as a mail backend.

Serves the account's `mail_dir`, or its synchronization cache when
built with for_sync_cache().
"""

import logging
from contextlib import contextmanager
from pathlib import Path

from postier.backend.capability import Capability
from postier.backend.provider import Provider
from postier.config import Account
from postier.errors import ConfigError, ProviderError
from postier.mail import Envelope, Envelopes, Folder, Folders, Message, parse_envelope
from postier.storage.maildir import MaildirStorage

logger = logging.getLogger(__name__)


@contextmanager
def _maildir_errors(action: str):
    """Translate filesystem errors into ProviderError."""
    try:
        yield
    except OSError as e:
        raise ProviderError(f"Cannot {action}: {e}") from e


class MaildirProvider(Provider):
    """Every folder, envelope, message and flag operation on a Maildir."""

    kind = "maildir"
    capabilities = frozenset(
        {
            Capability.add_folder,
            Capability.list_folders,
            Capability.expunge_folder,
            Capability.purge_folder,
            Capability.delete_folder,
            Capability.get_envelope,
            Capability.list_envelopes,
            Capability.add_message,
            Capability.get_messages,
            Capability.peek_messages,
            Capability.copy_messages,
            Capability.move_messages,
            Capability.delete_messages,
            Capability.add_flags,
            Capability.set_flags,
            Capability.remove_flags,
        }
    )

    def __init__(self, account: Account, root: Path | None = None):
        super().__init__(account)
        root = root or account.mail_dir
        if root is None:
            raise ConfigError(f"Account '{account.name}' has no mail_dir configured")
        self.storage = MaildirStorage(root)

    @classmethod
    def for_sync_cache(cls, account: Account) -> "MaildirProvider":
        return cls(account, root=account.sync_dir)

    # Folders

    def add_folder(self, folder: str) -> None:
        with _maildir_errors(f"create folder {folder}"):
            self.storage.ensure_folder(folder)

    def list_folders(self) -> Folders:
        with _maildir_errors("list folders"):
            names = self.storage.list_folders()
        return Folders(Folder(name=name, delim="/", desc="") for name in names)

    def expunge_folder(self, folder: str) -> None:
        with _maildir_errors(f"expunge folder {folder}"):
            removed = self.storage.expunge(folder)
        logger.debug("expunged %d message(s) from %s", removed, folder)

    def purge_folder(self, folder: str) -> None:
        with _maildir_errors(f"purge folder {folder}"):
            removed = self.storage.purge(folder)
        logger.debug("purged %d message(s) from %s", removed, folder)

    def delete_folder(self, folder: str) -> None:
        with _maildir_errors(f"delete folder {folder}"):
            self.storage.delete_folder(folder)

    # Envelopes

    def get_envelope(self, folder: str, message_id: str) -> Envelope:
        path = self._message_path(folder, message_id)
        _, info = self.storage.parse_filename(path.name)
        with _maildir_errors(f"read message {message_id}"):
            raw = path.read_bytes()
        return parse_envelope(message_id, raw, self.storage.info_to_flags(info))

    def list_envelopes(self, folder: str, page_size: int = 0, page: int = 0) -> Envelopes:
        with _maildir_errors(f"list envelopes of {folder}"):
            entries = self.storage.iter_messages(folder)

            if page_size:
                entries = entries[page * page_size : (page + 1) * page_size]

            return Envelopes(
                parse_envelope(message_id, path.read_bytes(), flags)
                for message_id, path, flags in entries
            )

    # Messages

    def _message_path(self, folder: str, message_id: str) -> Path:
        path = self.storage.get_message_path(message_id, folder)
        if path is None:
            raise ProviderError(f"Message {message_id} not found in folder {folder}")
        return path

    def add_message(
        self,
        folder: str,
        raw: bytes,
        flags: set[str],
        message_id: str | None = None,
    ) -> str:
        with _maildir_errors(f"add message to {folder}"):
            message_id, _ = self.storage.write_message(folder, raw, flags, message_id)
        return message_id

    def _read_messages(self, folder: str, ids: list[str], mark_seen: bool) -> list[Message]:
        messages = []
        for message_id in ids:
            path = self._message_path(folder, message_id)
            with _maildir_errors(f"read message {message_id}"):
                raw = path.read_bytes()
                if mark_seen:
                    _, info = self.storage.parse_filename(path.name)
                    flags = self.storage.info_to_flags(info)
                    if "seen" not in flags:
                        self.storage.set_message_flags(path, flags | {"seen"})
            messages.append(Message(id=message_id, raw=raw))
        return messages

    def get_messages(self, folder: str, ids: list[str]) -> list[Message]:
        return self._read_messages(folder, ids, mark_seen=True)

    def peek_messages(self, folder: str, ids: list[str]) -> list[Message]:
        return self._read_messages(folder, ids, mark_seen=False)

    def copy_messages(self, from_folder: str, to_folder: str, ids: list[str]) -> None:
        for message_id in ids:
            path = self._message_path(from_folder, message_id)
            _, info = self.storage.parse_filename(path.name)
            with _maildir_errors(f"copy message {message_id} to {to_folder}"):
                self.storage.write_message(
                    to_folder, path.read_bytes(), self.storage.info_to_flags(info)
                )

    def move_messages(self, from_folder: str, to_folder: str, ids: list[str]) -> None:
        for message_id in ids:
            path = self._message_path(from_folder, message_id)
            with _maildir_errors(f"move message {message_id} to {to_folder}"):
                target = self.storage.ensure_folder(to_folder) / path.parent.name / path.name
                path.rename(target)

    def delete_messages(self, folder: str, ids: list[str]) -> None:
        """Flag messages as deleted; expunge_folder removes them."""
        self.add_flags(folder, ids, {"deleted"})

    # Flags

    def _update_flags(self, folder: str, ids: list[str], update) -> None:
        for message_id in ids:
            path = self._message_path(folder, message_id)
            _, info = self.storage.parse_filename(path.name)
            flags = update(self.storage.info_to_flags(info))
            with _maildir_errors(f"update flags of message {message_id}"):
                self.storage.set_message_flags(path, flags)

    def add_flags(self, folder: str, ids: list[str], flags: set[str]) -> None:
        self._update_flags(folder, ids, lambda current: current | set(flags))

    def set_flags(self, folder: str, ids: list[str], flags: set[str]) -> None:
        self._update_flags(folder, ids, lambda current: set(flags))

    def remove_flags(self, folder: str, ids: list[str], flags: set[str]) -> None:
        self._update_flags(folder, ids, lambda current: current - set(flags))
