"""Maildir storage for email messages.

Implements Maildir format compatible with notmuch and standard mail tools.
Handles folder creation, message writing, and flag bookkeeping.

Maildir format uses three subdirectories:
- tmp/: Messages being delivered (atomic write in progress)
- new/: Newly delivered, unread messages
- cur/: Messages that have been seen

Message filenames follow the format:
<timestamp>.<unique-id>.<hostname>:2,<flags>

Flags are single uppercase letters (alphabetically sorted):
- D: Draft
- F: Flagged
- R: Replied
- S: Seen (read)
- T: Trashed
"""

import os
import shutil
import socket
import time
import uuid
from pathlib import Path

# Postier flag names mapped to Maildir info letters
FLAG_LETTERS = {
    "draft": "D",
    "flagged": "F",
    "answered": "R",
    "seen": "S",
    "deleted": "T",
}

LETTER_FLAGS = {letter: flag for flag, letter in FLAG_LETTERS.items()}

MAILDIR_SUBDIRS = ("cur", "new", "tmp")


class MaildirStorage:
    """Storage backend for Maildir format.

    Folders are plain nested directories under the base path, each one
    holding cur/, new/ and tmp/. Messages are written atomically
    (tmp -> cur/new) to prevent corruption.

    Example:
        storage = MaildirStorage(Path("~/Mail/Personal"))
        storage.ensure_folder("INBOX")
        message_id, path = storage.write_message("INBOX", message_bytes, {"seen"})
    """

    def __init__(self, base_path: Path):
        """Initialize Maildir storage.

        Args:
            base_path: Base directory for Maildir storage (e.g., ~/Mail/Personal).
                       Will be created on first write if it doesn't exist.
        """
        self._base_path = base_path.expanduser().resolve()
        self._hostname = socket.gethostname().replace("/", "_").replace(":", "_")

    @property
    def base_path(self) -> Path:
        """Get the base path for this Maildir storage."""
        return self._base_path

    def ensure_folder(self, folder_name: str) -> Path:
        """Create a Maildir folder structure.

        Creates the folder with cur/, new/, tmp/ subdirectories as required
        by the Maildir specification. Safe to call multiple times.

        Args:
            folder_name: Folder name (e.g., "INBOX", "Sent", "Work/Projects").

        Returns:
            Path to the folder directory.
        """
        folder_path = self._base_path / folder_name

        for subdir in MAILDIR_SUBDIRS:
            (folder_path / subdir).mkdir(parents=True, exist_ok=True)

        return folder_path

    def folder_exists(self, folder_name: str) -> bool:
        folder_path = self._base_path / folder_name
        return all((folder_path / subdir).is_dir() for subdir in MAILDIR_SUBDIRS)

    def folder_path(self, folder_name: str) -> Path:
        """Path of an existing folder.

        Raises:
            FileNotFoundError: If the folder is not a Maildir.
        """
        if not self.folder_exists(folder_name):
            raise FileNotFoundError(f"Folder {folder_name} not found in {self._base_path}")
        return self._base_path / folder_name

    def list_folders(self) -> list[str]:
        """Names of every Maildir folder below the base path, sorted.

        Nested folders are named with "/" (e.g. "Work/Projects").
        """
        if not self._base_path.is_dir():
            return []

        folders = []
        for cur_dir in self._base_path.rglob("cur"):
            folder_path = cur_dir.parent
            if folder_path == self._base_path:
                continue
            if all((folder_path / subdir).is_dir() for subdir in MAILDIR_SUBDIRS):
                folders.append(folder_path.relative_to(self._base_path).as_posix())

        return sorted(folders)

    def delete_folder(self, folder_name: str) -> None:
        """Remove a folder and every message in it.

        Raises:
            FileNotFoundError: If the folder does not exist.
        """
        shutil.rmtree(self.folder_path(folder_name))

    def flags_to_info(self, flags: set[str]) -> str:
        """Convert flag names to an alphabetically sorted Maildir info string."""
        return "".join(sorted(FLAG_LETTERS[flag] for flag in flags if flag in FLAG_LETTERS))

    def info_to_flags(self, info: str) -> set[str]:
        """Convert a Maildir info string back to flag names."""
        return {LETTER_FLAGS[letter] for letter in info if letter in LETTER_FLAGS}

    def generate_filename(self, message_id: str, flags: set[str]) -> str:
        """Generate a Maildir-compliant filename for a message.

        Format: <timestamp>.<message_id>.<hostname>:2,<flags>

        The "2," prefix before flags indicates Maildir info2 format,
        which is the standard for storing flags in filenames.
        """
        timestamp = int(time.time())
        return f"{timestamp}.{message_id}.{self._hostname}:2,{self.flags_to_info(flags)}"

    @staticmethod
    def parse_filename(filename: str) -> tuple[str, str]:
        """Split a Maildir filename into (message_id, info).

        Files delivered by other tools may not follow our naming; their
        whole base name is then used as the id.
        """
        base, _, info = filename.partition(":2,")
        parts = base.split(".", 2)
        if len(parts) == 3:
            return parts[1], info
        return base, info

    def write_message(
        self,
        folder: str,
        message_bytes: bytes,
        flags: set[str],
        message_id: str | None = None,
    ) -> tuple[str, Path]:
        """Write a message to Maildir storage.

        Messages are written atomically: first to tmp/, then moved to
        either new/ (unread) or cur/ (read). This prevents corruption
        if the process is interrupted.

        Args:
            folder: Target folder name (e.g., "INBOX").
            message_bytes: Raw RFC 2822 message content.
            flags: Flag names (e.g., {"seen", "flagged"}).
            message_id: Id to store the message under; generated if None.

        Returns:
            The message id and the path of the written file.
        """
        folder_path = self.ensure_folder(folder)

        message_id = message_id or uuid.uuid4().hex
        filename = self.generate_filename(message_id, flags)

        tmp_path = folder_path / "tmp" / filename
        tmp_path.write_bytes(message_bytes)

        dest_dir = "cur" if "seen" in flags else "new"
        dest_path = folder_path / dest_dir / filename

        # os.rename is atomic on POSIX systems when src and dest are on same filesystem
        os.rename(tmp_path, dest_path)

        return message_id, dest_path

    def iter_messages(self, folder: str) -> list[tuple[str, Path, set[str]]]:
        """(id, path, flags) of every message in a folder, newest first.

        Raises:
            FileNotFoundError: If the folder does not exist.
        """
        folder_path = self.folder_path(folder)
        entries = []
        for subdir in ("cur", "new"):
            for path in (folder_path / subdir).iterdir():
                if not path.is_file():
                    continue
                message_id, info = self.parse_filename(path.name)
                entries.append((message_id, path, self.info_to_flags(info)))

        entries.sort(key=lambda entry: entry[1].stat().st_mtime, reverse=True)
        return entries

    def message_exists(self, message_id: str, folder: str | None = None) -> bool:
        """Check if a message already exists in storage.

        Looks in `folder` only when given, otherwise in every folder.
        """
        return self.get_message_path(message_id, folder) is not None

    def get_message_path(self, message_id: str, folder: str | None = None) -> Path | None:
        """Get the path to a specific message if it exists.

        Ids are compared exactly against parse_filename(), so names
        delivered by other tools are found too.

        Args:
            message_id: Message id to find.
            folder: Restrict the lookup to this folder.

        Returns:
            Path to the message file, or None if not found.
        """
        if folder:
            if not self.folder_exists(folder):
                return None
            folders = [folder]
        else:
            folders = self.list_folders()

        for name in folders:
            # Only delivered messages, not tmp/
            for subdir in ("cur", "new"):
                for path in (self._base_path / name / subdir).iterdir():
                    if path.is_file() and self.parse_filename(path.name)[0] == message_id:
                        return path

        return None

    def set_message_flags(self, path: Path, flags: set[str]) -> Path:
        """Rewrite the flags of a message; it ends up in cur/.

        Returns:
            The new path of the message.
        """
        base = path.name.partition(":2,")[0]
        new_path = path.parent.parent / "cur" / f"{base}:2,{self.flags_to_info(flags)}"
        os.rename(path, new_path)
        return new_path

    def expunge(self, folder: str) -> int:
        """Delete messages flagged as trashed. Returns how many were removed."""
        removed = 0
        for _, path, flags in self.iter_messages(folder):
            if "deleted" in flags:
                path.unlink()
                removed += 1
        return removed

    def purge(self, folder: str) -> int:
        """Delete every message of a folder. Returns how many were removed."""
        removed = 0
        for _, path, _ in self.iter_messages(folder):
            path.unlink()
            removed += 1
        return removed
