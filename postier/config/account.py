"""Resolved account: one configured account plus the global defaults."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

from postier.folder.sync import FolderSyncStrategy

from .paths import DEFAULT_DOWNLOADS_DIR, SYNC_CACHE_DIR
from .schema import AccountConfig, DefaultsConfig

logger = logging.getLogger(__name__)

DEFAULT_FOLDER = "INBOX"
DEFAULT_BACKENDS = ["maildir"]


def _clean_filename(filename: str) -> str:
    # NUL and other control characters are not valid in file names
    return "".join("_" if ord(c) < 32 or ord(c) == 127 else c for c in filename)


@dataclass(frozen=True)
class Account:
    """Settings for one account, read-only for the duration of a command.

    Account-level values override [defaults], which override built-ins.
    """

    name: str
    settings: AccountConfig
    defaults: DefaultsConfig = field(default_factory=dict)

    def _get(self, key: str, fallback=None):
        if key in self.settings:
            return self.settings[key]
        return self.defaults.get(key, fallback)

    @property
    def backends(self) -> list[str]:
        """Provider kinds in priority order, highest first."""
        return list(self.settings.get("backends", DEFAULT_BACKENDS))

    @property
    def mail_dir(self) -> Path | None:
        mail_dir = self.settings.get("mail_dir")
        return Path(mail_dir).expanduser() if mail_dir else None

    @property
    def downloads_dir(self) -> Path:
        downloads_dir = self._get("downloads_dir")
        if not downloads_dir:
            return DEFAULT_DOWNLOADS_DIR
        return Path(downloads_dir).expanduser()

    @property
    def default_folder(self) -> str:
        return self._get("default_folder", DEFAULT_FOLDER)

    @property
    def display_format(self) -> str | None:
        return self._get("display_format")

    @property
    def max_messages(self) -> int:
        return int(self._get("max_messages", 100))

    @property
    def page_size(self) -> int:
        return int(self._get("page_size", 10))

    @property
    def sync_enabled(self) -> bool:
        return bool(self.settings.get("sync", False))

    @property
    def sync_dir(self) -> Path:
        sync_dir = self.settings.get("sync_dir")
        if sync_dir:
            return Path(sync_dir).expanduser()
        return SYNC_CACHE_DIR / self.name

    def default_folder_sync_strategy(self) -> FolderSyncStrategy:
        """Strategy used when `account sync` gets no folder selection.

        sync_include wins over sync_exclude; neither means every folder.
        """
        include = self.settings.get("sync_include", [])
        exclude = self.settings.get("sync_exclude", [])

        if include:
            return FolderSyncStrategy.include(include)
        if exclude:
            return FolderSyncStrategy.exclude(exclude)
        return FolderSyncStrategy.all()

    def get_download_file_path(self, filename: str) -> Path:
        """Destination of an attachment inside the downloads directory.

        Only the base name of `filename` is kept, with control characters
        replaced by "_". If the destination already exists, `_1`, `_2`,
        ... is appended to the stem until the path is free, so existing
        files are never overwritten. Creates the downloads directory if
        needed.
        """
        downloads_dir = self.downloads_dir
        downloads_dir.mkdir(parents=True, exist_ok=True)

        name = Path(_clean_filename(filename)).name
        if name in ("", ".", ".."):
            name = "attachment"
        path = downloads_dir / name

        count = 0
        while path.exists():
            count += 1
            stem = Path(name).stem
            suffix = Path(name).suffix
            path = downloads_dir / f"{stem}_{count}{suffix}"

        if count:
            logger.debug("renamed duplicate download %s to %s", name, path.name)

        return path
