"""Sync engine for email synchronization.

Copies messages from a live backend into the account's sync cache.
Only messages missing from the cache are fetched. A failure on one
message (or one folder listing) is recorded and the run goes on.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from postier.backend import Backend
from postier.errors import PostierError
from postier.folder.sync import FolderSyncStrategy
from postier.sync.state import SyncState

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Result of a sync operation.

    Tracks counts of messages processed and any errors encountered.
    """

    folders: list[str] = field(default_factory=list)
    downloaded: int = 0
    skipped: int = 0
    errors: int = 0
    error_details: list[str] = field(default_factory=list)

    def add_error(self, item: str, error: str) -> None:
        """Record an error for a message or folder.

        Args:
            item: ID of the message (or name of the folder) that failed.
            error: Error description.
        """
        self.errors += 1
        self.error_details.append(f"{item}: {error}")


# Type for progress callback: (folder, current, total) -> None
ProgressCallback = Callable[[str, int, int], None]


class SyncEngine:
    """Engine synchronizing a live backend into a sync cache backend.

    The remote backend needs list_folders, list_envelopes and
    peek_messages; the cache backend needs list_folders, add_folder,
    list_envelopes and add_message.

    Example:
        engine = SyncEngine(remote, cache, SyncState("personal"))
        result = engine.sync(FolderSyncStrategy.all(), max_messages=100)
        print(f"Downloaded {result.downloaded} messages")
    """

    def __init__(self, remote: Backend, cache: Backend, state: SyncState | None = None):
        """Initialize sync engine.

        Args:
            remote: Backend messages are read from.
            cache: Backend messages are written to.
            state: Sync state updated after a real (non dry-run) sync.
        """
        self._remote = remote
        self._cache = cache
        self._state = state

    def select_folders(self, strategy: FolderSyncStrategy) -> list[str]:
        """Remote folders matching the strategy, in remote order, once each."""
        names = self._remote.list_folders().names()
        return [name for name in names if strategy.matches(name)]

    def _cached_ids(self, folder: str, cached_folders: set[str]) -> set[str]:
        if folder not in cached_folders:
            return set()
        return {envelope.id for envelope in self._cache.list_envelopes(folder)}

    def sync(
        self,
        strategy: FolderSyncStrategy,
        max_messages: int = 100,
        dry_run: bool = False,
        progress_callback: ProgressCallback | None = None,
    ) -> SyncResult:
        """Synchronize the folders selected by `strategy`.

        Args:
            strategy: Which remote folders take part.
            max_messages: Maximum messages to consider per folder.
            dry_run: Count what would be downloaded without writing.
            progress_callback: Called with (folder, current, total).

        Returns:
            SyncResult with counts of downloaded, skipped, and errored messages.
            In dry-run mode, `downloaded` counts messages that would be fetched.
        """
        folders = self.select_folders(strategy)
        result = SyncResult(folders=folders)
        cached_folders = set(self._cache.list_folders().names())

        logger.info("syncing %d folder(s) (%s)", len(folders), strategy)

        for folder in folders:
            try:
                envelopes = self._remote.list_envelopes(folder, max_messages, 0)
                known = self._cached_ids(folder, cached_folders)
                if not dry_run and folder not in cached_folders:
                    self._cache.add_folder(folder)
            except PostierError as e:
                result.add_error(folder, str(e))
                continue

            total = len(envelopes)

            for idx, envelope in enumerate(envelopes):
                if progress_callback:
                    progress_callback(folder, idx + 1, total)

                if envelope.id in known:
                    result.skipped += 1
                    continue

                if dry_run:
                    logger.info("would download %s from %s", envelope.id, folder)
                    result.downloaded += 1
                    continue

                try:
                    for message in self._remote.peek_messages(folder, [envelope.id]):
                        self._cache.add_message(
                            folder, message.raw, envelope.flags, message.id
                        )
                    result.downloaded += 1
                except PostierError as e:
                    result.add_error(envelope.id, str(e))

        if self._state is not None and not dry_run:
            self._state.save(folders)

        return result
