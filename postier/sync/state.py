"""Sync state management.

Records when an account was last synchronized and which folders took
part. Each account has its own state file.

State is stored in ~/.config/postier/sync-state/<account>.json
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from postier.config.paths import CONFIG_DIR

logger = logging.getLogger(__name__)

# Sync state directory
SYNC_STATE_DIR = CONFIG_DIR / "sync-state"


def ensure_sync_state_dir() -> Path:
    """Create sync state directory with restricted permissions.

    Returns:
        Path to the sync state directory.
    """
    SYNC_STATE_DIR.mkdir(parents=True, exist_ok=True)
    SYNC_STATE_DIR.chmod(0o700)
    return SYNC_STATE_DIR


class SyncState:
    """Manages sync state for an account.

    State file format:
    {
        "last_sync": "2024-01-15T10:30:00+00:00",
        "synced_folders": ["INBOX", "Sent"]
    }

    Example:
        state = SyncState("personal")
        state.get_last_sync()  # None on first run
        # ... perform sync ...
        state.save(["INBOX", "Sent"])
    """

    def __init__(self, account_name: str):
        """Initialize sync state for an account.

        Args:
            account_name: Name of the account (used for state file name).
        """
        self._account_name = account_name
        self._state_file = SYNC_STATE_DIR / f"{account_name}.json"
        self._state: dict | None = None

    @property
    def state_file(self) -> Path:
        """Get the path to this account's state file."""
        return self._state_file

    def load(self) -> dict | None:
        """Load sync state from disk.

        Returns:
            State dict with last_sync and synced_folders,
            or None if no state file exists.
        """
        if not self._state_file.exists():
            self._state = None
            return None

        try:
            self._state = json.loads(self._state_file.read_text())
            return self._state
        except (json.JSONDecodeError, OSError) as e:
            # Corrupted or unreadable file - treat as never synced
            logger.warning("ignoring unreadable sync state %s: %s", self._state_file, e)
            self._state = None
            return None

    def save(self, synced_folders: list[str]) -> None:
        """Save sync state to disk, stamping the current time as last_sync.

        Args:
            synced_folders: Folders that were synced.
        """
        ensure_sync_state_dir()

        self._state = {
            "last_sync": datetime.now(timezone.utc).isoformat(),
            "synced_folders": synced_folders,
        }

        self._state_file.write_text(json.dumps(self._state, indent=2))
        self._state_file.chmod(0o600)

    def get_last_sync(self) -> datetime | None:
        """Get the timestamp of the last sync.

        Returns:
            Datetime of last sync, or None if no previous sync.
        """
        if self._state is None:
            self.load()

        if self._state is None:
            return None

        last_sync = self._state.get("last_sync")
        if last_sync:
            return datetime.fromisoformat(last_sync)

        return None

    def get_synced_folders(self) -> list[str]:
        if self._state is None:
            self.load()

        if self._state is None:
            return []

        return list(self._state.get("synced_folders", []))

    def clear(self) -> None:
        """Clear sync state by deleting the state file if it exists."""
        if self._state_file.exists():
            self._state_file.unlink()
        self._state = None
