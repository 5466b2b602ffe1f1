"""Shared fixtures.

Every test runs with postier's config, credentials, sync state, sync
cache and downloads directories redirected under tmp_path.
"""

from pathlib import Path

import pytest

from postier.config import Account


@pytest.fixture(autouse=True)
def isolated_paths(tmp_path: Path, monkeypatch) -> Path:
    """Point every postier directory at a temporary home."""
    home = tmp_path / "home"
    config_dir = home / ".config" / "postier"

    monkeypatch.setattr("postier.config.paths.CONFIG_DIR", config_dir)
    monkeypatch.setattr("postier.config.paths.CREDENTIALS_DIR", config_dir / "credentials")
    monkeypatch.setattr("postier.config.CONFIG_FILE", config_dir / "config.toml")
    monkeypatch.setattr("postier.config._cached_config", None)
    monkeypatch.setattr("postier.config.account.SYNC_CACHE_DIR", home / "sync")
    monkeypatch.setattr("postier.config.account.DEFAULT_DOWNLOADS_DIR", home / "Downloads")
    monkeypatch.setattr("postier.sync.state.SYNC_STATE_DIR", config_dir / "sync-state")
    monkeypatch.setattr("postier.secret._service_name", None)
    monkeypatch.delenv("POSTIER_LOG", raising=False)
    monkeypatch.delenv("POSTIER_GMAIL_CLIENT_SECRET", raising=False)

    return home


class RecordingPrinter:
    """Printer keeping everything it is given."""

    def __init__(self, json: bool = False):
        self.json = json
        self.logs: list[str] = []
        self.outs: list = []
        self.tables: list = []

    def is_json(self) -> bool:
        return self.json

    def print_table(self, table, max_width=None) -> None:
        self.tables.append((table, max_width))

    def log(self, message: str) -> None:
        self.logs.append(message)

    def out(self, data) -> None:
        self.outs.append(data)


@pytest.fixture
def printer() -> RecordingPrinter:
    return RecordingPrinter()


@pytest.fixture
def mail_account(tmp_path: Path) -> Account:
    """Maildir account with its own mail_dir and downloads directory."""
    return Account(
        name="test",
        settings={
            "backends": ["maildir"],
            "mail_dir": str(tmp_path / "Mail"),
            "downloads_dir": str(tmp_path / "downloads"),
        },
    )


@pytest.fixture
def json_printer() -> RecordingPrinter:
    return RecordingPrinter(json=True)
