"""Tests for sync engine, sync state and the account sync command.

Tests SyncState for state persistence, SyncEngine with mocked backends,
and sync_account end to end between two Maildir trees.
"""

from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from postier.config import Account
from postier.errors import ConfigError, ProviderError
from postier.folder.sync import FolderSyncStrategy
from postier.mail import Envelope, Envelopes, Folder, Folders, Message
from postier.storage.maildir import MaildirStorage
from postier.sync.engine import SyncEngine, SyncResult
from postier.sync.handlers import sync_account, sync_summary
from postier.sync.state import SyncState

SAMPLE = b"""\
From: Alice <alice@example.com>
Subject: Hello
Date: Mon, 15 Jan 2024 10:00:00 +0000

Body.
"""


class TestSyncState:
    """Tests for SyncState class."""

    def test_load_returns_none_when_no_file(self):
        """load() returns None when no state file exists."""
        assert SyncState("test-account").load() is None

    def test_save_and_load_roundtrip(self):
        """save() persists state that can be loaded."""
        SyncState("test-account").save(["INBOX", "Sent"])

        # New instance reads from disk
        state = SyncState("test-account")
        loaded = state.load()

        assert loaded["synced_folders"] == ["INBOX", "Sent"]
        assert isinstance(state.get_last_sync(), datetime)
        assert state.get_synced_folders() == ["INBOX", "Sent"]

    def test_state_file_is_private(self):
        state = SyncState("test-account")
        state.save([])

        assert state.state_file.stat().st_mode & 0o777 == 0o600

    def test_corrupted_file_treated_as_never_synced(self):
        state = SyncState("test-account")
        state.save(["INBOX"])
        state.state_file.write_text("{not json")

        assert SyncState("test-account").get_last_sync() is None

    def test_clear(self):
        state = SyncState("test-account")
        state.save(["INBOX"])

        state.clear()

        assert not state.state_file.exists()
        assert state.get_synced_folders() == []


def remote_backend(folders: dict[str, list[str]]) -> MagicMock:
    """Mocked remote backend serving `folders` (name -> message ids)."""
    remote = MagicMock()
    remote.list_folders.return_value = Folders(Folder(name) for name in folders)
    remote.list_envelopes.side_effect = lambda folder, *args: Envelopes(
        Envelope(id=message_id, flags={"seen"}) for message_id in folders[folder]
    )
    remote.peek_messages.side_effect = lambda folder, ids: [
        Message(id=message_id, raw=SAMPLE) for message_id in ids
    ]
    return remote


def cache_backend(folders: dict[str, list[str]] | None = None) -> MagicMock:
    folders = folders or {}
    cache = MagicMock()
    cache.list_folders.return_value = Folders(Folder(name) for name in folders)
    cache.list_envelopes.side_effect = lambda folder, *args: Envelopes(
        Envelope(id=message_id) for message_id in folders[folder]
    )
    return cache


class TestSyncEngine:
    """Tests for SyncEngine with mocked backends."""

    def test_select_folders(self):
        engine = SyncEngine(remote_backend({"INBOX": [], "Spam": [], "Sent": []}), cache_backend())

        assert engine.select_folders(FolderSyncStrategy.exclude(["Spam"])) == ["INBOX", "Sent"]

    def test_downloads_missing_messages(self):
        remote = remote_backend({"INBOX": ["1", "2"]})
        cache = cache_backend()

        result = SyncEngine(remote, cache).sync(FolderSyncStrategy.all())

        assert result.downloaded == 2
        assert result.skipped == 0
        cache.add_folder.assert_called_once_with("INBOX")
        cache.add_message.assert_any_call("INBOX", SAMPLE, {"seen"}, "1")
        assert cache.add_message.call_count == 2

    def test_skips_cached_messages(self):
        remote = remote_backend({"INBOX": ["1", "2"]})
        cache = cache_backend({"INBOX": ["1"]})

        result = SyncEngine(remote, cache).sync(FolderSyncStrategy.all())

        assert result.downloaded == 1
        assert result.skipped == 1
        cache.add_folder.assert_not_called()
        remote.peek_messages.assert_called_once_with("INBOX", ["2"])

    def test_dry_run_writes_nothing(self):
        remote = remote_backend({"INBOX": ["1", "2"]})
        cache = cache_backend()
        state = MagicMock()

        result = SyncEngine(remote, cache, state).sync(FolderSyncStrategy.all(), dry_run=True)

        assert result.downloaded == 2
        cache.add_folder.assert_not_called()
        cache.add_message.assert_not_called()
        remote.peek_messages.assert_not_called()
        state.save.assert_not_called()

    def test_message_error_does_not_stop_sync(self):
        remote = remote_backend({"INBOX": ["1", "2"]})
        remote.peek_messages.side_effect = [
            ProviderError("timeout"),
            [Message(id="2", raw=SAMPLE)],
        ]
        cache = cache_backend()

        result = SyncEngine(remote, cache).sync(FolderSyncStrategy.all())

        assert result.downloaded == 1
        assert result.errors == 1
        assert result.error_details == ["1: timeout"]

    def test_folder_error_skips_folder(self):
        remote = remote_backend({"INBOX": ["1"], "Broken": []})

        def list_envelopes(folder, *args):
            if folder == "Broken":
                raise ProviderError("gone")
            return Envelopes([Envelope(id="1")])

        remote.list_envelopes.side_effect = list_envelopes
        cache = cache_backend()

        result = SyncEngine(remote, cache).sync(FolderSyncStrategy.all())

        assert result.downloaded == 1
        assert result.error_details == ["Broken: gone"]

    def test_saves_state(self):
        state = MagicMock()

        SyncEngine(remote_backend({"INBOX": []}), cache_backend(), state).sync(
            FolderSyncStrategy.include(["INBOX"])
        )

        state.save.assert_called_once_with(["INBOX"])

    def test_progress_callback(self):
        calls = []

        SyncEngine(remote_backend({"INBOX": ["1", "2"]}), cache_backend()).sync(
            FolderSyncStrategy.all(),
            progress_callback=lambda folder, current, total: calls.append(
                (folder, current, total)
            ),
        )

        assert calls == [("INBOX", 1, 2), ("INBOX", 2, 2)]


class TestSyncResult:
    def test_add_error(self):
        result = SyncResult()

        result.add_error("42", "boom")

        assert result.errors == 1
        assert result.error_details == ["42: boom"]


class TestSyncAccount:
    """Tests for sync_account between two Maildir trees."""

    @pytest.fixture
    def account(self, tmp_path: Path) -> Account:
        return Account(
            name="test",
            settings={
                "backends": ["maildir"],
                "mail_dir": str(tmp_path / "remote"),
                "sync": True,
                "sync_dir": str(tmp_path / "cache"),
            },
        )

    @pytest.fixture
    def remote(self, tmp_path: Path) -> MaildirStorage:
        storage = MaildirStorage(tmp_path / "remote")
        storage.write_message("INBOX", SAMPLE, set(), "m1")
        storage.write_message("INBOX", SAMPLE, {"flagged"}, "m2")
        storage.write_message("Spam", SAMPLE, set(), "s1")
        return storage

    def test_requires_sync_enabled(self, printer):
        account = Account(name="test", settings={"backends": ["maildir"]})

        with pytest.raises(ConfigError, match="Synchronization is disabled"):
            sync_account(printer, account)

    def test_copies_selected_folders(self, printer, account, remote, tmp_path):
        result = sync_account(printer, account, FolderSyncStrategy.exclude(["Spam"]))

        cache = MaildirStorage(tmp_path / "cache")
        assert result.folders == ["INBOX"]
        assert cache.list_folders() == ["INBOX"]
        assert cache.message_exists("m1", "INBOX")
        assert cache.message_exists("m2", "INBOX")
        assert printer.outs == [
            "1 folder(s) synchronized: 2 message(s) downloaded, 0 already synced"
        ]

    def test_leaves_remote_flags_alone(self, printer, account, remote):
        sync_account(printer, account, FolderSyncStrategy.include(["INBOX"]))

        entries = {
            message_id: (path, flags)
            for message_id, path, flags in remote.iter_messages("INBOX")
        }
        assert entries["m1"][1] == set()
        assert entries["m1"][0].parent.name == "new"
        assert entries["m2"][1] == {"flagged"}

    def test_second_run_skips(self, printer, account, remote):
        sync_account(printer, account, FolderSyncStrategy.include(["INBOX"]))
        result = sync_account(printer, account, FolderSyncStrategy.include(["INBOX"]))

        assert result.downloaded == 0
        assert result.skipped == 2

    def test_account_default_strategy(self, printer, tmp_path, remote):
        account = Account(
            name="test",
            settings={
                "backends": ["maildir"],
                "mail_dir": str(tmp_path / "remote"),
                "sync": True,
                "sync_dir": str(tmp_path / "cache"),
                "sync_include": ["Spam"],
            },
        )

        result = sync_account(printer, account)

        assert result.folders == ["Spam"]

    def test_records_state(self, printer, account, remote):
        sync_account(printer, account, FolderSyncStrategy.all())

        assert SyncState("test").get_synced_folders() == ["INBOX", "Spam"]

    def test_dry_run(self, printer, account, remote, tmp_path):
        result = sync_account(printer, account, FolderSyncStrategy.all(), dry_run=True)

        assert result.downloaded == 3
        assert MaildirStorage(tmp_path / "cache").list_folders() == []
        assert SyncState("test").load() is None
        assert printer.outs == [
            "2 folder(s) synchronized: 3 message(s) would be downloaded, 0 already synced"
        ]

    def test_json_report(self, json_printer, account, remote):
        sync_account(json_printer, account, FolderSyncStrategy.include(["INBOX"]))

        report = json_printer.outs[0]
        assert report["folders"] == ["INBOX"]
        assert report["downloaded"] == 2
        assert report["errors"] == []


class TestSyncSummary:
    def test_mentions_errors(self):
        result = SyncResult(folders=["INBOX"], downloaded=1, errors=2)

        assert sync_summary(result) == (
            "1 folder(s) synchronized: 1 message(s) downloaded, 0 already synced, 2 error(s)"
        )
