"""Tests for the attachment download pipeline."""

from pathlib import Path

import pytest

from postier.attachment.download import (
    DownloadReport,
    attachment_filename,
    download_attachments,
)
from postier.backend import Capability, Provider
from postier.config import Account
from postier.errors import AttachmentWriteError, CapabilityUnsupported, MessageParseError
from postier.mail import Attachment, Message

NO_ATTACHMENT = b"""\
From: Alice <alice@example.com>
Subject: Plain
Content-Type: text/plain; charset="utf-8"

Nothing attached.
"""


def with_attachments(*parts: tuple[str | None, str]) -> bytes:
    """Multipart message with one base64 part per (filename, body)."""
    lines = [
        "From: Alice <alice@example.com>",
        "Subject: Files",
        "MIME-Version: 1.0",
        'Content-Type: multipart/mixed; boundary="b0"',
        "",
        "--b0",
        'Content-Type: text/plain; charset="utf-8"',
        "",
        "See attached.",
    ]
    for filename, body in parts:
        disposition = "attachment"
        if filename:
            disposition += f'; filename="{filename}"'
        lines += [
            "--b0",
            "Content-Type: application/octet-stream",
            f"Content-Disposition: {disposition}",
            "",
            body,
        ]
    lines.append("--b0--")
    return ("\r\n".join(lines) + "\r\n").encode()


BROKEN_MULTIPART = b"""\
From: Alice <alice@example.com>
Subject: Broken
MIME-Version: 1.0
Content-Type: multipart/mixed

no boundary here
"""


NUL_FILENAME = b"""\
From: Alice <alice@example.com>
Subject: Odd name
MIME-Version: 1.0
Content-Type: multipart/mixed; boundary="b0"

--b0
Content-Type: application/pdf
Content-Disposition: attachment; filename*=utf-8''evil%00.pdf

data
--b0--
"""


class StoredMessages(Provider):
    """Provider serving get_messages from the `messages` class dict."""

    kind = "stored"
    capabilities = frozenset({Capability.get_messages})
    messages: dict[str, bytes] = {}
    from_cache = False

    @classmethod
    def for_sync_cache(cls, account: Account) -> "StoredMessages":
        cls.from_cache = True
        return cls(account)

    def get_messages(self, folder: str, ids: list[str]) -> list[Message]:
        return [Message(id=message_id, raw=self.messages[message_id]) for message_id in ids]


@pytest.fixture
def registry():
    StoredMessages.messages = {}
    StoredMessages.from_cache = False
    return {"stored": StoredMessages, "maildir": StoredMessages}


@pytest.fixture
def account(tmp_path: Path) -> Account:
    return Account(
        name="test",
        settings={"backends": ["stored"], "downloads_dir": str(tmp_path / "downloads")},
    )


def download(printer, account, ids, registry):
    return download_attachments(printer, account, ids, registry=registry)


class TestSummary:
    """Tests for DownloadReport.summary."""

    def test_no_attachment(self):
        assert DownloadReport().summary() == "No attachment found!"

    def test_single_attachment(self):
        report = DownloadReport(messages_with_attachments=1, attachments_downloaded=1)

        assert report.summary() == "Downloaded 1 attachment!"

    def test_several_attachments(self):
        report = DownloadReport(messages_with_attachments=2, attachments_downloaded=3)

        assert report.summary() == "Downloaded 3 attachment(s) from 2 messages(s)!"


class TestAttachmentFilename:
    """Tests for attachment_filename."""

    def test_declared_filename_kept(self):
        assert attachment_filename(Attachment("report.pdf", b"")) == "report.pdf"

    def test_missing_filename_gets_random_name(self):
        """Each nameless attachment gets its own random name."""
        first = attachment_filename(Attachment(None, b""))
        second = attachment_filename(Attachment(None, b""))

        assert first
        assert first != second


class TestDownloadAttachments:
    """Tests for download_attachments."""

    def test_message_without_attachment(self, printer, account, registry):
        """A message without attachment is not an error."""
        StoredMessages.messages = {"1": NO_ATTACHMENT}

        report = download(printer, account, ["1"], registry)

        assert report.attachments_downloaded == 0
        assert report.messages_with_attachments == 0
        assert printer.logs == ["No attachment found for message 1!"]
        assert printer.outs == ["No attachment found!"]

    def test_single_attachment_written(self, printer, account, registry):
        StoredMessages.messages = {"1": with_attachments(("report.txt", "hello"))}

        download(printer, account, ["1"], registry)

        assert (account.downloads_dir / "report.txt").read_bytes() == b"hello"
        assert printer.outs == ["Downloaded 1 attachment!"]
        assert "1 attachment(s) found for message 1!" in printer.logs
        expected_path = str(account.downloads_dir / "report.txt")
        assert f"Downloading {expected_path!r}…" in printer.logs

    def test_counts_across_messages(self, printer, account, registry):
        """Messages without attachments do not count in the summary."""
        StoredMessages.messages = {
            "1": with_attachments(("a.txt", "a"), ("b.txt", "b")),
            "2": NO_ATTACHMENT,
            "3": with_attachments(("c.txt", "c")),
        }

        report = download(printer, account, ["1", "2", "3"], registry)

        assert report == DownloadReport(messages_with_attachments=2, attachments_downloaded=3)
        assert printer.outs == ["Downloaded 3 attachment(s) from 2 messages(s)!"]

    def test_logs_follow_message_order(self, printer, account, registry):
        """Progress lines name the message each attachment came from."""
        StoredMessages.messages = {
            "10": NO_ATTACHMENT,
            "20": with_attachments(("x.txt", "x")),
        }

        download(printer, account, ["20", "10"], registry)

        assert printer.logs[0] == "1 attachment(s) found for message 20!"
        assert printer.logs[-1] == "No attachment found for message 10!"

    def test_nameless_attachments_get_distinct_files(self, printer, account, registry):
        StoredMessages.messages = {"1": with_attachments((None, "one"), (None, "two"))}

        download(printer, account, ["1"], registry)

        files = sorted(path.read_bytes() for path in account.downloads_dir.iterdir())
        assert files == [b"one", b"two"]

    def test_existing_file_not_overwritten(self, printer, account, registry):
        account.downloads_dir.mkdir(parents=True)
        (account.downloads_dir / "report.txt").write_bytes(b"old")
        StoredMessages.messages = {"1": with_attachments(("report.txt", "new"))}

        download(printer, account, ["1"], registry)

        assert (account.downloads_dir / "report.txt").read_bytes() == b"old"
        assert (account.downloads_dir / "report_1.txt").read_bytes() == b"new"

    def test_write_failure_is_fatal(self, printer, account, registry, monkeypatch):
        """A failed write stops the run with the destination path."""
        StoredMessages.messages = {"1": with_attachments(("report.txt", "hello"))}

        def fail(self, data):
            raise PermissionError("denied")

        monkeypatch.setattr(Path, "write_bytes", fail)

        with pytest.raises(AttachmentWriteError) as excinfo:
            download(printer, account, ["1"], registry)

        assert excinfo.value.path == account.downloads_dir / "report.txt"
        assert "report.txt" in str(excinfo.value)
        assert printer.outs == []

    def test_invalid_path_is_wrapped(self, printer, account, registry, monkeypatch):
        StoredMessages.messages = {"1": with_attachments(("report.txt", "hello"))}

        def fail(self, data):
            raise ValueError("embedded null byte")

        monkeypatch.setattr(Path, "write_bytes", fail)

        with pytest.raises(AttachmentWriteError, match="embedded null byte"):
            download(printer, account, ["1"], registry)

    def test_nul_in_filename_is_replaced(self, printer, account, registry):
        StoredMessages.messages = {"1": NUL_FILENAME}

        download(printer, account, ["1"], registry)

        assert [path.name for path in account.downloads_dir.iterdir()] == ["evil_.pdf"]
        assert printer.outs == ["Downloaded 1 attachment!"]

    def test_unusable_downloads_dir(self, printer, tmp_path, registry):
        """A downloads_dir that is a file cannot receive attachments."""
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        account = Account(
            name="test", settings={"backends": ["stored"], "downloads_dir": str(blocker)}
        )
        StoredMessages.messages = {"1": with_attachments(("report.txt", "hello"))}

        with pytest.raises(AttachmentWriteError):
            download(printer, account, ["1"], registry)

    def test_broken_mime_is_fatal(self, printer, account, registry):
        StoredMessages.messages = {"1": BROKEN_MULTIPART}

        with pytest.raises(MessageParseError, match="Cannot parse message 1"):
            download(printer, account, ["1"], registry)

        assert printer.outs == []

    def test_earlier_files_kept_on_failure(self, printer, account, registry):
        StoredMessages.messages = {
            "1": with_attachments(("first.txt", "1")),
            "2": BROKEN_MULTIPART,
        }

        with pytest.raises(MessageParseError):
            download(printer, account, ["1", "2"], registry)

        assert (account.downloads_dir / "first.txt").exists()

    def test_unsupported_account(self, printer, tmp_path):
        """An account that cannot fetch messages fails before any output."""
        account = Account(name="test", settings={"backends": ["searchonly"]})

        class SearchOnly(Provider):
            kind = "searchonly"
            capabilities = frozenset({Capability.search_envelopes})

        with pytest.raises(CapabilityUnsupported):
            download(printer, account, ["1"], {"searchonly": SearchOnly})

        assert printer.logs == []
        assert printer.outs == []

    def test_reads_from_sync_cache(self, printer, tmp_path, registry):
        """With sync enabled, messages are fetched from the sync cache."""
        account = Account(
            name="test",
            settings={
                "backends": ["stored"],
                "sync": True,
                "downloads_dir": str(tmp_path / "downloads"),
            },
        )
        StoredMessages.messages = {"1": NO_ATTACHMENT}

        download(printer, account, ["1"], registry)

        assert StoredMessages.from_cache
