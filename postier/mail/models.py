"""Data models for folders, envelopes, messages and attachments."""

from dataclasses import dataclass, field
from datetime import datetime

from postier.ui.table import Table

FLAG_SYMBOLS = {"flagged": "!", "answered": "R", "draft": "D", "deleted": "T"}


@dataclass
class Folder:
    """A mailbox folder as reported by a backend."""

    name: str
    delim: str = "/"
    desc: str = ""

    def to_dict(self) -> dict:
        return {"delim": self.delim, "name": self.name, "desc": self.desc}


class Folders(list[Folder]):
    """Folders in backend order. Duplicates are kept as reported."""

    def to_table(self) -> Table:
        return Table(
            headers=["DELIM", "NAME", "DESC"],
            rows=[[folder.delim, folder.name, folder.desc] for folder in self],
            shrink_column=1,
        )

    def names(self) -> list[str]:
        """Folder names in order, without duplicates."""
        return list(dict.fromkeys(folder.name for folder in self))


@dataclass
class Envelope:
    """Summary of a message: enough to list it without fetching the body."""

    id: str
    subject: str = ""
    from_addr: str = ""
    date: datetime | None = None
    flags: set[str] = field(default_factory=set)

    def flag_symbols(self) -> str:
        """Compact flag column: * unseen, ! flagged, R answered, D draft, T deleted."""
        symbols = "" if "seen" in self.flags else "*"
        for flag, symbol in FLAG_SYMBOLS.items():
            if flag in self.flags:
                symbols += symbol
        return symbols

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "flags": sorted(self.flags),
            "subject": self.subject,
            "from": self.from_addr,
            "date": self.date.isoformat() if self.date else None,
        }


class Envelopes(list[Envelope]):
    """Envelopes in backend order."""

    def to_table(self) -> Table:
        return Table(
            headers=["ID", "FLAGS", "SUBJECT", "FROM", "DATE"],
            rows=[
                [
                    envelope.id,
                    envelope.flag_symbols(),
                    envelope.subject,
                    envelope.from_addr,
                    envelope.date.strftime("%Y-%m-%d %H:%M") if envelope.date else "",
                ]
                for envelope in self
            ],
            shrink_column=2,
        )


@dataclass
class Attachment:
    """A decoded attachment. filename is None when the part declares none."""

    filename: str | None
    body: bytes
    content_type: str = "application/octet-stream"


@dataclass
class Message:
    """A raw RFC 2822 message and the id the backend knows it by."""

    id: str
    raw: bytes

    def attachments(self) -> list[Attachment]:
        """Extract the attachments of this message.

        Raises:
            MessageParseError: If the MIME structure is malformed.
        """
        from postier.mail.parse import extract_attachments

        return extract_attachments(self)
