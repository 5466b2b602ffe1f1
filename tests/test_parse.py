"""Tests for MIME parsing: envelopes and attachments."""

from datetime import datetime, timezone

import pytest

from postier.errors import MessageParseError
from postier.mail import Message, extract_attachments, parse_envelope

# --- Sample email fixtures ---

PLAIN_EMAIL = b"""\
From: Alice Smith <alice@example.com>
To: Bob Jones <bob@example.com>
Date: Mon, 15 Jan 2024 10:00:00 +0000
Subject: Test message
Message-ID: <abc123@example.com>
Content-Type: text/plain; charset="utf-8"

Hello Bob,

This is a test message.
"""

MULTIPART_EMAIL = b"""\
From: Alice Smith <alice@example.com>
To: Bob Jones <bob@example.com>
Date: Tue, 16 Jan 2024 12:00:00 +0000
Subject: Multipart with attachment
MIME-Version: 1.0
Content-Type: multipart/mixed; boundary="boundary123"

--boundary123
Content-Type: text/plain; charset="utf-8"

Plain text body.
--boundary123
Content-Type: text/html; charset="utf-8"

<html><body><p>HTML body.</p></body></html>
--boundary123
Content-Type: application/pdf; name="report.pdf"
Content-Disposition: attachment; filename="report.pdf"
Content-Transfer-Encoding: base64

SlZCRVJpMHhMamNLJWVvZgo=
--boundary123
Content-Type: image/png; name="inline.png"
Content-Disposition: inline; filename="inline.png"
Content-Transfer-Encoding: base64

iVBORw0KGgo=
--boundary123--
"""

ENCODED_HEADERS_EMAIL = b"""\
From: =?utf-8?q?Ren=C3=A9e?= <renee@example.com>
Subject: =?utf-8?b?Q2Fmw6k=?=
Date: not a date
MIME-Version: 1.0
Content-Type: multipart/mixed; boundary="b"

--b
Content-Type: text/plain
Content-Disposition: attachment; filename="=?utf-8?q?r=C3=A9sum=C3=A9.txt?="

cv
--b--
"""

MISSING_START_BOUNDARY = b"""\
From: alice@example.com
MIME-Version: 1.0
Content-Type: multipart/mixed; boundary="expected"

--other
Content-Type: text/plain

text
--other--
"""


class TestExtractAttachments:
    """Tests for extract_attachments."""

    def test_plain_message_has_none(self):
        assert extract_attachments(Message(id="1", raw=PLAIN_EMAIL)) == []

    def test_finds_attachments(self):
        attachments = extract_attachments(Message(id="1", raw=MULTIPART_EMAIL))

        assert [a.filename for a in attachments] == ["report.pdf", "inline.png"]
        assert attachments[0].content_type == "application/pdf"
        assert attachments[0].body == b"JVBERi0xLjcK%eof\n"

    def test_text_bodies_are_not_attachments(self):
        attachments = Message(id="1", raw=MULTIPART_EMAIL).attachments()

        assert all(a.content_type not in ("text/plain", "text/html") for a in attachments)

    def test_text_attachment_with_disposition(self):
        """A text part explicitly marked as attachment counts."""
        attachments = extract_attachments(Message(id="1", raw=ENCODED_HEADERS_EMAIL))

        assert len(attachments) == 1
        assert attachments[0].filename == "résumé.txt"
        assert attachments[0].body == b"cv"

    def test_empty_message(self):
        with pytest.raises(MessageParseError, match="Cannot parse message 7: empty message"):
            extract_attachments(Message(id="7", raw=b""))

    def test_missing_start_boundary(self):
        with pytest.raises(MessageParseError, match="StartBoundaryNotFoundDefect"):
            extract_attachments(Message(id="1", raw=MISSING_START_BOUNDARY))


class TestParseEnvelope:
    """Tests for parse_envelope."""

    def test_headers(self):
        envelope = parse_envelope("1", PLAIN_EMAIL, {"seen"})

        assert envelope.id == "1"
        assert envelope.subject == "Test message"
        assert envelope.from_addr == "Alice Smith <alice@example.com>"
        assert envelope.date == datetime(2024, 1, 15, 10, 0, tzinfo=timezone.utc)
        assert envelope.flags == {"seen"}

    def test_decodes_encoded_words(self):
        envelope = parse_envelope("1", ENCODED_HEADERS_EMAIL)

        assert envelope.subject == "Café"
        assert envelope.from_addr.startswith("Renée")

    def test_bad_date(self):
        assert parse_envelope("1", ENCODED_HEADERS_EMAIL).date is None

    def test_missing_headers(self):
        envelope = parse_envelope("1", b"\n\nbody")

        assert envelope.subject == ""
        assert envelope.from_addr == ""
        assert envelope.date is None
        assert envelope.flags == set()
