"""MIME parsing for fetched messages.

Uses Python's email.parser module directly. Backends hand over raw
RFC 2822 bytes; everything structural (attachments, envelope headers)
is derived here.
"""

from datetime import datetime
from email import policy
from email.errors import NoBoundaryInMultipartDefect, StartBoundaryNotFoundDefect
from email.header import decode_header, make_header
from email.message import Message as MimeMessage
from email.parser import BytesHeaderParser, BytesParser
from email.utils import parsedate_to_datetime

from postier.errors import MessageParseError

from .models import Attachment, Envelope, Message

# Defects that mean the multipart tree cannot be trusted
_FATAL_DEFECTS = (NoBoundaryInMultipartDefect, StartBoundaryNotFoundDefect)


def _parse(message: Message) -> MimeMessage:
    if not message.raw or not message.raw.strip():
        raise MessageParseError(message.id, "empty message")

    # compat32 handles real-world malformed emails better than the
    # "email" policy.
    try:
        msg = BytesParser(policy=policy.compat32).parsebytes(message.raw)
    except (ValueError, TypeError, LookupError) as e:
        raise MessageParseError(message.id, str(e)) from e

    for part in msg.walk():
        for defect in part.defects:
            if isinstance(defect, _FATAL_DEFECTS):
                raise MessageParseError(message.id, type(defect).__name__)

    return msg


def _decode_filename(part: MimeMessage) -> str | None:
    filename = part.get_filename()
    if not filename:
        return None
    try:
        return str(make_header(decode_header(filename)))
    except (UnicodeError, LookupError, ValueError):
        return filename


def extract_attachments(message: Message) -> list[Attachment]:
    """Walk the MIME tree of a message and return its attachments.

    A part is an attachment when its Content-Disposition says so, or
    when it carries a filename and is not a text body.

    Raises:
        MessageParseError: If the message is empty or its multipart
            structure is broken.
    """
    msg = _parse(message)
    attachments: list[Attachment] = []

    if not msg.is_multipart():
        return attachments

    for part in msg.walk():
        # Skip multipart containers themselves
        if part.get_content_maintype() == "multipart":
            continue

        content_type = part.get_content_type()
        disposition = str(part.get("Content-Disposition", ""))
        filename = _decode_filename(part)

        if "attachment" in disposition or (
            filename and content_type not in ("text/plain", "text/html")
        ):
            payload = part.get_payload(decode=True) or b""
            attachments.append(
                Attachment(
                    filename=filename,
                    body=payload,
                    content_type=content_type,
                )
            )

    return attachments


def parse_envelope(message_id: str, raw: bytes, flags: set[str] | None = None) -> Envelope:
    """Build an Envelope from the headers of a raw message."""
    headers = BytesHeaderParser(policy=policy.compat32).parsebytes(raw)

    return Envelope(
        id=message_id,
        subject=_header_text(headers.get("Subject", "")),
        from_addr=_header_text(headers.get("From", "")),
        date=_parse_date(headers.get("Date", "")),
        flags=set(flags or ()),
    )


def _header_text(value) -> str:
    """Decode an RFC 2047 header to text, keeping it as-is on failure."""
    if not value:
        return ""
    try:
        return str(make_header(decode_header(str(value))))
    except (UnicodeError, LookupError, ValueError):
        return str(value)


def _parse_date(date_str: str) -> datetime | None:
    """Parse an RFC 2822 date string, None if missing or malformed."""
    if not date_str:
        return None
    try:
        return parsedate_to_datetime(str(date_str))
    except (ValueError, TypeError):
        return None
