"""Mail domain models and MIME parsing."""

from .models import Attachment, Envelope, Envelopes, Folder, Folders, Message
from .parse import extract_attachments, parse_envelope

__all__ = [
    "Attachment",
    "Envelope",
    "Envelopes",
    "Folder",
    "Folders",
    "Message",
    "extract_attachments",
    "parse_envelope",
]
