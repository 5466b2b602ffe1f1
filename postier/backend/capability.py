"""Backend capabilities.

A capability is one family of mail operations. Each member's name is
also the name of the Provider and Backend method that performs it.
"""

from enum import Enum


class Capability(str, Enum):
    """Operations a backend may support."""

    add_folder = "add-folder"
    list_folders = "list-folders"
    expunge_folder = "expunge-folder"
    purge_folder = "purge-folder"
    delete_folder = "delete-folder"
    get_envelope = "get-envelope"
    list_envelopes = "list-envelopes"
    search_envelopes = "search-envelopes"
    add_message = "add-message"
    get_messages = "get-messages"
    peek_messages = "peek-messages"
    copy_messages = "copy-messages"
    move_messages = "move-messages"
    delete_messages = "delete-messages"
    add_flags = "add-flags"
    set_flags = "set-flags"
    remove_flags = "remove-flags"

    def __str__(self) -> str:
        return self.value
