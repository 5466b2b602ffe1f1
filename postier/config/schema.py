"""Configuration schema definitions.

Uses TypedDict for type safety without runtime overhead.
These types match the structure of config.toml.
"""

from typing import TypedDict


class DefaultsConfig(TypedDict, total=False):
    """Default settings applied to every account.

    Attributes:
        downloads_dir: Directory where attachments are saved.
        default_folder: Folder used when a command gets no --folder.
        display_format: Output format, "plain" or "json".
        max_messages: Maximum number of messages to sync per folder.
        page_size: Number of envelopes listed per page.
    """

    downloads_dir: str
    default_folder: str
    display_format: str
    max_messages: int
    page_size: int


class AccountConfig(TypedDict, total=False):
    """Single email account configuration.

    Attributes:
        default: Use this account when no --account is given.
        email: Address of the account (display only).
        backends: Provider kinds in priority order (e.g. ["gmail", "notmuch"]).
        mail_dir: Local Maildir path used by the maildir and notmuch backends.
        downloads_dir: Overrides defaults.downloads_dir.
        default_folder: Overrides defaults.default_folder.
        display_format: Overrides defaults.display_format.
        client_id: OAuth client ID (gmail backend).
        client_secret: Optional OAuth client secret (prefer env var).
        sync: Enable the local synchronization cache.
        sync_dir: Location of the synchronization cache.
        sync_include: Folders synchronized by default (exclusive with sync_exclude).
        sync_exclude: Folders skipped by default.
    """

    default: bool
    email: str
    backends: list[str]
    mail_dir: str
    downloads_dir: str
    default_folder: str
    display_format: str
    client_id: str
    client_secret: str
    sync: bool
    sync_dir: str
    sync_include: list[str]
    sync_exclude: list[str]


class PostierConfig(TypedDict, total=False):
    """Root configuration structure.

    Attributes:
        defaults: Default settings for all accounts.
        accounts: Dict mapping account names to their configurations.
    """

    defaults: DefaultsConfig
    accounts: dict[str, AccountConfig]
