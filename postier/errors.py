"""Exception hierarchy shared by all postier layers.

Every error raised on purpose by postier derives from PostierError, so
the CLI can report it with a single handler. Provider errors keep the
underlying library exception as their __cause__.
"""

from pathlib import Path


class PostierError(Exception):
    """Base class for all postier errors."""

    pass


class ConfigError(PostierError):
    """Invalid or incomplete configuration."""

    pass


class AccountNotFound(PostierError):
    """The requested account is not configured."""

    def __init__(self, name: str | None):
        self.name = name
        if name is None:
            super().__init__("No account configured")
        else:
            super().__init__(f"Account '{name}' not found")


class CapabilityUnsupported(PostierError):
    """No configured provider can perform a required capability."""

    def __init__(self, capability, account: str):
        self.capability = capability
        self.account = account
        super().__init__(
            f"Capability '{capability}' is not supported by any backend "
            f"of account '{account}'"
        )


class ProviderError(PostierError):
    """Transport or provider failure (connection, auth, protocol)."""

    pass


class MessageParseError(PostierError):
    """A message could not be parsed into its MIME structure."""

    def __init__(self, message_id: str, reason: str):
        self.message_id = message_id
        super().__init__(f"Cannot parse message {message_id}: {reason}")


class AttachmentWriteError(PostierError):
    """An attachment could not be written to disk."""

    def __init__(self, path: Path, cause: Exception):
        self.path = path
        super().__init__(f"Cannot save attachment at {str(path)!r}: {cause}")


class SecretError(PostierError):
    """Secret storage misuse or failure."""

    pass
