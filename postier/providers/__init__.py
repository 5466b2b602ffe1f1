"""Built-in capability providers.

Importing this package registers them with the backend resolver.
"""

from postier.backend.resolver import register_provider

from .gmail import GmailProvider
from .maildir import MaildirProvider
from .notmuch import NotmuchProvider

__all__ = ["GmailProvider", "MaildirProvider", "NotmuchProvider"]

for _provider_cls in (MaildirProvider, GmailProvider, NotmuchProvider):
    register_provider(_provider_cls.kind, _provider_cls)
