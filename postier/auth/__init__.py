"""Account set-up for providers that need credentials.

Provides a provider-agnostic entry point for `postier account configure`.
Only the gmail backend needs interactive set-up; maildir and notmuch
work from the filesystem alone.

Usage:
    from postier.auth import configure_account

    result = configure_account(account, store, reset=False)
"""

from postier.config import Account
from postier.secret import SecretStore

from . import gmail

__all__ = ["configure_account", "needs_configuration"]

# Backends that have a set-up flow
_CONFIGURABLE = {"gmail"}


def needs_configuration(account: Account) -> bool:
    """Whether any backend of the account has a set-up flow."""
    return any(kind in _CONFIGURABLE for kind in account.backends)


def configure_account(account: Account, store: SecretStore, *, reset: bool = False) -> dict:
    """Run the set-up flow of every configurable backend of the account.

    Args:
        account: Account to configure.
        store: Secret store receiving the credentials.
        reset: Forget stored credentials first, forcing a new flow.

    Returns:
        Result dict:
        - On success: 'configured', the list of configured backend kinds
        - On failure: 'error' and 'error_description'
    """
    configured = []

    if "gmail" in account.backends:
        if reset:
            gmail.reset(account, store)

        result = gmail.authenticate_loopback_flow(account, store)
        if "error" in result:
            return result
        configured.append("gmail")

    return {"configured": configured}
