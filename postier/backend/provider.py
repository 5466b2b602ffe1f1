"""Base class for capability providers (transports).

A provider declares the capabilities it implements as a class
attribute, so the resolver can check support without building or
connecting anything. Constructors must stay cheap: connections and
authentication happen on first use.
"""

from collections.abc import Callable
from typing import ClassVar

from postier.config import Account
from postier.errors import CapabilityUnsupported, ConfigError

from .capability import Capability


class Provider:
    """One transport able to perform a set of capabilities for an account.

    Subclasses set `kind` and `capabilities` and implement one method
    per declared capability, named after the capability.
    """

    kind: ClassVar[str] = ""
    capabilities: ClassVar[frozenset[Capability]] = frozenset()

    def __init__(self, account: Account):
        self.account = account

    @classmethod
    def supports(cls, capability: Capability) -> bool:
        return capability in cls.capabilities

    @classmethod
    def for_sync_cache(cls, account: Account) -> "Provider":
        """Build this provider over the account's synchronization cache."""
        raise ConfigError(f"Backend '{cls.kind}' cannot be used as a sync cache")

    def executor(self, capability: Capability) -> Callable:
        """Bound method performing `capability`.

        Raises:
            CapabilityUnsupported: If the capability was not declared.
        """
        if not self.supports(capability):
            raise CapabilityUnsupported(capability, self.account.name)
        return getattr(self, capability.name)

    def close(self) -> None:
        """Release connections. Safe to call on a provider never used."""
        pass
