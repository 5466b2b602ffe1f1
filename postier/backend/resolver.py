"""Backend resolution.

Builds a Backend exposing exactly the capabilities a command needs.
For each required capability the account's backends are consulted in
their configured priority order; the first provider declaring the
capability is bound to it. Overrides route one capability to a given
provider kind, or to CONTEXT (the account's synchronization cache).

Nothing is cached: resolving twice runs selection twice, and providers
are only built when a capability is first invoked.
"""

import logging
from collections.abc import Iterable, Mapping
from functools import partial

from postier.config import Account
from postier.errors import CapabilityUnsupported, ConfigError

from .backend import Backend, ProviderHandle
from .capability import Capability
from .provider import Provider

logger = logging.getLogger(__name__)

# Override source: the synchronization cache of the account
CONTEXT = "context"

# Provider kind backing the synchronization cache
SYNC_CACHE_KIND = "maildir"

_REGISTRY: dict[str, type[Provider]] = {}


def register_provider(kind: str, provider_cls: type[Provider]) -> None:
    """Make a provider class available under `kind` in account configs."""
    _REGISTRY[kind] = provider_cls


def default_registry() -> Mapping[str, type[Provider]]:
    """Registered providers, including the built-in ones."""
    # Importing the package registers maildir, gmail and notmuch
    import postier.providers  # noqa: F401

    return _REGISTRY


def _provider_class(
    registry: Mapping[str, type[Provider]], kind: str, account: Account
) -> type[Provider]:
    try:
        return registry[kind]
    except KeyError:
        raise ConfigError(
            f"Unknown backend '{kind}' for account '{account.name}'"
        ) from None


def resolve_backend(
    account: Account,
    required: Iterable[Capability],
    overrides: Mapping[Capability, str] | None = None,
    registry: Mapping[str, type[Provider]] | None = None,
) -> Backend:
    """Bind every required capability to a provider of the account.

    Args:
        account: Account whose configured backends are consulted.
        required: Capabilities the calling command needs.
        overrides: Per-capability source: a provider kind, or CONTEXT.
            CONTEXT falls back to normal selection when the account has
            no sync cache enabled.
        registry: Provider classes by kind (default: registered providers).

    Returns:
        A Backend supporting every required capability.

    Raises:
        CapabilityUnsupported: If no candidate provider declares one of
            the required capabilities. No partial backend is returned.
        ConfigError: If the account names an unknown backend kind.
    """
    registry = default_registry() if registry is None else registry
    overrides = overrides or {}

    configured = [
        (kind, _provider_class(registry, kind, account)) for kind in account.backends
    ]

    handles: dict[str, ProviderHandle] = {}
    bindings: dict[Capability, ProviderHandle] = {}

    # Enum order keeps resolution deterministic whatever the input order
    for capability in sorted(set(required), key=list(Capability).index):
        candidates = configured
        source = overrides.get(capability)

        if source == CONTEXT and account.sync_enabled:
            cache_cls = _provider_class(registry, SYNC_CACHE_KIND, account)
            candidates = [(CONTEXT, cache_cls)]
        elif source is not None and source != CONTEXT:
            candidates = [(source, _provider_class(registry, source, account))]

        for kind, provider_cls in candidates:
            if not provider_cls.supports(capability):
                continue

            if kind not in handles:
                if kind == CONTEXT:
                    factory = partial(provider_cls.for_sync_cache, account)
                else:
                    factory = partial(provider_cls, account)
                handles[kind] = ProviderHandle(kind, factory)

            bindings[capability] = handles[kind]
            logger.debug("bound %s to %s for %s", capability, kind, account.name)
            break
        else:
            raise CapabilityUnsupported(capability, account.name)

    return Backend(account, bindings)
