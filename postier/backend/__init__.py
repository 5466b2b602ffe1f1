"""Capability-based mail backends.

Usage:
    from postier.backend import Capability, resolve_backend

    backend = resolve_backend(account, {Capability.list_folders})
    folders = backend.list_folders()
"""

from .backend import Backend, ProviderHandle
from .capability import Capability
from .provider import Provider
from .resolver import CONTEXT, default_registry, register_provider, resolve_backend

__all__ = [
    "Backend",
    "Capability",
    "CONTEXT",
    "Provider",
    "ProviderHandle",
    "default_registry",
    "register_provider",
    "resolve_backend",
]
