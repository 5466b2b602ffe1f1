"""Backend: the capabilities a command needs, bound to their providers."""

import logging
from collections.abc import Callable

from postier.config import Account
from postier.errors import CapabilityUnsupported
from postier.mail import Envelope, Envelopes, Folders, Message

from .capability import Capability
from .provider import Provider

logger = logging.getLogger(__name__)


class ProviderHandle:
    """Builds a provider on first use and keeps it for the Backend's lifetime."""

    def __init__(self, kind: str, factory: Callable[[], Provider]):
        self.kind = kind
        self._factory = factory
        self._provider: Provider | None = None

    @property
    def built(self) -> bool:
        return self._provider is not None

    def get(self) -> Provider:
        if self._provider is None:
            logger.debug("building %s provider", self.kind)
            self._provider = self._factory()
        return self._provider

    def fresh(self) -> "ProviderHandle":
        """Unbuilt handle with the same factory."""
        return ProviderHandle(self.kind, self._factory)

    def close(self) -> None:
        if self._provider is not None:
            self._provider.close()
            self._provider = None


class Backend:
    """Runtime mail backend for one account and one command.

    Only the capabilities bound at resolution time can be invoked; any
    other capability raises CapabilityUnsupported before reaching a
    provider. Capabilities served by the same provider share one
    provider instance.

    Example:
        backend = resolve_backend(account, {Capability.list_folders})
        with backend:
            folders = backend.list_folders()
    """

    def __init__(self, account: Account, bindings: dict[Capability, ProviderHandle]):
        self._account = account
        self._bindings = dict(bindings)

    @property
    def account(self) -> Account:
        return self._account

    @property
    def capabilities(self) -> frozenset[Capability]:
        return frozenset(self._bindings)

    def has_capability(self, capability: Capability) -> bool:
        return capability in self._bindings

    def source_of(self, capability: Capability) -> str | None:
        """Kind of the provider bound to `capability`, None if unbound."""
        handle = self._bindings.get(capability)
        return handle.kind if handle else None

    def invoke(self, capability: Capability, *args, **kwargs):
        """Run `capability` on its provider.

        Raises:
            CapabilityUnsupported: If the capability is not bound.
        """
        handle = self._bindings.get(capability)
        if handle is None:
            raise CapabilityUnsupported(capability, self._account.name)

        logger.debug("invoking %s on %s", capability, handle.kind)
        return handle.get().executor(capability)(*args, **kwargs)

    def clone(self) -> "Backend":
        """Backend with the same bindings and no built providers."""
        fresh: dict[int, ProviderHandle] = {}
        bindings = {}
        for capability, handle in self._bindings.items():
            if id(handle) not in fresh:
                fresh[id(handle)] = handle.fresh()
            bindings[capability] = fresh[id(handle)]
        return Backend(self._account, bindings)

    def close(self) -> None:
        for handle in {id(h): h for h in self._bindings.values()}.values():
            handle.close()

    def __enter__(self) -> "Backend":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # Folders

    def add_folder(self, folder: str) -> None:
        return self.invoke(Capability.add_folder, folder)

    def list_folders(self) -> Folders:
        return self.invoke(Capability.list_folders)

    def expunge_folder(self, folder: str) -> None:
        return self.invoke(Capability.expunge_folder, folder)

    def purge_folder(self, folder: str) -> None:
        return self.invoke(Capability.purge_folder, folder)

    def delete_folder(self, folder: str) -> None:
        return self.invoke(Capability.delete_folder, folder)

    # Envelopes

    def get_envelope(self, folder: str, message_id: str) -> Envelope:
        return self.invoke(Capability.get_envelope, folder, message_id)

    def list_envelopes(self, folder: str, page_size: int = 0, page: int = 0) -> Envelopes:
        return self.invoke(Capability.list_envelopes, folder, page_size, page)

    def search_envelopes(
        self, folder: str | None, query: str, page_size: int = 0, page: int = 0
    ) -> Envelopes:
        return self.invoke(Capability.search_envelopes, folder, query, page_size, page)

    # Messages

    def add_message(
        self,
        folder: str,
        raw: bytes,
        flags: set[str] | None = None,
        message_id: str | None = None,
    ) -> str:
        return self.invoke(Capability.add_message, folder, raw, flags or set(), message_id)

    def get_messages(self, folder: str, ids: list[str]) -> list[Message]:
        return self.invoke(Capability.get_messages, folder, ids)

    def peek_messages(self, folder: str, ids: list[str]) -> list[Message]:
        return self.invoke(Capability.peek_messages, folder, ids)

    def copy_messages(self, from_folder: str, to_folder: str, ids: list[str]) -> None:
        return self.invoke(Capability.copy_messages, from_folder, to_folder, ids)

    def move_messages(self, from_folder: str, to_folder: str, ids: list[str]) -> None:
        return self.invoke(Capability.move_messages, from_folder, to_folder, ids)

    def delete_messages(self, folder: str, ids: list[str]) -> None:
        return self.invoke(Capability.delete_messages, folder, ids)

    # Flags

    def add_flags(self, folder: str, ids: list[str], flags: set[str]) -> None:
        return self.invoke(Capability.add_flags, folder, ids, flags)

    def set_flags(self, folder: str, ids: list[str], flags: set[str]) -> None:
        return self.invoke(Capability.set_flags, folder, ids, flags)

    def remove_flags(self, folder: str, ids: list[str], flags: set[str]) -> None:
        return self.invoke(Capability.remove_flags, folder, ids, flags)
