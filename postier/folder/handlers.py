"""Folder commands: list, create, delete, expunge and purge.

Each handler resolves a backend with the single capability it needs,
performs one backend call and reports one result.
"""

import logging
from collections.abc import Mapping

from postier.backend import Capability, Provider, resolve_backend
from postier.config import Account
from postier.printer import Printer
from postier.ui.prompt import confirm

logger = logging.getLogger(__name__)

Registry = Mapping[str, type[Provider]] | None


def list_folders(
    printer: Printer,
    account: Account,
    max_width: int | None = None,
    registry: Registry = None,
) -> None:
    with resolve_backend(account, {Capability.list_folders}, registry=registry) as backend:
        folders = backend.list_folders()
    printer.print_table(folders.to_table(), max_width=max_width)


def create_folder(
    printer: Printer, account: Account, folder: str, registry: Registry = None
) -> None:
    with resolve_backend(account, {Capability.add_folder}, registry=registry) as backend:
        backend.add_folder(folder)
    printer.out("Folder successfully created!")


def delete_folder(
    printer: Printer,
    account: Account,
    folder: str,
    *,
    assume_yes: bool = False,
    registry: Registry = None,
) -> bool:
    """Delete a folder after confirmation (default answer: no).

    Returns:
        False when the user declined; nothing was touched.
    """
    backend = resolve_backend(account, {Capability.delete_folder}, registry=registry)

    if not assume_yes and not confirm(f"Confirm deletion of folder {folder}?"):
        logger.info("deletion of folder %s declined", folder)
        return False

    with backend:
        backend.delete_folder(folder)
    printer.out("Folder successfully deleted!")
    return True


def expunge_folder(
    printer: Printer, account: Account, folder: str, registry: Registry = None
) -> None:
    with resolve_backend(account, {Capability.expunge_folder}, registry=registry) as backend:
        backend.expunge_folder(folder)
    printer.out(f"Folder {folder} successfully expunged!")


def purge_folder(
    printer: Printer,
    account: Account,
    folder: str,
    *,
    assume_yes: bool = False,
    registry: Registry = None,
) -> bool:
    """Remove every message of a folder after confirmation (default: no)."""
    backend = resolve_backend(account, {Capability.purge_folder}, registry=registry)

    if not assume_yes and not confirm(f"Confirm purge of folder {folder}?"):
        logger.info("purge of folder %s declined", folder)
        return False

    with backend:
        backend.purge_folder(folder)
    printer.out(f"Folder {folder} successfully purged!")
    return True
