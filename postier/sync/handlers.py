"""Account synchronization command.

Copies the folders selected by a FolderSyncStrategy from the account's
live backends into its sync cache.
"""

import logging
from collections.abc import Mapping

from postier.backend import CONTEXT, Capability, Provider, resolve_backend
from postier.config import Account
from postier.errors import ConfigError
from postier.folder.sync import FolderSyncStrategy
from postier.printer import Printer
from postier.sync.engine import SyncEngine, SyncResult
from postier.sync.state import SyncState

logger = logging.getLogger(__name__)

REMOTE_CAPABILITIES = frozenset(
    {Capability.list_folders, Capability.list_envelopes, Capability.peek_messages}
)

CACHE_CAPABILITIES = frozenset(
    {
        Capability.list_folders,
        Capability.add_folder,
        Capability.list_envelopes,
        Capability.add_message,
    }
)


def sync_account(
    printer: Printer,
    account: Account,
    strategy: FolderSyncStrategy | None = None,
    *,
    max_messages: int | None = None,
    dry_run: bool = False,
    registry: Mapping[str, type[Provider]] | None = None,
) -> SyncResult:
    """Synchronize an account into its sync cache.

    Args:
        printer: Receives progress lines and the final report.
        account: Account to synchronize; must have sync enabled.
        strategy: Folders to synchronize (default: the account's own
            include/exclude settings).
        max_messages: Messages considered per folder (default: account setting).
        dry_run: Report what would be downloaded without writing.
        registry: Provider classes, for tests (default: registered providers).

    Raises:
        ConfigError: If synchronization is disabled for the account.
        CapabilityUnsupported: If the account cannot list or fetch messages.
    """
    if not account.sync_enabled:
        raise ConfigError(
            f"Synchronization is disabled for account '{account.name}' "
            "(set sync = true in its config)"
        )

    strategy = strategy or account.default_folder_sync_strategy()
    max_messages = max_messages or account.max_messages

    remote = resolve_backend(account, REMOTE_CAPABILITIES, registry=registry)
    cache = resolve_backend(
        account,
        CACHE_CAPABILITIES,
        {cap: CONTEXT for cap in CACHE_CAPABILITIES},
        registry=registry,
    )

    def progress(folder: str, current: int, total: int) -> None:
        if current == 1:
            printer.log(f"Synchronizing folder {folder} ({total} message(s))…")

    engine = SyncEngine(remote, cache, SyncState(account.name))
    with remote, cache:
        result = engine.sync(
            strategy,
            max_messages=max_messages,
            dry_run=dry_run,
            progress_callback=progress,
        )

    for detail in result.error_details:
        logger.error("sync error: %s", detail)

    if printer.is_json():
        printer.out(
            {
                "folders": result.folders,
                "downloaded": result.downloaded,
                "skipped": result.skipped,
                "errors": result.error_details,
                "dry_run": dry_run,
            }
        )
    else:
        printer.out(sync_summary(result, dry_run))

    return result


def sync_summary(result: SyncResult, dry_run: bool = False) -> str:
    verb = "would be downloaded" if dry_run else "downloaded"
    summary = (
        f"{len(result.folders)} folder(s) synchronized: "
        f"{result.downloaded} message(s) {verb}, {result.skipped} already synced"
    )
    if result.errors:
        summary += f", {result.errors} error(s)"
    return summary
