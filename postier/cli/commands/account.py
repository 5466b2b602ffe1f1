"""Account commands: list, configure and sync."""

import typer
from typing_extensions import Annotated

from postier.auth import configure_account, needs_configuration
from postier.cli.common import (
    AccountOption,
    MaxWidthOption,
    command_errors,
    load_account,
    make_printer,
)
from postier.config import get_account_names, load_config, resolve_account
from postier.errors import AccountNotFound
from postier.folder.sync import resolve_folder_sync_strategy
from postier.secret import default_store
from postier.sync.handlers import sync_account
from postier.sync.state import SyncState
from postier.ui.table import Table

app = typer.Typer(help="Manage accounts", no_args_is_help=True)


@app.command("list")
def list_cmd(ctx: typer.Context, max_width: MaxWidthOption = None):
    """List configured accounts."""
    with command_errors():
        config = load_config()
        defaults = config.get("defaults", {})
        printer = make_printer(ctx, defaults.get("display_format"))

        try:
            default_name = resolve_account(config, None).name
        except AccountNotFound:
            default_name = None

        rows = []
        for name in get_account_names(config):
            account = resolve_account(config, name)
            last_sync = ""
            if account.sync_enabled:
                synced_at = SyncState(name).get_last_sync()
                last_sync = synced_at.strftime("%Y-%m-%d %H:%M") if synced_at else "never"
            rows.append(
                [
                    name,
                    ", ".join(account.backends),
                    "yes" if name == default_name else "",
                    last_sync,
                ]
            )

        table = Table(["NAME", "BACKENDS", "DEFAULT", "LAST SYNC"], rows, shrink_column=1)
        printer.print_table(table, max_width=max_width)


@app.command()
def configure(
    ctx: typer.Context,
    account: AccountOption = None,
    reset: Annotated[
        bool, typer.Option("--reset", help="Forget stored credentials first")
    ] = False,
):
    """Configure the credentials of an account.

    Gmail accounts go through the OAuth loopback flow: a browser opens
    on Google's consent page. Tokens are kept in the secret store.
    """
    with command_errors():
        acct = load_account(account)
        printer = make_printer(ctx, acct.display_format)

        if not needs_configuration(acct):
            printer.out(f"Nothing to configure for account {acct.name}")
            return

        printer.log("Starting authentication...")
        result = configure_account(acct, default_store(), reset=reset)

    if "error" in result:
        error_msg = result.get("error_description", result["error"])
        typer.echo(f"Configuration failed: {error_msg}", err=True)
        raise typer.Exit(1)

    printer.out(f"Account {acct.name} successfully configured!")


@app.command()
def sync(
    ctx: typer.Context,
    account: AccountOption = None,
    folder: Annotated[
        str | None, typer.Option("--folder", "-f", help="Synchronize only this folder")
    ] = None,
    include: Annotated[
        list[str] | None,
        typer.Option("--include", "-i", help="Synchronize only these folders"),
    ] = None,
    exclude: Annotated[
        list[str] | None,
        typer.Option("--exclude", "-x", help="Synchronize all folders except these"),
    ] = None,
    all_folders: Annotated[
        bool, typer.Option("--all", help="Synchronize all folders")
    ] = False,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", "-d", help="Show what would be downloaded")
    ] = False,
    max_messages: Annotated[
        int | None,
        typer.Option(
            "--max-messages", "-n", min=1, help="Messages per folder (default: from config)"
        ),
    ] = None,
):
    """Synchronize an account into its local sync cache.

    Without folder options, the account's sync_include / sync_exclude
    settings apply; with none of those, all folders are synchronized.
    """
    with command_errors():
        acct = load_account(account)
        strategy = resolve_folder_sync_strategy(
            source=folder,
            include=include,
            exclude=exclude,
            all_folders=all_folders,
        )
        result = sync_account(
            make_printer(ctx, acct.display_format),
            acct,
            strategy,
            max_messages=max_messages,
            dry_run=dry_run,
        )

    if result.errors:
        for detail in result.error_details:
            typer.echo(f"  {detail}", err=True)
        raise typer.Exit(1)
