"""Folder commands: list, create, delete, expunge and purge."""

import typer
from typing_extensions import Annotated

from postier.cli.common import (
    AccountOption,
    MaxWidthOption,
    command_errors,
    load_account,
    make_printer,
)
from postier.folder import handlers

app = typer.Typer(help="Manage folders", no_args_is_help=True)

FolderArgument = Annotated[str, typer.Argument(help="Folder name")]

YesOption = Annotated[
    bool, typer.Option("--yes", "-y", help="Do not ask for confirmation")
]


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    account: AccountOption = None,
    max_width: MaxWidthOption = None,
):
    """List folders of an account."""
    with command_errors():
        acct = load_account(account)
        printer = make_printer(ctx, acct.display_format)
        handlers.list_folders(printer, acct, max_width=max_width)


@app.command()
def create(ctx: typer.Context, folder: FolderArgument, account: AccountOption = None):
    """Create a folder."""
    with command_errors():
        acct = load_account(account)
        printer = make_printer(ctx, acct.display_format)
        handlers.create_folder(printer, acct, folder)


@app.command()
def delete(
    ctx: typer.Context,
    folder: FolderArgument,
    account: AccountOption = None,
    yes: YesOption = False,
):
    """Delete a folder and all its messages.

    Asks for confirmation first; answering no leaves the folder untouched.
    """
    with command_errors():
        acct = load_account(account)
        printer = make_printer(ctx, acct.display_format)
        handlers.delete_folder(printer, acct, folder, assume_yes=yes)


@app.command()
def expunge(ctx: typer.Context, folder: FolderArgument, account: AccountOption = None):
    """Remove messages flagged as deleted from a folder."""
    with command_errors():
        acct = load_account(account)
        printer = make_printer(ctx, acct.display_format)
        handlers.expunge_folder(printer, acct, folder)


@app.command()
def purge(
    ctx: typer.Context,
    folder: FolderArgument,
    account: AccountOption = None,
    yes: YesOption = False,
):
    """Remove every message of a folder."""
    with command_errors():
        acct = load_account(account)
        printer = make_printer(ctx, acct.display_format)
        handlers.purge_folder(printer, acct, folder, assume_yes=yes)
