"""Attachment commands."""

import typer
from typing_extensions import Annotated

from postier.attachment.download import download_attachments
from postier.cli.common import (
    AccountOption,
    FolderOption,
    command_errors,
    load_account,
    make_printer,
)

app = typer.Typer(help="Manage attachments", no_args_is_help=True)


@app.command()
def download(
    ctx: typer.Context,
    ids: Annotated[list[str], typer.Argument(help="Ids of the messages")],
    account: AccountOption = None,
    folder: FolderOption = None,
):
    """Download all attachments of the given messages.

    Files are written to the account's downloads directory. A message
    without attachment is not an error.
    """
    with command_errors():
        acct = load_account(account)
        printer = make_printer(ctx, acct.display_format)
        download_attachments(printer, acct, ids, folder=folder)
