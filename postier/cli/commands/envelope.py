"""Envelope commands: list and search."""

import typer
from typing_extensions import Annotated

from postier.backend import Capability, resolve_backend
from postier.cli.common import (
    AccountOption,
    FolderOption,
    MaxWidthOption,
    command_errors,
    load_account,
    make_printer,
)

app = typer.Typer(help="List and search envelopes", no_args_is_help=True)

PageSizeOption = Annotated[
    int | None,
    typer.Option("--page-size", "-s", min=1, help="Envelopes per page (default: from config)"),
]

PageOption = Annotated[
    int, typer.Option("--page", "-p", min=1, help="Page number, starting at 1")
]


@app.command("list")
def list_cmd(
    ctx: typer.Context,
    account: AccountOption = None,
    folder: FolderOption = None,
    page_size: PageSizeOption = None,
    page: PageOption = 1,
    max_width: MaxWidthOption = None,
):
    """List envelopes of a folder, newest first."""
    with command_errors():
        acct = load_account(account)
        printer = make_printer(ctx, acct.display_format)

        with resolve_backend(acct, {Capability.list_envelopes}) as backend:
            envelopes = backend.list_envelopes(
                folder or acct.default_folder,
                page_size or acct.page_size,
                page - 1,
            )

        printer.print_table(envelopes.to_table(), max_width=max_width)


@app.command()
def search(
    ctx: typer.Context,
    query: Annotated[list[str], typer.Argument(help="Search query")],
    account: AccountOption = None,
    folder: Annotated[
        str | None, typer.Option("--folder", "-f", help="Restrict the search to a folder")
    ] = None,
    page_size: PageSizeOption = None,
    page: PageOption = 1,
    max_width: MaxWidthOption = None,
):
    """Search envelopes.

    The query syntax is the one of the search backend, for example
    notmuch: 'from:alice subject:report'.
    """
    with command_errors():
        acct = load_account(account)
        printer = make_printer(ctx, acct.display_format)

        with resolve_backend(acct, {Capability.search_envelopes}) as backend:
            envelopes = backend.search_envelopes(
                folder,
                " ".join(query),
                page_size or acct.page_size,
                page - 1,
            )

        printer.print_table(envelopes.to_table(), max_width=max_width)
