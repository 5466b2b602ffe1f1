"""Helpers shared by CLI commands: options, account loading, printer, errors."""

import logging
from contextlib import contextmanager
from dataclasses import dataclass

import typer
from typing_extensions import Annotated

from postier.config import Account, load_config, resolve_account
from postier.errors import PostierError
from postier.printer import OutputFormat, StdoutPrinter

logger = logging.getLogger(__name__)

AccountOption = Annotated[
    str | None,
    typer.Option("--account", "-a", help="Account name (default: the default account)"),
]

FolderOption = Annotated[
    str | None,
    typer.Option("--folder", "-f", help="Folder name (default: the account's default folder)"),
]

MaxWidthOption = Annotated[
    int | None,
    typer.Option("--max-width", "-w", min=1, help="Maximum width of the table"),
]


@dataclass
class CliState:
    """Options of the root command, shared with subcommands via ctx.obj."""

    output: OutputFormat | None = None


def make_printer(ctx: typer.Context, display_format: str | None = None) -> StdoutPrinter:
    """Printer honoring --output, then the configured display_format."""
    state = ctx.ensure_object(CliState)
    output = state.output

    if output is None and display_format:
        try:
            output = OutputFormat(display_format)
        except ValueError:
            logger.warning("unknown display_format %r, using plain", display_format)

    return StdoutPrinter(output or OutputFormat.plain)


def load_account(name: str | None) -> Account:
    """Load the config and select an account.

    Raises:
        AccountNotFound: If the account does not exist.
        ConfigError: If the config file is invalid.
    """
    return resolve_account(load_config(), name)


@contextmanager
def command_errors():
    """Report PostierError as `Error: ...` on stderr and exit with code 1."""
    try:
        yield
    except PostierError as e:
        logger.debug("command failed", exc_info=True)
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
