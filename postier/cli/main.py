"""Main CLI entry point for postier."""

import typer
from typing_extensions import Annotated

from postier import __version__
from postier.cli import commands
from postier.cli.common import CliState
from postier.log import configure_logging
from postier.printer import OutputFormat
from postier.secret import DEFAULT_SERVICE_NAME, set_global_service_name

app = typer.Typer(
    name="postier",
    help="Command-line email client over pluggable mail backends",
    no_args_is_help=True,
)

# Register command groups
app.add_typer(commands.account.app, name="account")
app.add_typer(commands.folder.app, name="folder")
app.add_typer(commands.envelope.app, name="envelope")
app.add_typer(commands.attachment.app, name="attachment")
app.add_typer(commands.config.app, name="config")


@app.callback()
def root(
    ctx: typer.Context,
    output: Annotated[
        OutputFormat | None,
        typer.Option("--output", "-o", help="Output format (default: plain)"),
    ] = None,
    verbose: Annotated[
        bool, typer.Option("--verbose", "-v", help="Show debug logs")
    ] = False,
    quiet: Annotated[
        bool, typer.Option("--quiet", "-q", help="Only show error logs")
    ] = False,
    log_json: Annotated[
        bool, typer.Option("--log-json", help="Emit logs as JSON lines")
    ] = False,
):
    """Command-line email client over pluggable mail backends."""
    level = "DEBUG" if verbose else "ERROR" if quiet else None
    configure_logging(level=level, json_logs=log_json)

    set_global_service_name(DEFAULT_SERVICE_NAME)

    ctx.obj = CliState(output=output)


@app.command()
def version():
    """Show version information."""
    typer.echo(f"postier version {__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
