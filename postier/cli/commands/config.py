"""Config command implementation.

Manages the postier configuration file.
"""

import tomli_w
import typer
from typing_extensions import Annotated

from postier.cli.common import command_errors, make_printer
from postier.config import CONFIG_FILE, init_config, load_config, set_config_value
from postier.config.paths import CONFIG_DIR
from postier.config.schema import PostierConfig
from postier.errors import AccountNotFound

app = typer.Typer(help="Manage configuration", no_args_is_help=True)

# Keys never printed in clear
SECRET_KEYS = {"client_secret"}

REDACTED = "***REDACTED***"


@app.command()
def init(
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite existing config")
    ] = False,
):
    """Initialize configuration directory and template config file."""
    created = init_config(overwrite=force)

    if created:
        typer.echo(f"Created config directory: {CONFIG_DIR}")
        typer.echo(f"Created config file: {CONFIG_FILE}")
        typer.echo()
        typer.echo("Edit the config file to add your account settings.")
    else:
        typer.echo(f"Config already exists at {CONFIG_FILE}")
        typer.echo("Use --force to overwrite.")


def redact(config: PostierConfig, account: str | None = None) -> dict:
    """Copy of the config with secrets masked, optionally one account only.

    Raises:
        AccountNotFound: If `account` is not configured.
    """
    accounts = config.get("accounts", {})
    if account is not None:
        if account not in accounts:
            raise AccountNotFound(account)
        accounts = {account: accounts[account]}

    redacted: dict = {}
    if "defaults" in config:
        redacted["defaults"] = dict(config["defaults"])
    redacted["accounts"] = {
        name: {
            key: (REDACTED if key in SECRET_KEYS and value else value)
            for key, value in settings.items()
        }
        for name, settings in accounts.items()
    }
    return redacted


@app.command()
def show(
    ctx: typer.Context,
    account: Annotated[
        str | None, typer.Option("--account", "-a", help="Show specific account")
    ] = None,
):
    """Display current configuration.

    Secrets (like client_secret) are redacted in output.
    """
    with command_errors():
        config = load_config()
        printer = make_printer(ctx, config.get("defaults", {}).get("display_format"))

        if not config:
            printer.out(
                f"No configuration found. Run 'postier config init' to create {CONFIG_FILE}"
            )
            return

        redacted = redact(config, account)

    if printer.is_json():
        printer.out(redacted)
    else:
        typer.echo(tomli_w.dumps(redacted), nl=False)


@app.command("set")
def set_value(
    key: Annotated[
        str,
        typer.Argument(
            help="Configuration key (dot notation, e.g., 'defaults.max_messages')"
        ),
    ],
    value: Annotated[str, typer.Argument(help="Configuration value")],
):
    """Set a configuration value using dot notation.

    Examples:
        postier config set defaults.max_messages 200
        postier config set accounts.work.backends maildir,notmuch
    """
    try:
        with command_errors():
            set_config_value(key, value)
    except ValueError as e:
        typer.echo(f"Invalid value: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Set {key} = {value}")
