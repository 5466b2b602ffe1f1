"""Output of command results.

Commands never write to stdout directly; they go through a Printer so
the same command can render for humans or for scripts (--output json).
"""

import json
import logging
from enum import Enum
from typing import Any, Protocol

import typer

from postier.ui.table import Table

logger = logging.getLogger(__name__)


class OutputFormat(str, Enum):
    """Output formats accepted by --output."""

    plain = "plain"
    json = "json"


class Printer(Protocol):
    """What commands need from an output sink."""

    def print_table(self, table: Table, max_width: int | None = None) -> None:
        """Render a table in the printer's own format.

        The format is fixed when the printer is built: --output, then
        the account's display_format, then plain.
        """
        ...

    def log(self, message: str) -> None: ...

    def out(self, data: Any) -> None: ...

    def is_json(self) -> bool: ...


class StdoutPrinter:
    """Printer writing to stdout.

    In JSON mode, progress lines from log() are not printed (they would
    break the JSON document); they still reach the Python logger.
    """

    def __init__(self, output_format: OutputFormat = OutputFormat.plain):
        self.output_format = output_format

    def is_json(self) -> bool:
        return self.output_format is OutputFormat.json

    def print_table(self, table: Table, max_width: int | None = None) -> None:
        if self.is_json():
            typer.echo(json.dumps(table.to_dicts(), ensure_ascii=False))
        else:
            typer.echo(table.render(max_width), nl=False)

    def log(self, message: str) -> None:
        logger.info(message)
        if not self.is_json():
            typer.echo(message)

    def out(self, data: Any) -> None:
        if self.is_json():
            typer.echo(json.dumps(data, ensure_ascii=False, default=str))
        else:
            typer.echo(str(data))
