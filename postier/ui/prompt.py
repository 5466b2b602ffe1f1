"""Interactive prompts."""

import logging

import typer

logger = logging.getLogger(__name__)


def confirm(question: str, default: bool = False) -> bool:
    """Ask a yes/no question.

    An unanswered prompt (end of input, Ctrl-C) counts as "no" rather
    than aborting the command.
    """
    try:
        return typer.confirm(question, default=default)
    except typer.Abort:
        logger.debug("confirmation aborted, treating it as declined")
        return False
