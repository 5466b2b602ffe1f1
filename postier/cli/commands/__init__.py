"""CLI commands module."""

from . import account, attachment, config, envelope, folder

__all__ = ["account", "attachment", "config", "envelope", "folder"]
