"""postier: a command-line email client over pluggable mail backends."""

__version__ = "0.1.0"
