"""Configuration management module.

Handles loading, saving, and accessing the postier configuration.
Config is stored at ~/.config/postier/config.toml

Usage:
    from postier.config import load_config, resolve_account

    config = load_config()
    account = resolve_account(config, "work")
"""

import logging
import tomllib

import tomli_w

from postier.errors import AccountNotFound, ConfigError

from .account import Account
from .paths import CONFIG_FILE, ensure_config_dir
from .schema import AccountConfig, PostierConfig
from .template import CONFIG_TEMPLATE

__all__ = [
    "Account",
    "load_config",
    "save_config",
    "init_config",
    "get_account",
    "get_account_names",
    "resolve_account",
    "set_config_value",
    "CONFIG_FILE",
]

logger = logging.getLogger(__name__)

# Module-level cache for loaded config.
# Avoids repeated disk reads during a single CLI invocation.
_cached_config: PostierConfig | None = None


def load_config(*, force_reload: bool = False) -> PostierConfig:
    """Load configuration from disk.

    Returns empty dict if config file doesn't exist.
    Uses module-level caching to avoid repeated disk reads.

    Args:
        force_reload: Bypass cache and read from disk (useful after saving).

    Returns:
        The configuration dictionary.

    Raises:
        ConfigError: If the file is not valid TOML.
    """
    global _cached_config

    if _cached_config is not None and not force_reload:
        return _cached_config

    if not CONFIG_FILE.exists():
        logger.debug("no config file at %s", CONFIG_FILE)
        _cached_config = {}
        return _cached_config

    try:
        with open(CONFIG_FILE, "rb") as f:
            _cached_config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid config file {CONFIG_FILE}: {e}") from e

    return _cached_config


def save_config(config: PostierConfig) -> None:
    """Save configuration to disk.

    Creates config directory if needed. Updates the module cache.

    Args:
        config: The configuration dictionary to save.
    """
    global _cached_config

    ensure_config_dir()

    with open(CONFIG_FILE, "wb") as f:
        tomli_w.dump(config, f)

    # Keep cache in sync with disk
    _cached_config = config


def init_config(*, overwrite: bool = False) -> bool:
    """Initialize config directory and create template config file.

    Args:
        overwrite: If True, overwrite existing config file.

    Returns:
        True if config was created, False if it already existed.
    """
    ensure_config_dir()

    if CONFIG_FILE.exists() and not overwrite:
        return False

    CONFIG_FILE.write_text(CONFIG_TEMPLATE)
    return True


def get_account(
    config: PostierConfig, name: str | None = None
) -> AccountConfig | None:
    """Get account configuration by name.

    Args:
        config: The loaded configuration dictionary.
        name: Account name to retrieve. If None, returns the account
            flagged with `default = true`, or the first one.

    Returns:
        The account configuration, or None if not found.
    """
    accounts = config.get("accounts", {})

    if not accounts:
        return None

    if name is None:
        for account in accounts.values():
            if account.get("default"):
                return account
        return next(iter(accounts.values()))

    return accounts.get(name)


def get_account_names(config: PostierConfig) -> list[str]:
    """Get list of configured account names, in file order."""
    return list(config.get("accounts", {}).keys())


def resolve_account(config: PostierConfig, name: str | None = None) -> Account:
    """Build the Account selected by name (or the default account).

    Raises:
        AccountNotFound: If no matching account is configured.
    """
    accounts = config.get("accounts", {})
    settings = get_account(config, name)

    if settings is None:
        raise AccountNotFound(name)

    if name is None:
        name = next(key for key, value in accounts.items() if value is settings)

    return Account(
        name=name,
        settings=settings,
        defaults=config.get("defaults", {}),
    )


def set_config_value(key: str, value: str) -> None:
    """Set a configuration value using dot notation.

    Examples:
        set_config_value("defaults.page_size", "20")
        set_config_value("accounts.work.backends", "maildir,notmuch")

    Args:
        key: Dot-separated key path (e.g., "defaults.max_messages").
        value: Value to set (will be type-converted for known fields).

    Raises:
        ValueError: If value cannot be converted to expected type.
    """
    config = load_config(force_reload=True)

    parts = key.split(".")

    # Navigate to parent dict, creating intermediate dicts as needed
    current: dict = config
    for part in parts[:-1]:
        if part not in current:
            current[part] = {}
        current = current[part]

    final_key = parts[-1]
    current[final_key] = _convert_value(final_key, value)

    save_config(config)


_INT_FIELDS = {"max_messages", "page_size"}
_BOOL_FIELDS = {"default", "sync"}
_LIST_FIELDS = {"backends", "sync_include", "sync_exclude"}


def _convert_value(key: str, value: str) -> str | int | bool | list[str]:
    """Convert string value to appropriate type based on field name.

    Raises:
        ValueError: If value cannot be converted to expected type.
    """
    if key in _INT_FIELDS:
        return int(value)

    if key in _BOOL_FIELDS:
        lowered = value.strip().lower()
        if lowered in ("true", "yes", "1"):
            return True
        if lowered in ("false", "no", "0"):
            return False
        raise ValueError(f"expected a boolean for {key}, got {value!r}")

    if key in _LIST_FIELDS:
        return [item.strip() for item in value.split(",") if item.strip()]

    return value
