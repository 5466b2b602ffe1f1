"""Path constants and directory utilities for postier.

Follows the XDG Base Directory specification:
- Config: ~/.config/postier/
- Credentials: ~/.config/postier/credentials/ (with restricted permissions)
- Data: ~/.local/share/postier/ (synchronization cache)
"""

from pathlib import Path


# XDG-compliant config directory
CONFIG_DIR = Path.home() / ".config" / "postier"
CONFIG_FILE = CONFIG_DIR / "config.toml"

# Credentials stored separately with restricted permissions
CREDENTIALS_DIR = CONFIG_DIR / "credentials"

# Per-account synchronization cache (one Maildir tree per account)
DATA_DIR = Path.home() / ".local" / "share" / "postier"
SYNC_CACHE_DIR = DATA_DIR / "sync"

DEFAULT_DOWNLOADS_DIR = Path.home() / "Downloads"


def ensure_config_dir() -> Path:
    """Create config directory if it doesn't exist.

    Returns the config directory path.
    """
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    return CONFIG_DIR


def ensure_credentials_dir() -> Path:
    """Create credentials directory with restricted permissions.

    Sets directory permissions to 700 (owner read/write/execute only)
    to protect sensitive token data.

    Returns the credentials directory path.
    """
    CREDENTIALS_DIR.mkdir(parents=True, exist_ok=True)
    CREDENTIALS_DIR.chmod(0o700)
    return CREDENTIALS_DIR
