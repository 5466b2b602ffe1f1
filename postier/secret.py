"""Secret storage for account credentials.

Secrets (OAuth tokens, client secrets) live in one JSON file per
service name under ~/.config/postier/credentials/, readable by the
owner only. The service name scopes every lookup; the CLI sets it once
at startup with set_global_service_name() and it never changes
afterwards.

Usage:
    from postier.secret import default_store

    store = default_store()
    store.set("personal.gmail-token", token_json)
    token_json = store.get("personal.gmail-token")
"""

import json
import logging
import os
from pathlib import Path

from postier.config import paths
from postier.errors import SecretError

logger = logging.getLogger(__name__)

DEFAULT_SERVICE_NAME = "postier-cli"

_service_name: str | None = None


def set_global_service_name(name: str) -> None:
    """Set the process-wide secret service name.

    Setting the same name again is a no-op.

    Raises:
        SecretError: If a different name was already set.
    """
    global _service_name

    if _service_name is not None and _service_name != name:
        raise SecretError(
            f"Secret service name already set to '{_service_name}', "
            f"cannot change it to '{name}'"
        )
    _service_name = name


def get_global_service_name() -> str:
    """Current service name, DEFAULT_SERVICE_NAME if never set."""
    return _service_name or DEFAULT_SERVICE_NAME


class SecretStore:
    """Key/value secrets for one service, persisted as JSON.

    The file is re-read on every access so that separate stores on the
    same service see each other's writes.
    """

    def __init__(self, service_name: str):
        self._service_name = service_name

    @property
    def service_name(self) -> str:
        return self._service_name

    @property
    def path(self) -> Path:
        return paths.CREDENTIALS_DIR / f"{self._service_name}.json"

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            return json.loads(self.path.read_text())
        except json.JSONDecodeError as e:
            raise SecretError(f"Corrupted secret file {self.path}: {e}") from e

    def _save(self, secrets: dict[str, str]) -> None:
        paths.ensure_credentials_dir()
        # Only the owner can read or write, from creation on
        fd = os.open(self.path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(secrets, f, indent=2)
        # The mode above only applies to new files
        self.path.chmod(0o600)

    def get(self, key: str) -> str | None:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        secrets = self._load()
        secrets[key] = value
        self._save(secrets)
        logger.debug("stored secret %s in %s", key, self._service_name)

    def delete(self, key: str) -> bool:
        """Remove a secret. Returns False if it did not exist."""
        secrets = self._load()
        if key not in secrets:
            return False
        del secrets[key]
        self._save(secrets)
        logger.debug("deleted secret %s from %s", key, self._service_name)
        return True


def default_store() -> SecretStore:
    """Store bound to the process-wide service name."""
    return SecretStore(get_global_service_name())
