"""Gmail authentication via OAuth 2.0 Installed Application Flow.

Handles authentication with Gmail using the OAuth 2.0 loopback redirect flow,
which is ideal for CLI applications. The user's browser opens to Google's
consent page, they authenticate, and the authorization code is captured via
a local HTTP server redirect.

The resulting token is kept in the secret store under
"<account>.gmail-token".
"""

import json
import logging
import os

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from postier.config import Account
from postier.secret import SecretStore

logger = logging.getLogger(__name__)

# Gmail API scopes required for email operations.
# - gmail.modify: Read emails, modify labels, trash messages
# - gmail.labels: Create and delete labels (folders)
SCOPES = [
    "https://www.googleapis.com/auth/gmail.modify",
    "https://www.googleapis.com/auth/gmail.labels",
]

# Environment variable for client secret.
# Using env var is preferred over storing in config.toml for security.
CLIENT_SECRET_ENV = "POSTIER_GMAIL_CLIENT_SECRET"

# Loopback redirect URI for installed applications
REDIRECT_PORT = 8080
REDIRECT_URI = f"http://localhost:{REDIRECT_PORT}"


def token_key(account: Account) -> str:
    return f"{account.name}.gmail-token"


def client_secret_key(account: Account) -> str:
    return f"{account.name}.gmail-client-secret"


def load_token(account: Account, store: SecretStore) -> Credentials | None:
    """Load credentials from the secret store.

    Returns None if no token is stored or it cannot be parsed.
    """
    token = store.get(token_key(account))
    if not token:
        return None

    try:
        return Credentials.from_authorized_user_info(json.loads(token), SCOPES)
    except (ValueError, KeyError) as e:
        logger.warning("ignoring invalid Gmail token for %s: %s", account.name, e)
        return None


def save_token(account: Account, store: SecretStore, creds: Credentials) -> None:
    """Persist credentials to the secret store."""
    token_data = {
        "token": creds.token,
        "refresh_token": creds.refresh_token,
        "token_uri": creds.token_uri,
        "client_id": creds.client_id,
        "client_secret": creds.client_secret,
        "scopes": creds.scopes,
    }
    store.set(token_key(account), json.dumps(token_data))


def get_client_secret(account: Account, store: SecretStore) -> str | None:
    """Get client secret from environment, secret store or config.

    Environment variable takes precedence for security - secrets in
    environment variables are less likely to be accidentally committed.
    """
    return (
        os.environ.get(CLIENT_SECRET_ENV)
        or store.get(client_secret_key(account))
        or account.settings.get("client_secret")
    )


def get_credentials(account: Account, store: SecretStore) -> Credentials | None:
    """Get valid Gmail credentials for API access.

    Refreshes expired tokens when a refresh token is available.

    Returns:
        Credentials object or None if not authenticated or refresh fails.
    """
    creds = load_token(account, store)
    if not creds:
        return None

    if creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
        except GoogleAuthError as e:
            logger.warning("cannot refresh Gmail token for %s: %s", account.name, e)
            return None
        save_token(account, store, creds)

    return creds if creds.valid else None


def _build_client_config(client_id: str, client_secret: str) -> dict:
    """Build OAuth client configuration dict.

    Google's InstalledAppFlow expects a specific JSON structure that
    normally comes from downloading credentials from Cloud Console.
    We construct it programmatically from our config values.
    """
    return {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": [REDIRECT_URI],
        }
    }


def authenticate_loopback_flow(account: Account, store: SecretStore) -> dict:
    """Perform OAuth 2.0 loopback flow authentication.

    Starts a local HTTP server on localhost:8080, opens the user's browser
    to Google's consent page, captures the authorization code from the redirect,
    and exchanges it for tokens. Valid stored credentials are reused.

    Returns:
        Authentication result dict containing:
        - On success: 'access_token'
        - On failure: 'error' and 'error_description'
    """
    creds = get_credentials(account, store)
    if creds is not None:
        return {"access_token": creds.token}

    client_id = account.settings.get("client_id")
    if not client_id:
        return {
            "error": "missing_config",
            "error_description": "Gmail account must have 'client_id' configured.",
        }

    client_secret = get_client_secret(account, store)
    if not client_secret:
        return {
            "error": "missing_config",
            "error_description": (
                f"Gmail client_secret not found. Set {CLIENT_SECRET_ENV} "
                "environment variable or add 'client_secret' to config."
            ),
        }

    try:
        flow = InstalledAppFlow.from_client_config(
            _build_client_config(client_id, client_secret),
            scopes=SCOPES,
            redirect_uri=REDIRECT_URI,
        )

        # Run local server to capture OAuth callback
        # This will open the user's browser automatically
        creds = flow.run_local_server(
            port=REDIRECT_PORT,
            success_message="Authentication successful! You can close this window.",
        )
    except (GoogleAuthError, ValueError, OSError) as e:
        return {
            "error": "oauth_flow_failed",
            "error_description": f"OAuth 2.0 flow failed: {e}",
        }

    save_token(account, store, creds)
    return {"access_token": creds.token}


def reset(account: Account, store: SecretStore) -> None:
    """Forget the stored Gmail token of an account."""
    store.delete(token_key(account))
