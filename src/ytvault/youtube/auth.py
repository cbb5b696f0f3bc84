"""OAuth credentials for the YouTube Data API.

Tokens are cached in a JSON file. Expired tokens are refreshed; otherwise the
installed-app flow opens a browser and captures the redirect on localhost.
"""

import logging
from pathlib import Path

from google.auth.exceptions import GoogleAuthError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from ..errors import AuthenticationError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/youtube.readonly"]


def load_credentials(client_secret_file: str | Path, token_file: str | Path,
                     interactive: bool = True) -> Credentials:
    """Return valid credentials, refreshing or re-authorising as needed."""
    token_path = Path(token_file)
    creds = None
    if token_path.exists():
        try:
            creds = Credentials.from_authorized_user_file(str(token_path), SCOPES)
        except (ValueError, OSError) as e:
            logger.warning(f"Ignoring unreadable token cache {token_path}: {e}")

    if creds and creds.valid:
        return creds

    if creds and creds.expired and creds.refresh_token:
        try:
            creds.refresh(Request())
            _save_token(creds, token_path)
            return creds
        except GoogleAuthError as e:
            logger.warning(f"Token refresh failed, re-authorising: {e}")

    if not interactive:
        raise AuthenticationError(
            f"No valid token in {token_path}. Run 'ytvault auth' to sign in."
        )
    return authorise(client_secret_file, token_path)


def authorise(client_secret_file: str | Path, token_file: str | Path) -> Credentials:
    """Run the browser-based OAuth flow and cache the resulting token."""
    secret_path = Path(client_secret_file)
    if not secret_path.exists():
        raise AuthenticationError(
            f"Client secret file not found: {secret_path}. "
            f"Download an OAuth 'Desktop app' client from the Google Cloud console."
        )
    try:
        flow = InstalledAppFlow.from_client_secrets_file(str(secret_path), SCOPES)
        creds = flow.run_local_server(port=0, access_type="offline")
    except (GoogleAuthError, ValueError) as e:
        raise AuthenticationError(f"OAuth authorisation failed: {e}") from e
    _save_token(creds, Path(token_file))
    return creds


def _save_token(creds: Credentials, token_path: Path) -> None:
    token_path.parent.mkdir(parents=True, exist_ok=True)
    token_path.write_text(creds.to_json())
